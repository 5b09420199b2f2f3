"""
FastAPI application factory for the Kairo city simulation API.
"""

import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kairo.api.routers import catalog, game, llm
from kairo.api.sessions import SessionManager

# Load .env: project root first, then CWD
_project_root = Path(__file__).resolve().parents[3]  # src/kairo/api/app.py -> project root
load_dotenv(_project_root / ".env")
load_dotenv(Path.cwd() / ".env")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Kairo City Sim API",
        description="REST API for the Kairo city-building simulation",
        version="0.1.0",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.session_manager = SessionManager()

    application.include_router(game.router, prefix="/api/game", tags=["game"])
    application.include_router(catalog.router, prefix="/api/catalog", tags=["catalog"])
    application.include_router(llm.router, prefix="/api/llm", tags=["llm"])

    @application.get("/api/health")
    def health_check():
        return {"status": "ok"}

    return application


app = create_app()


def main() -> None:
    """Serve the API with uvicorn."""
    logging.basicConfig(level=os.environ.get("KAIRO_LOG_LEVEL", "INFO").upper())
    uvicorn.run(
        "kairo.api.app:app",
        host=os.environ.get("KAIRO_HOST", "127.0.0.1"),
        port=int(os.environ.get("KAIRO_PORT", "8000")),
    )


if __name__ == "__main__":
    main()

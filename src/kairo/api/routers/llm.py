"""LLM endpoints: provider status and the hub greeting."""

from __future__ import annotations

import os
from typing import Any

from fastapi import APIRouter

from kairo.llm.client import ClaudeClient, OllamaClient, client_from_env
from kairo.llm.generators import CityGenerator

router = APIRouter()


@router.get("/status")
def llm_status() -> dict[str, Any]:
    """Check availability of all LLM providers."""
    anthropic_ok = ClaudeClient.is_available()
    ollama_ok = OllamaClient.is_available()
    ollama_models = OllamaClient.list_models() if ollama_ok else []

    available = anthropic_ok or ollama_ok
    if available:
        message = "AI goals and news available"
    else:
        message = "No LLM provider available. Set ANTHROPIC_API_KEY or start Ollama locally."

    return {
        "available": available,
        "message": message,
        "configured_provider": os.environ.get("KAIRO_LLM_PROVIDER", "anthropic"),
        "providers": {
            "anthropic": {"available": anthropic_ok},
            "ollama": {"available": ollama_ok, "models": ollama_models},
        },
    }


@router.get("/greeting")
def greeting() -> dict[str, str]:
    """The hub secretary's welcome line (falls back to a fixed greeting)."""
    return {"greeting": CityGenerator(client_from_env()).generate_greeting()}

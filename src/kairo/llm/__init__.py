"""LLM integration for city goals, news headlines and the hub greeting."""

from kairo.llm.client import (
    ClaudeClient,
    OllamaClient,
    LLMClient,
    LLMResponse,
    LLMUnavailableError,
    client_from_env,
    create_client,
)
from kairo.llm.generators import CityGenerator, extract_json

__all__ = [
    "ClaudeClient",
    "OllamaClient",
    "LLMClient",
    "LLMResponse",
    "LLMUnavailableError",
    "client_from_env",
    "create_client",
    "CityGenerator",
    "extract_json",
]

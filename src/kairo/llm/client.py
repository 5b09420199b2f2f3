"""
Chat-completion clients for the city advisor.

Two providers are supported: Anthropic's hosted Claude models and a local
Ollama server. Goals and headlines are optional flavor, so a provider that
cannot answer raises ``LLMUnavailableError`` and the caller carries on
without content.

Environment:
    KAIRO_LLM_PROVIDER  ``anthropic`` (default), ``ollama`` or ``none``
    KAIRO_LLM_MODEL     model override for the chosen provider
    ANTHROPIC_API_KEY   required for ``anthropic``
    OLLAMA_HOST         Ollama address, ``localhost:11434`` by default
"""

from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass

import anthropic

logger = logging.getLogger(__name__)

DEFAULT_CLAUDE_MODEL = "claude-3-5-haiku-latest"
DEFAULT_OLLAMA_MODEL = "llama3.2"
DEFAULT_OLLAMA_HOST = "http://localhost:11434"

Messages = list[dict[str, str]]


class LLMUnavailableError(Exception):
    """The provider is not configured or did not answer."""


@dataclass
class LLMResponse:
    text: str
    model: str
    input_tokens: int
    output_tokens: int


class LLMClient(ABC):
    """A provider that turns a system prompt and chat turns into one reply."""

    provider: str

    @abstractmethod
    def complete(
        self,
        system: str,
        messages: Messages,
        max_tokens: int = 512,
        temperature: float = 0.8,
    ) -> LLMResponse: ...


class ClaudeClient(LLMClient):
    provider = "anthropic"

    def __init__(self, api_key: str | None = None, model: str = DEFAULT_CLAUDE_MODEL) -> None:
        key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not key:
            raise LLMUnavailableError("ANTHROPIC_API_KEY is not set; city goals and news are disabled")
        self.model = model
        self._client = anthropic.Anthropic(api_key=key)

    @staticmethod
    def is_available() -> bool:
        return bool(os.environ.get("ANTHROPIC_API_KEY"))

    def complete(
        self,
        system: str,
        messages: Messages,
        max_tokens: int = 512,
        temperature: float = 0.8,
    ) -> LLMResponse:
        try:
            reply = self._client.messages.create(
                model=self.model,
                system=system,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except anthropic.APIError as e:
            raise LLMUnavailableError(f"Anthropic request failed: {e}") from e

        return LLMResponse(
            text="".join(getattr(block, "text", "") for block in reply.content),
            model=reply.model,
            input_tokens=reply.usage.input_tokens,
            output_tokens=reply.usage.output_tokens,
        )


def _ollama_host() -> str:
    host = os.environ.get("OLLAMA_HOST") or DEFAULT_OLLAMA_HOST
    if "://" not in host:
        host = "http://" + host
    return host.rstrip("/")


class OllamaClient(LLMClient):
    """Local Ollama server, asked to answer in JSON mode."""

    provider = "ollama"

    def __init__(self, model: str = DEFAULT_OLLAMA_MODEL, base_url: str | None = None, timeout: float = 60) -> None:
        self.model = model
        self.base_url = base_url or _ollama_host()
        self.timeout = timeout

    @staticmethod
    def _get_tags(base_url: str | None) -> dict:
        url = (base_url or _ollama_host()) + "/api/tags"
        with urllib.request.urlopen(url, timeout=3) as resp:
            return json.loads(resp.read().decode())

    @classmethod
    def list_models(cls, base_url: str | None = None) -> list[str]:
        """Installed model names, or an empty list if the server is unreachable."""
        try:
            tags = cls._get_tags(base_url)
        except (urllib.error.URLError, OSError, ValueError):
            return []
        return [m["name"] for m in tags.get("models", [])]

    @classmethod
    def is_available(cls, base_url: str | None = None) -> bool:
        try:
            cls._get_tags(base_url)
        except (urllib.error.URLError, OSError, ValueError):
            return False
        return True

    def complete(
        self,
        system: str,
        messages: Messages,
        max_tokens: int = 512,
        temperature: float = 0.8,
    ) -> LLMResponse:
        body = {
            "model": self.model,
            "messages": [{"role": "system", "content": system}, *messages],
            "format": "json",
            "stream": False,
            "options": {"temperature": temperature, "num_predict": max_tokens},
        }
        request = urllib.request.Request(
            f"{self.base_url}/api/chat",
            data=json.dumps(body).encode(),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as resp:
                data = json.loads(resp.read().decode())
        except (urllib.error.URLError, OSError, ValueError) as e:
            raise LLMUnavailableError(f"Ollama request failed: {e}") from e

        return LLMResponse(
            text=data.get("message", {}).get("content", ""),
            model=self.model,
            input_tokens=data.get("prompt_eval_count") or 0,
            output_tokens=data.get("eval_count") or 0,
        )


def create_client(
    provider: str = "anthropic",
    model: str | None = None,
    api_key: str | None = None,
    ollama_base_url: str | None = None,
) -> LLMClient:
    """Build a client for ``provider``; ``model=None`` picks its default.

    Raises ValueError for an unknown provider and ``LLMUnavailableError``
    when Anthropic has no API key.
    """
    if provider == "anthropic":
        return ClaudeClient(api_key=api_key, model=model or DEFAULT_CLAUDE_MODEL)
    if provider == "ollama":
        return OllamaClient(model=model or DEFAULT_OLLAMA_MODEL, base_url=ollama_base_url)
    raise ValueError(f"Unknown provider: {provider!r}. Use 'anthropic', 'ollama' or 'none'.")


def client_from_env() -> LLMClient | None:
    """Client described by ``KAIRO_LLM_PROVIDER``/``KAIRO_LLM_MODEL``, or None when disabled."""
    provider = os.environ.get("KAIRO_LLM_PROVIDER", "anthropic").strip().lower()
    if provider in ("", "none", "off"):
        return None
    try:
        return create_client(provider=provider, model=os.environ.get("KAIRO_LLM_MODEL") or None)
    except (LLMUnavailableError, ValueError) as e:
        logger.info("LLM content disabled: %s", e)
        return None

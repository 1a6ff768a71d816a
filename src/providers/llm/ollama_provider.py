"""Ollama LLM provider adapter.

Ollama exposes an OpenAI-compatible ``/v1`` API, so this adapter reuses
:class:`OpenAILLMProvider` pointed at the local server.  It is the offline
last resort in the generation fallback chain.
"""

from __future__ import annotations

from typing import Any

import httpx

from src.config.settings import Settings
from src.providers.llm.openai_provider import OpenAILLMProvider


class OllamaLLMProvider(OpenAILLMProvider):
    """LLM provider backed by a local Ollama server (``llama3.1`` by default)."""

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        super().__init__(settings)
        self._default_model = settings.ollama_model
        self._provider_label = "ollama"

    def _client_kwargs(self, settings: Settings) -> dict[str, Any]:
        # Ollama ignores the key, but the openai SDK requires a non-empty one.
        return {
            "base_url": f"{self._base_url or 'http://localhost:11434'}/v1",
            "api_key": "ollama",
            "timeout": 120.0,
        }

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama base URL is configured."""
        return bool(self._base_url)

    async def validate_credentials(self) -> bool:
        """Check the server is up via the native ``/api/tags`` endpoint."""
        if not self.is_available():
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError:
            return False

"""OpenRouter LLM provider adapter.

OpenRouter exposes hundreds of models (Gemini, Llama, Claude, GPT) behind
one OpenAI-compatible endpoint, so this adapter reuses
:class:`OpenAILLMProvider` with a different base URL and the attribution
headers OpenRouter asks clients to send.  Model ids are namespaced by
vendor, e.g. ``google/gemini-2.0-flash-exp``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.config.settings import Settings
from src.providers.llm.openai_provider import _REQUEST_TIMEOUT, OpenAILLMProvider

logger = structlog.get_logger(logger_name=__name__)


class OpenRouterLLMProvider(OpenAILLMProvider):
    """LLM provider backed by OpenRouter's chat-completions API."""

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.openrouter_base_url.rstrip("/")
        super().__init__(settings)
        self._api_key = settings.openrouter_api_key
        self._default_model = settings.openrouter_default_model
        self._provider_label = "openrouter"

    def _client_kwargs(self, settings: Settings) -> dict[str, Any]:
        headers = {"X-Title": settings.openrouter_app_title}
        if settings.openrouter_referer:
            headers["HTTP-Referer"] = settings.openrouter_referer
        return {
            "api_key": settings.openrouter_api_key,
            "base_url": self._base_url,
            "timeout": _REQUEST_TIMEOUT,
            "default_headers": headers,
        }

    def is_available(self) -> bool:
        return bool(self._settings.openrouter_api_key)

    async def validate_credentials(self) -> bool:
        """Query OpenRouter's key endpoint, which needs auth but costs nothing."""
        if not self.is_available():
            return False
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(
                    f"{self._base_url}/auth/key",
                    headers={"Authorization": f"Bearer {self._settings.openrouter_api_key}"},
                )
        except httpx.HTTPError as exc:
            logger.warning("openrouter_validation_failed", error=str(exc))
            return False
        return response.status_code == 200

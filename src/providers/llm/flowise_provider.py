"""Flowise LLM provider adapter (legacy).

Flowise runs a configured chatflow behind its prediction endpoint:

    POST {flowise_url}/api/v1/prediction/{chatflow_id}
    {"question": ..., "overrideConfig": {...}}

The chatflow decides which underlying model runs; ``overrideConfig`` only
passes hints (model name, token budget, system message).  The answer comes
back under ``text`` or, for some chain types, ``answer``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import LLMError, ProviderUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "gpt-4o"


class FlowiseLLMProvider(ILLMProvider):
    """LLM provider backed by a Flowise chatflow over plain HTTP.

    Parameters
    ----------
    settings:
        Application settings (``flowise_url``, ``flowise_api_key``,
        ``flowise_chatflow_id``).
    http_client:
        Shared ``httpx.AsyncClient``.  When omitted a client is created per
        request.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._base_url = settings.flowise_url.rstrip("/")
        self._api_key = settings.flowise_api_key
        self._chatflow_id = settings.flowise_chatflow_id
        self._http_client = http_client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _post(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(url, json=payload, headers=self._headers(), timeout=120.0)
        async with httpx.AsyncClient(timeout=120.0) as client:
            return await client.post(url, json=payload, headers=self._headers())

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        model: str | None = None,
    ) -> str:
        """Run the chatflow with the prompt as the question."""
        if not self.is_available():
            raise ProviderUnavailableError(
                message="FLOWISE_URL is not configured",
                provider_name=self.get_provider_name(),
            )
        model_id = model or _DEFAULT_MODEL
        url = f"{self._base_url}/api/v1/prediction/{self._chatflow_id}"
        payload = {
            "question": user_prompt,
            "overrideConfig": {
                "systemMessagePrompt": system_prompt,
                "model": model_id,
                "maxTokens": max_tokens,
                "temperature": temperature,
            },
        }

        try:
            response = await self._post(url, payload)
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(
                message=f"Flowise unreachable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code >= 400:
            raise LLMError(
                message=f"Flowise error {response.status_code}: {response.text[:300]}",
                provider_name=self.get_provider_name(),
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise LLMError(
                message="Flowise returned a non-JSON response",
                provider_name=self.get_provider_name(),
            ) from exc

        text = ""
        if isinstance(data, dict):
            text = data.get("text") or data.get("answer") or ""
        if not isinstance(text, str) or not text.strip():
            raise LLMError(
                message="Flowise returned empty response",
                provider_name=self.get_provider_name(),
            )

        logger.info(
            "llm_completion",
            provider=self.get_provider_name(),
            model=model_id,
            chatflow=self._chatflow_id,
        )
        return text

    def get_default_model(self) -> str:
        return _DEFAULT_MODEL

    def is_available(self) -> bool:
        return bool(self._base_url)

    async def validate_credentials(self) -> bool:
        """Hit the Flowise ping endpoint."""
        if not self.is_available():
            return False
        try:
            if self._http_client is not None:
                response = await self._http_client.get(f"{self._base_url}/api/v1/ping", headers=self._headers())
            else:
                async with httpx.AsyncClient(timeout=5.0) as client:
                    response = await client.get(f"{self._base_url}/api/v1/ping", headers=self._headers())
        except httpx.HTTPError:
            return False
        return response.status_code == 200

    def get_provider_name(self) -> str:
        return "flowise"

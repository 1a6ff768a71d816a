"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When a custom ``openai_base_url`` is configured (TogetherAI, an Azure
proxy, ...), the client points at that URL instead of api.openai.com.

Several other backends speak the same chat-completions protocol, so the
OpenRouter and Ollama adapters subclass this one and only change how the
client is built.
"""

from __future__ import annotations

from typing import Any

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import LLMError, ProviderUnavailableError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

_REQUEST_TIMEOUT = openai.Timeout(60.0, connect=5.0)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat-completions API.

    Uses ``gpt-4o-mini`` by default; ``openai_text_model`` overrides it.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key
        self._default_model = settings.openai_text_model or "gpt-4o-mini"
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"
        self._client = openai.AsyncOpenAI(**self._client_kwargs(settings))

    def _client_kwargs(self, settings: Settings) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "api_key": self._api_key,
            "timeout": _REQUEST_TIMEOUT,
        }
        if settings.openai_base_url:
            kwargs["base_url"] = settings.openai_base_url
        return kwargs

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
        """Generate a text completion via the chat-completions API."""
        model_id = model or self._default_model
        try:
            response = await self._client.chat.completions.create(
                model=model_id,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APIConnectionError as exc:
            # Includes APITimeoutError.
            raise ProviderUnavailableError(
                message=f"{self._provider_label} unreachable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"{self._provider_label} rate limit exceeded: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.choices:
            raise LLMError(
                message=f"{self._provider_label} returned no choices",
                provider_name=self.get_provider_name(),
            )
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "llm_completion",
            provider=self.get_provider_name(),
            model=model_id,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def get_default_model(self) -> str:
        return self._default_model

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to verify the key without paying for inference."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False

    def get_provider_name(self) -> str:
        return self._provider_label

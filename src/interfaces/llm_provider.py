"""Abstract base class for LLM service providers.

Defines the contract for any large-language-model backend used to draft
application sections.  Implementations wrap OpenRouter, OpenAI, Anthropic,
a local Ollama server, or a Flowise chatflow.  The generation service only
ever talks to this interface, which is what makes the provider fallback
chain possible.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OpenRouterLLMProvider, OpenAILLMProvider,
# AnthropicLLMProvider, OllamaLLMProvider, FlowiseLLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for text-generation services."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        model: str | None = None,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing prompt containing the section brief and context.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.
        model:
            Provider-specific model id.  ``None`` uses
            :meth:`get_default_model`.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or returns an empty response.
        src.utils.errors.ProviderUnavailableError
            If the service cannot be reached at all.
        """

    @abstractmethod
    def get_default_model(self) -> str:
        """Return the model id used when :meth:`complete` gets ``model=None``."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the identifier used in routing, logs, and generation records.

        Example return values: ``"openrouter"``, ``"anthropic"``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured.

        Implementations check that credentials or URLs are present without
        making a network call.
        """

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm the provider works.

        Returns
        -------
        bool
            ``True`` if the provider accepted the request; ``False``
            otherwise.  Unlike :meth:`is_available`, this method actively
            contacts the remote service.
        """

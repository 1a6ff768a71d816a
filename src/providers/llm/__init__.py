"""LLM provider adapters.

Five concrete implementations of ILLMProvider (src/interfaces/llm_provider.py):
    - OpenRouterLLMProvider — OpenRouter's multi-vendor catalogue (default)
    - OpenAILLMProvider     — gpt-4o-mini (also any OpenAI-compatible API)
    - AnthropicLLMProvider  — Claude via the Messages API
    - OllamaLLMProvider     — local models via an Ollama server
    - FlowiseLLMProvider    — legacy Flowise chatflow over HTTP

main.py builds every configured provider and hands them, in priority
order, to the generation service's fallback chain.
"""

from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.flowise_provider import FlowiseLLMProvider
from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.llm.openrouter_provider import OpenRouterLLMProvider

__all__ = [
    "AnthropicLLMProvider",
    "FlowiseLLMProvider",
    "OllamaLLMProvider",
    "OpenAILLMProvider",
    "OpenRouterLLMProvider",
]

"""Public interface definitions for all external service providers.

Every external API or backing service is accessed through the abstract
base classes in this package.  Concrete adapters live in ``src/providers/``
and are wired together in ``src/main.py``; unit tests inject mocks built
with ``MagicMock(spec=Interface)``.

CONCRETE PROVIDER MAP:
    Interface              →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    ILLMProvider           →  OpenRouterLLMProvider, OpenAILLMProvider,
                              AnthropicLLMProvider, OllamaLLMProvider,
                              FlowiseLLMProvider
    IEmbeddingProvider     →  OpenAIEmbeddingProvider, HashEmbeddingProvider
    IVectorStoreProvider   →  ChromaDBProvider
    IProjectStore          →  SQLiteProjectStore
    IFileStorageProvider   →  LocalFileStorage
"""

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.file_storage_provider import IFileStorageProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.project_store import IProjectStore
from src.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IEmbeddingProvider",
    "IFileStorageProvider",
    "ILLMProvider",
    "IProjectStore",
    "IVectorStoreProvider",
]

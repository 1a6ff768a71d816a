"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture its meaning.
These vectors are stored in ChromaDB and used for similarity search (RAG).

Two implementations of IEmbeddingProvider:
    1. OpenAIEmbeddingProvider — text-embedding-3-small (1536 dims).
       Used when OPENAI_API_KEY is set.
    2. HashEmbeddingProvider   — deterministic feature hashing (numpy).
       Offline fallback for development, tests, and keyless deployments.
"""

from src.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["HashEmbeddingProvider", "OpenAIEmbeddingProvider"]

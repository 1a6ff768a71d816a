"""Abstract base class for text-embedding service providers.

Defines the contract for turning document chunks and retrieval queries
into vectors.  Implementations wrap OpenAI ``text-embedding-3-small`` or
the offline feature-hashing embedder used in development and tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider: text-embedding-3-small (requires API key)
#   HashEmbeddingProvider: deterministic feature hashing (offline)
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used for indexing and retrieval."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Implementations handle
            batching internally if the underlying API has a per-call limit.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.  Each
            inner list has length equal to :meth:`get_dimension`.

        Raises
        ------
        src.utils.errors.RAGError
            If the embedding call fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text (e.g. a query)."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Must stay constant for the provider's lifetime and match the
        vectors already stored in the vector store.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured."""

    def default_similarity_threshold(self) -> float:
        """Return the cosine cut-off used when ``RAG_SIMILARITY_THRESHOLD`` is unset.

        Scores are only comparable within one embedding model, so the
        default belongs to the provider.  0.7 suits dense neural
        embeddings such as OpenAI's.
        """
        return 0.7

"""Abstract base class for vector-store service providers.

Defines the contract for storing, querying, and deleting embedded document
chunks.  Every chunk belongs to exactly one project and every query is
scoped to one project, so one collection can serve all users.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.rag import DocumentChunk, RetrievedChunk


# Concrete implementation: ChromaDBProvider (src/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for vector-store services used for retrieval.

    All query and mutation methods are async so network-backed stores can
    be swapped in without blocking the event loop.
    """

    @abstractmethod
    async def add_chunks(
        self,
        chunks: list[DocumentChunk],
        embeddings: list[list[float]],
    ) -> int:
        """Store pre-embedded chunks (upsert by ``chunk_id``).

        Parameters
        ----------
        chunks:
            Chunks to store.
        embeddings:
            Vectors corresponding positionally to *chunks*.

        Returns
        -------
        int
            Number of chunks stored.

        Raises
        ------
        ValueError
            If *chunks* and *embeddings* differ in length.
        src.utils.errors.RAGError
            If the store rejects the write.
        """

    @abstractmethod
    async def query(
        self,
        query_text: str,
        project_id: str,
        top_k: int = 8,
        min_similarity: float = 0.7,
    ) -> list[RetrievedChunk]:
        """Return the project's chunks most similar to *query_text*.

        Parameters
        ----------
        query_text:
            Natural-language query; embedded by the store's embedding provider.
        project_id:
            Only chunks of this project are considered.
        top_k:
            Maximum number of results.
        min_similarity:
            Results with cosine similarity below this value are dropped.

        Returns
        -------
        list[RetrievedChunk]
            Ordered by descending similarity.
        """

    @abstractmethod
    async def delete_by_file(self, file_id: str) -> int:
        """Delete every chunk of one uploaded file.  Returns the count deleted."""

    @abstractmethod
    async def delete_by_project(self, project_id: str) -> int:
        """Delete every chunk of one project.  Returns the count deleted."""

    @abstractmethod
    async def count(self, project_id: str | None = None) -> int:
        """Return the number of stored chunks, optionally for one project."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this vector store."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is initialised and reachable."""

"""Project-scoped chunk retrieval for generation and search previews.

Retrieval is best-effort: a vector-store or embedding failure is logged
and treated as "no context" so generation can still run without the
project's documents.
"""

from __future__ import annotations

import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import RetrievedChunk
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)


def build_query(title: str, description: str | None) -> str:
    """Return the retrieval query for a section: ``"{title} {description}"``."""
    return f"{title} {description or ''}".strip()


class RetrievalService:
    """Wraps the vector store with the configured retrieval defaults."""

    def __init__(
        self,
        vector_store: IVectorStoreProvider | None,
        top_k: int = 8,
        min_similarity: float = 0.7,
    ) -> None:
        self._vector_store = vector_store
        self._top_k = top_k
        self._min_similarity = min_similarity

    @property
    def is_available(self) -> bool:
        return self._vector_store is not None and self._vector_store.is_available()

    async def retrieve(
        self,
        project_id: str,
        query: str,
        top_k: int | None = None,
        min_similarity: float | None = None,
    ) -> list[RetrievedChunk]:
        """Return up to *top_k* chunks of *project_id* similar to *query*.

        Returns ``[]`` when the store is missing, the query is blank, or
        the store raises :class:`RAGError`.
        """
        if self._vector_store is None or not query.strip():
            return []

        k = self._top_k if top_k is None else top_k
        threshold = self._min_similarity if min_similarity is None else min_similarity
        try:
            results = await self._vector_store.query(
                query_text=query,
                project_id=project_id,
                top_k=k,
                min_similarity=threshold,
            )
        except RAGError as exc:
            logger.warning(
                "retrieval_failed",
                project_id=project_id,
                error=str(exc),
            )
            return []

        logger.debug(
            "retrieval_complete",
            project_id=project_id,
            results=len(results),
            top_k=k,
            threshold=threshold,
        )
        return results

"""ChromaDB vector store provider adapter.

Wraps `chromadb.PersistentClient` to implement :class:`IVectorStoreProvider`.
Uses cosine distance for similarity search.  Every chunk carries its
``project_id`` and ``file_id`` as metadata so queries and deletions are
scoped with a ``where`` clause on a single shared collection.
"""

from __future__ import annotations

import os
from typing import Any

# Disable ChromaDB telemetry completely before importing chromadb.
# A version mismatch between ChromaDB's bundled PostHog client and the
# installed posthog package raises errors on every capture() call.
#   1. ANONYMIZED_TELEMETRY env var, respected by some ChromaDB versions
#   2. posthog.disabled = True, disables the PostHog SDK directly
#   3. Settings(anonymized_telemetry=False), passed to PersistentClient
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import DocumentChunk, RetrievedChunk
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """No-op embedding function that prevents ChromaDB from loading a model.

    Embeddings are always computed by our :class:`IEmbeddingProvider` and
    passed explicitly, so ChromaDB's default ONNX model is never needed.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "Embeddings are pre-computed; ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    An :class:`IEmbeddingProvider` is injected at init time so the provider
    can embed query text before passing it to ChromaDB.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "pt2030_document_chunks",
    ) -> None:
        self._embedding_provider = embedding_provider
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # Collections persisted with a different embedding function reject
        # _NoopEmbeddingFunction with a ValueError; reopen without one.
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )

        self._validate_embedding_dimensions()

    # ------------------------------------------------------------------
    # Startup validation
    # ------------------------------------------------------------------

    def _validate_embedding_dimensions(self) -> None:
        """Verify embedding provider dimensions match stored vectors.

        A mismatch (e.g. switching from the hash embedder to OpenAI with
        a different model) would make every query meaningless, so fail
        at startup instead.
        """
        try:
            collection_count = self._collection.count()
            if collection_count == 0:
                return

            sample = self._collection.peek(limit=1)
            embeddings = sample.get("embeddings") if sample else None
            if embeddings is None or len(embeddings) == 0:
                return

            stored_dim = len(embeddings[0])
            expected_dim = self._embedding_provider.get_dimension()

            if stored_dim != expected_dim:
                logger.error(
                    "embedding_dimension_mismatch",
                    stored_dim=stored_dim,
                    expected_dim=expected_dim,
                    provider=self._embedding_provider.get_provider_name(),
                )
                raise RAGError(
                    message=(
                        f"Embedding dimension mismatch: collection has {stored_dim}-dim vectors "
                        f"but provider '{self._embedding_provider.get_provider_name()}' "
                        f"produces {expected_dim}-dim vectors. "
                        f"Reindex the documents or restore the previous embedding settings."
                    ),
                    provider_name="chromadb",
                )

            logger.info(
                "embedding_dimension_validated",
                dimension=stored_dim,
                stored_chunks=collection_count,
            )
        except RAGError:
            raise
        except Exception as exc:
            logger.warning("embedding_dimension_check_skipped", error=str(exc))

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def query(
        self,
        query_text: str,
        project_id: str,
        top_k: int = 8,
        min_similarity: float = 0.7,
    ) -> list[RetrievedChunk]:
        """Perform semantic search over one project's chunks.

        Similarity is ``1 - cosine distance`` clamped to ``[0, 1]``; results
        below *min_similarity* are dropped.
        """
        if top_k <= 0:
            return []
        try:
            project_count = await self.count(project_id)
            if project_count == 0:
                return []

            query_embedding = await self._embedding_provider.embed_single(query_text)
            results = self._collection.query(
                query_embeddings=[query_embedding],
                n_results=min(top_k, project_count),
                where={"project_id": project_id},
            )

            if not results["documents"] or not results["documents"][0]:
                return []

            documents = results["documents"][0]
            metadatas = results["metadatas"][0] if results["metadatas"] else [{}] * len(documents)
            distances = results["distances"][0] if results["distances"] else [0.0] * len(documents)
            ids = results["ids"][0]

            retrieved: list[RetrievedChunk] = []
            for chunk_id, doc_text, meta, distance in zip(
                ids, documents, metadatas, distances, strict=True
            ):
                similarity = max(0.0, min(1.0, 1.0 - distance))
                if similarity < min_similarity:
                    continue
                retrieved.append(
                    RetrievedChunk(
                        chunk=self._metadata_to_chunk(chunk_id, meta, doc_text),
                        similarity_score=similarity,
                    )
                )

            retrieved.sort(key=lambda rc: rc.similarity_score, reverse=True)

            logger.info(
                "chromadb_query",
                project_id=project_id,
                query_length=len(query_text),
                raw_results=len(documents),
                results_count=len(retrieved),
                top_score=retrieved[0].similarity_score if retrieved else 0.0,
            )
            return retrieved

        except RAGError:
            raise
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def add_chunks(
        self,
        chunks: list[DocumentChunk],
        embeddings: list[list[float]],
        batch_size: int = 500,
    ) -> int:
        """Upsert pre-embedded chunks in batches of *batch_size*."""
        if len(chunks) != len(embeddings):
            raise ValueError(
                f"chunks and embeddings length mismatch: {len(chunks)} != {len(embeddings)}"
            )
        if not chunks:
            return 0

        try:
            total_stored = 0
            for start in range(0, len(chunks), batch_size):
                batch_chunks = chunks[start : start + batch_size]
                self._collection.upsert(
                    ids=[c.chunk_id for c in batch_chunks],
                    embeddings=embeddings[start : start + batch_size],
                    documents=[c.text for c in batch_chunks],
                    metadatas=[self._chunk_to_metadata(c) for c in batch_chunks],
                )
                total_stored += len(batch_chunks)

            logger.info(
                "chromadb_add_chunks",
                count=total_stored,
                batches=(len(chunks) + batch_size - 1) // batch_size,
            )
            return total_stored

        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB add_chunks failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def delete_by_file(self, file_id: str) -> int:
        """Delete all chunks produced from the given uploaded file."""
        return self._delete_where("file_id", file_id)

    async def delete_by_project(self, project_id: str) -> int:
        """Delete all chunks belonging to the given project."""
        return self._delete_where("project_id", project_id)

    async def count(self, project_id: str | None = None) -> int:
        try:
            if project_id is None:
                return self._collection.count()
            existing = self._collection.get(where={"project_id": project_id}, include=[])
            return len(existing["ids"]) if existing["ids"] else 0
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB collection is accessible."""
        try:
            self._collection.count()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _delete_where(self, field: str, value: str) -> int:
        try:
            existing = self._collection.get(where={field: value}, include=[])
            count = len(existing["ids"]) if existing["ids"] else 0
            if count > 0:
                self._collection.delete(where={field: value})
            logger.info("chromadb_delete", field=field, value=value, deleted_count=count)
            return count
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB delete by {field} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    @staticmethod
    def _chunk_to_metadata(chunk: DocumentChunk) -> dict[str, str | int]:
        """ChromaDB metadata values must be str, int, float, or bool."""
        return {
            "project_id": chunk.project_id,
            "file_id": chunk.file_id,
            "chunk_index": chunk.chunk_index,
            "source": chunk.source,
            "page": chunk.page,
            "total_chunks": chunk.total_chunks,
        }

    @staticmethod
    def _metadata_to_chunk(chunk_id: str, meta: dict[str, Any], text: str) -> DocumentChunk:
        return DocumentChunk(
            chunk_id=chunk_id,
            project_id=str(meta.get("project_id", "")),
            file_id=str(meta.get("file_id", "")),
            chunk_index=int(meta.get("chunk_index", 0)),
            text=text,
            source=str(meta.get("source") or "Documento"),
            page=max(1, int(meta.get("page", 1))),
            total_chunks=max(1, int(meta.get("total_chunks", 1))),
        )

"""Orchestrator for indexing one uploaded document.

Pipeline stages: **read -> extract -> chunk -> embed -> store**.

:class:`IndexingService` coordinates five collaborators (project store,
file storage, chunker, embedding provider, vector store) without any of
them knowing about each other.  All dependencies are injected via the
constructor so providers can be swapped (e.g. OpenAI -> hash embeddings)
without changing this class.

The file record moves ``pending -> processing -> indexed | failed``.
``index_file`` never raises for a document problem: any failure is stored
on the record as ``error_message`` and reported in the returned
:class:`IndexingResult`, so a file is never left in ``processing``.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from src.models.project import FileStatus
from src.models.rag import DocumentChunk, IndexingResult
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.text_extractor import extract_text
from src.utils.errors import CandidaturaError, NotFoundError

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.file_storage_provider import IFileStorageProvider
    from src.interfaces.project_store import IProjectStore
    from src.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)

EMPTY_DOCUMENT_MESSAGE = "Nenhum texto extraído do documento"

_EMBED_BATCH_SIZE = 64


class IndexingService:
    """Indexes uploaded documents into the vector store."""

    def __init__(
        self,
        store: IProjectStore,
        file_storage: IFileStorageProvider,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        chunker: TextChunker | None = None,
    ) -> None:
        self._store = store
        self._file_storage = file_storage
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._chunker = chunker or TextChunker()

    async def index_file(self, file_id: str) -> IndexingResult:
        """Index (or reindex) one uploaded file.

        Raises
        ------
        NotFoundError
            If no file record has *file_id*.  Every other failure is
            recorded on the file and returned as a ``failed`` result.
        """
        record = await self._store.get_file(file_id)
        if record is None:
            raise NotFoundError(message=f"Ficheiro não encontrado: {file_id}")

        started = time.monotonic()
        await self._store.update_file_status(file_id, FileStatus.PROCESSING)
        logger.info(
            "indexing_started",
            file_id=file_id,
            project_id=record.project_id,
            file_name=record.file_name,
        )

        pages = 0
        try:
            data = await self._file_storage.read(record.storage_path)
            document = extract_text(data, record.file_name)
            if document.is_empty():
                raise ValueError(EMPTY_DOCUMENT_MESSAGE)
            pages = document.page_count

            chunks = self._chunker.chunk(
                document,
                project_id=record.project_id,
                file_id=file_id,
                source=record.file_name,
            )
            if not chunks:
                raise ValueError(EMPTY_DOCUMENT_MESSAGE)

            embeddings = await self._embed(chunks)
            # Reindexing replaces the previous chunks.
            await self._vector_store.delete_by_file(file_id)
            stored = await self._vector_store.add_chunks(chunks, embeddings)
        except Exception as exc:
            message = exc.message if isinstance(exc, CandidaturaError) else str(exc)
            message = message or type(exc).__name__
            await self._discard_chunks(file_id)
            await self._store.update_file_status(file_id, FileStatus.FAILED, error_message=message)
            elapsed = time.monotonic() - started
            logger.warning(
                "indexing_failed",
                file_id=file_id,
                error=message,
                error_type=type(exc).__name__,
                elapsed_s=round(elapsed, 2),
            )
            return IndexingResult(
                file_id=file_id,
                status=FileStatus.FAILED,
                pages=pages,
                error_message=message,
                processing_time=elapsed,
            )

        await self._store.update_file_status(file_id, FileStatus.INDEXED, chunk_count=stored)
        elapsed = time.monotonic() - started
        logger.info(
            "indexing_complete",
            file_id=file_id,
            project_id=record.project_id,
            chunks=stored,
            pages=pages,
            elapsed_s=round(elapsed, 2),
        )
        return IndexingResult(
            file_id=file_id,
            status=FileStatus.INDEXED,
            chunks_created=stored,
            pages=pages,
            processing_time=elapsed,
        )

    async def _embed(self, chunks: list[DocumentChunk]) -> list[list[float]]:
        embeddings: list[list[float]] = []
        for start in range(0, len(chunks), _EMBED_BATCH_SIZE):
            batch = chunks[start : start + _EMBED_BATCH_SIZE]
            embeddings.extend(await self._embedding_provider.embed([c.text for c in batch]))
        return embeddings

    async def _discard_chunks(self, file_id: str) -> None:
        """Leave a failed file with no chunks in the vector store."""
        try:
            await self._vector_store.delete_by_file(file_id)
        except CandidaturaError as exc:
            logger.warning("failed_file_chunks_delete_failed", file_id=file_id, error=str(exc))

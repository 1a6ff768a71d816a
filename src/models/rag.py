"""RAG data models for project document retrieval.

Defines Pydantic v2 models for document chunks, retrieval results, and
indexing outcomes.  All models use frozen config to enforce immutability.

RAG flow in this service:

    1. INDEXING: An uploaded document's text is extracted and split into
       ~500-character chunks (src/services/ingestion/chunker.py).
    2. EMBEDDING: Each chunk becomes a dense vector.
    3. STORAGE: Chunks + embeddings go into ChromaDB, tagged with the
       owning project so retrieval never crosses projects.
    4. RETRIEVAL: Generating a section queries the project's chunks with
       the section title and description.
    5. GENERATION: Retrieved chunks are numbered into the prompt's
       "DOCUMENTAÇÃO RELEVANTE" block and returned as sources.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.models.project import FileStatus


# ---------------------------------------------------------------------------
# DocumentChunk: the unit stored in the vector store.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A chunk of text from an uploaded document, ready for embedding."""

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Unique identifier for this chunk.")
    project_id: str = Field(description="Project the source document belongs to.")
    file_id: str = Field(description="Identifier of the source document.")
    chunk_index: int = Field(default=0, ge=0, description="0-based position within the document.")
    text: str = Field(description="The chunk's textual content.")
    source: str = Field(default="Documento", description="Original file name of the source.")
    page: int = Field(default=1, ge=1, description="Real or estimated page of the chunk.")
    total_chunks: int = Field(default=1, ge=1, description="Chunks produced for the document.")

    @property
    def metadata(self) -> dict[str, int | str]:
        """Chunk metadata in the shape returned to API clients."""
        return {
            "source": self.source,
            "page": self.page,
            "chunk": self.chunk_index + 1,
            "total_chunks": self.total_chunks,
        }


# ---------------------------------------------------------------------------
# RetrievedChunk: a search result from the vector store.
# ---------------------------------------------------------------------------
class RetrievedChunk(BaseModel):
    """A document chunk returned from a vector-store query with its score."""

    model_config = ConfigDict(frozen=True)

    chunk: DocumentChunk = Field(description="The retrieved document chunk.")
    similarity_score: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Cosine similarity between the query and this chunk.",
    )


# ---------------------------------------------------------------------------
# IndexingResult: outcome of indexing one uploaded file.
# ---------------------------------------------------------------------------
class IndexingResult(BaseModel):
    """Summary of one ``IndexingService.index_file`` run."""

    model_config = ConfigDict(frozen=True)

    file_id: str
    status: FileStatus
    chunks_created: int = Field(default=0, ge=0)
    pages: int = Field(default=0, ge=0)
    error_message: str | None = None
    processing_time: float = Field(default=0.0, ge=0.0, description="Seconds spent indexing.")

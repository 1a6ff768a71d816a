"""Generation request/result models.

``GenerationSource`` mirrors what the section editor shows next to
generated text: which uploaded document each retrieved chunk came from,
a short excerpt, and the retrieval similarity.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.models.rag import RetrievedChunk

_REFERENCE_CHARS = 100
_EXCERPT_CHARS = 200


class GenerationSource(BaseModel):
    """A document chunk that was offered to the model as context."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(description="Source document name.")
    type: Literal["document"] = "document"
    reference: str = Field(description="First 100 characters of the chunk.")
    excerpt: str = Field(description="First 200 characters of the chunk.")
    page: int = 1
    confidence: float = Field(ge=0.0, le=1.0, description="Retrieval similarity.")

    @classmethod
    def from_retrieved(cls, retrieved: RetrievedChunk) -> GenerationSource:
        chunk = retrieved.chunk
        return cls(
            id=chunk.chunk_id,
            name=chunk.source or "Documento",
            reference=chunk.text[:_REFERENCE_CHARS] + "...",
            excerpt=chunk.text[:_EXCERPT_CHARS] + "...",
            page=chunk.page,
            confidence=retrieved.similarity_score,
        )


class GenerationRequest(BaseModel):
    """Parameters for generating one section."""

    section_key: str = Field(min_length=1)
    model: str | None = Field(default=None, description="Catalogue model id; None picks the default.")
    char_limit: int | None = Field(default=None, gt=0, le=50000)
    instruction: str | None = Field(
        default=None,
        max_length=2000,
        description="Revision instruction; when set the current section text is refined.",
    )
    auto_save: bool = True


class GenerationResult(BaseModel):
    """Text produced for a section plus provenance."""

    model_config = ConfigDict(frozen=True)

    section_key: str
    text: str
    chars_used: int
    char_limit: int
    truncated: bool = False
    sources: list[GenerationSource] = Field(default_factory=list)
    chunks_used: int = 0
    search_method: Literal["vector", "none"] = "none"
    provider: str
    model: str
    generation_id: str
    saved: bool = False


class GenerationRecord(BaseModel):
    """Log entry written for every successful generation."""

    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    section_key: str
    model: str
    provider: str | None = None
    timestamp: datetime

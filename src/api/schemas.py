"""Pydantic request/response schemas for the candidaturas API.

Domain models (Project, ProjectSection, IndexedFile, GenerationResult,
...) are returned as-is where their shape is already the public contract;
the schemas here cover request bodies and the envelopes around lists and
system endpoints.

Convention: Request schemas end with "Request", response schemas end with
"Response".  Field(...) adds constraints and descriptions for the
OpenAPI docs at /docs.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.config.model_catalog import ModelEntry
from src.config.pt2030_sections import PT2030Section
from src.models.export import ExportRecord
from src.models.generation import GenerationRecord, GenerationSource
from src.models.project import IndexedFile, Project, ProjectSection
from src.models.rag import IndexingResult


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ProvidersResponse(BaseModel):
    """List of configured service providers and their availability."""

    providers: list[dict[str, Any]]


class ProviderTestResult(BaseModel):
    provider: str
    available: bool
    connected: bool
    error: str | None = None


class ProviderTestResponse(BaseModel):
    """Result of a live credential check against every LLM provider."""

    results: list[ProviderTestResult]


class ModelsResponse(BaseModel):
    models: list[ModelEntry]
    default_model: str | None = None


class SectionCatalogResponse(BaseModel):
    sections: list[PT2030Section]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


# ---------------------------------------------------------------------------
# Projects and sections
# ---------------------------------------------------------------------------


class ProjectListResponse(BaseModel):
    projects: list[Project]
    total: int


class SectionListResponse(BaseModel):
    sections: list[ProjectSection]


class SaveSectionRequest(BaseModel):
    """New content for a section (replaces the current text)."""

    content: str = Field(default="", max_length=50000)


class GenerateSectionRequest(BaseModel):
    """Options for generating a section; the section comes from the path."""

    model: str | None = Field(default=None, description="Catalogue model id.")
    char_limit: int | None = Field(default=None, gt=0, le=50000)
    auto_save: bool = True


class RefineSectionRequest(BaseModel):
    """Revision instruction applied to the section's current text."""

    instruction: str = Field(..., min_length=1, max_length=2000)
    model: str | None = None
    char_limit: int | None = Field(default=None, gt=0, le=50000)
    auto_save: bool = True


class GenerationListResponse(BaseModel):
    generations: list[GenerationRecord]


# ---------------------------------------------------------------------------
# Files and retrieval
# ---------------------------------------------------------------------------


class FileUploadResponse(BaseModel):
    """Upload accepted; indexing continues in the background."""

    file: IndexedFile
    indexing: str = Field(default="scheduled", description="'scheduled' or 'skipped'.")


class FileListResponse(BaseModel):
    files: list[IndexedFile]


class IndexFileResponse(BaseModel):
    result: IndexingResult
    file: IndexedFile | None = None


class SearchRequest(BaseModel):
    """Retrieval preview over a project's indexed documents."""

    query: str = Field(..., min_length=1, max_length=2000)
    top_k: int = Field(default=8, ge=1, le=50)
    min_similarity: float | None = Field(default=None, ge=0.0, le=1.0)


class SearchResult(BaseModel):
    text: str
    similarity: float
    metadata: dict[str, Any]
    source: GenerationSource


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResult]
    search_method: str


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


class ExportRequestBody(BaseModel):
    """Export options; validated by the export service."""

    format: str = "pdf"
    language: str = "pt"
    include_attachments: bool = False


class ExportListResponse(BaseModel):
    exports: list[ExportRecord]

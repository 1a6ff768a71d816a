"""Domain models — re-exports all public model classes.

Organized by concern:
    - project.py    — Projects, sections, uploaded files, stats
    - rag.py        — Document chunks, retrieval results, indexing results
    - generation.py — Generation requests, results, sources, log records
    - export.py     — Export options, rendered documents, log records
"""

from __future__ import annotations

from src.models.export import (
    ExportedDocument,
    ExportFormat,
    ExportLanguage,
    ExportRecord,
    ExportRequest,
)
from src.models.generation import (
    GenerationRecord,
    GenerationRequest,
    GenerationResult,
    GenerationSource,
)
from src.models.project import (
    FileStatus,
    IndexedFile,
    Project,
    ProjectCreate,
    ProjectSection,
    ProjectStats,
    ProjectStatus,
    ProjectUpdate,
)
from src.models.rag import DocumentChunk, IndexingResult, RetrievedChunk

__all__ = [
    "DocumentChunk",
    "ExportFormat",
    "ExportLanguage",
    "ExportRecord",
    "ExportRequest",
    "ExportedDocument",
    "FileStatus",
    "GenerationRecord",
    "GenerationRequest",
    "GenerationResult",
    "GenerationSource",
    "IndexedFile",
    "IndexingResult",
    "Project",
    "ProjectCreate",
    "ProjectSection",
    "ProjectStats",
    "ProjectStatus",
    "ProjectUpdate",
    "RetrievedChunk",
]

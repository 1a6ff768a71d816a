"""Project, section, and uploaded-file models.

A project is one grant application owned by a user.  It holds the PT2030
sections (seeded from :mod:`src.config.pt2030_sections` at creation) and
the supporting documents uploaded for retrieval.  All persisted models are
frozen; updates go through the project store and return new instances.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ProjectStatus(str, Enum):
    """Lifecycle of an application."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class FileStatus(str, Enum):
    """Indexing state of an uploaded document.

    pending -> processing -> indexed | failed.  Reindexing re-enters
    processing from either terminal state.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    INDEXED = "indexed"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class ProjectCreate(BaseModel):
    """Fields a user supplies when creating a project."""

    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    organization: str | None = None
    program: str | None = Field(default="PT2030")
    region: str | None = None
    budget: float | None = Field(default=None, ge=0)
    contact_email: str | None = None
    contact_phone: str | None = None


class ProjectUpdate(BaseModel):
    """Partial update; ``None`` fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    organization: str | None = None
    program: str | None = None
    region: str | None = None
    budget: float | None = Field(default=None, ge=0)
    contact_email: str | None = None
    contact_phone: str | None = None
    status: ProjectStatus | None = None


class Project(BaseModel):
    """A persisted grant application."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    title: str
    description: str | None = None
    organization: str | None = None
    program: str | None = None
    region: str | None = None
    budget: float | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    status: ProjectStatus = ProjectStatus.DRAFT
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


class ProjectSection(BaseModel):
    """One section of a project's application text."""

    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    key: str = Field(description="Catalogue code, e.g. '4.i'.")
    title: str
    description: str | None = None
    char_limit: int | None = Field(default=None, gt=0)
    content: str = ""
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def char_count(self) -> int:
        return len(self.content)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_complete(self) -> bool:
        return bool(self.content.strip())


# ---------------------------------------------------------------------------
# Uploaded documents
# ---------------------------------------------------------------------------


class IndexedFile(BaseModel):
    """A supporting document uploaded to a project."""

    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    file_name: str = Field(description="Original file name as uploaded.")
    file_type: str = Field(description="MIME type reported at upload.")
    file_size: int = Field(default=0, ge=0)
    category: str = "general"
    storage_path: str = Field(description="Path relative to the storage root.")
    status: FileStatus = FileStatus.PENDING
    error_message: str | None = None
    chunk_count: int = Field(default=0, ge=0)
    created_at: datetime
    updated_at: datetime


class ProjectStats(BaseModel):
    """Progress figures for one project."""

    model_config = ConfigDict(frozen=True)

    total_sections: int = 0
    completed_sections: int = 0
    completion_percentage: float = 0.0
    total_chars: int = 0
    total_char_limit: int = 0
    char_usage_percentage: float = 0.0
    files_by_status: dict[str, int] = Field(default_factory=dict)
    generations: int = 0

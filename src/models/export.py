"""Export request and record models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ExportFormat(str, Enum):
    PDF = "pdf"
    DOCX = "docx"


class ExportLanguage(str, Enum):
    PT = "pt"
    EN = "en"


class ExportRequest(BaseModel):
    """Options for rendering a project document."""

    format: ExportFormat = ExportFormat.PDF
    language: ExportLanguage = ExportLanguage.PT
    include_attachments: bool = False


class ExportedDocument(BaseModel):
    """A rendered document ready to be streamed to the client."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    media_type: str
    content: bytes = Field(repr=False)
    export_id: str


class ExportRecord(BaseModel):
    """Log entry for one export."""

    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    format: ExportFormat
    language: ExportLanguage
    file_name: str
    created_at: datetime

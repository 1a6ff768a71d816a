"""Abstract base class for project persistence.

Stores projects, their sections, uploaded-file records, and the
generation/export logs.  Document chunks live in the vector store, not
here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.export import ExportRecord
from src.models.generation import GenerationRecord
from src.models.project import FileStatus, IndexedFile, Project, ProjectSection


# Concrete implementation: SQLiteProjectStore (src/providers/storage/)
class IProjectStore(ABC):
    """Contract for the relational side of the application."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they do not exist."""

    # -- Projects ---------------------------------------------------------

    @abstractmethod
    async def create_project(
        self,
        user_id: str,
        fields: dict[str, Any],
        sections: list[dict[str, Any]] | None = None,
    ) -> Project:
        """Insert a project owned by *user_id* and return it.

        *sections* (same shape as :meth:`add_sections`) are inserted in the
        same transaction: either the project and all its sections exist
        afterwards, or neither does.
        """

    @abstractmethod
    async def get_project(self, project_id: str) -> Project | None:
        """Return the project or ``None`` if it does not exist."""

    @abstractmethod
    async def list_projects(self, user_id: str) -> list[Project]:
        """Return the user's projects, most recently updated first."""

    @abstractmethod
    async def update_project(self, project_id: str, fields: dict[str, Any]) -> Project | None:
        """Apply *fields* and return the updated project (``None`` if missing)."""

    @abstractmethod
    async def delete_project(self, project_id: str) -> bool:
        """Delete the project and everything that references it.

        Returns ``True`` if a project row was removed.
        """

    # -- Sections ---------------------------------------------------------

    @abstractmethod
    async def add_sections(self, project_id: str, sections: list[dict[str, Any]]) -> list[ProjectSection]:
        """Insert sections (dicts with key, title, description, char_limit)."""

    @abstractmethod
    async def list_sections(self, project_id: str) -> list[ProjectSection]:
        """Return every section of the project."""

    @abstractmethod
    async def get_section(self, project_id: str, key: str) -> ProjectSection | None:
        """Return one section by key, or ``None``."""

    @abstractmethod
    async def update_section_content(self, project_id: str, key: str, content: str) -> ProjectSection | None:
        """Replace a section's content and bump ``updated_at``."""

    # -- Files ------------------------------------------------------------

    @abstractmethod
    async def create_file(self, project_id: str, fields: dict[str, Any]) -> IndexedFile:
        """Record an uploaded document with status ``pending``."""

    @abstractmethod
    async def get_file(self, file_id: str) -> IndexedFile | None:
        """Return one file record, or ``None``."""

    @abstractmethod
    async def list_files(self, project_id: str) -> list[IndexedFile]:
        """Return the project's file records, newest first."""

    @abstractmethod
    async def update_file_status(
        self,
        file_id: str,
        status: FileStatus,
        error_message: str | None = None,
        chunk_count: int | None = None,
    ) -> IndexedFile | None:
        """Move a file to *status*; ``error_message`` is cleared unless given."""

    @abstractmethod
    async def delete_file(self, file_id: str) -> bool:
        """Delete a file record.  Returns ``True`` if a row was removed."""

    # -- Logs -------------------------------------------------------------

    @abstractmethod
    async def record_generation(
        self,
        project_id: str,
        section_key: str,
        model: str,
        provider: str | None = None,
    ) -> GenerationRecord:
        """Append a generation log entry."""

    @abstractmethod
    async def list_generations(self, project_id: str, limit: int = 100) -> list[GenerationRecord]:
        """Return recent generation log entries, newest first."""

    @abstractmethod
    async def count_generations(self, project_id: str) -> int:
        """Return the number of generation log entries for the project."""

    @abstractmethod
    async def record_export(
        self,
        project_id: str,
        export_format: str,
        language: str,
        file_name: str,
    ) -> ExportRecord:
        """Append an export log entry."""

    @abstractmethod
    async def list_exports(self, project_id: str) -> list[ExportRecord]:
        """Return export log entries, newest first."""

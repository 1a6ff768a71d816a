"""Project, section, and uploaded-file management.

Every public method that takes a ``user_id`` checks ownership: a project
owned by someone else is reported as not found, the same as a missing one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from src.config.pt2030_sections import PT2030_SECTIONS, section_order
from src.models.export import ExportRecord
from src.models.generation import GenerationRecord
from src.models.project import (
    IndexedFile,
    Project,
    ProjectCreate,
    ProjectSection,
    ProjectStats,
    ProjectUpdate,
)
from src.services.ingestion.text_extractor import SUPPORTED_EXTENSIONS, is_supported
from src.utils.errors import (
    CharLimitExceededError,
    InvalidInputError,
    NotFoundError,
    RAGError,
    UnsupportedFileTypeError,
)
from src.utils.filenames import build_storage_path, file_extension

if TYPE_CHECKING:
    from src.interfaces.file_storage_provider import IFileStorageProvider
    from src.interfaces.project_store import IProjectStore
    from src.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)


def _percentage(part: int | float, whole: int | float) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 1)


class ProjectService:
    """CRUD over projects with their sections and supporting documents."""

    def __init__(
        self,
        store: IProjectStore,
        file_storage: IFileStorageProvider,
        vector_store: IVectorStoreProvider | None = None,
        max_upload_mb: int = 20,
    ) -> None:
        self._store = store
        self._file_storage = file_storage
        self._vector_store = vector_store
        self._max_upload_bytes = max_upload_mb * 1024 * 1024

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def create_project(self, user_id: str, data: ProjectCreate) -> Project:
        """Create a project seeded with every PT2030 catalogue section."""
        project = await self._store.create_project(
            user_id,
            data.model_dump(),
            sections=[
                {
                    "key": s.code,
                    "title": s.title,
                    "description": s.description,
                    "char_limit": s.char_limit,
                    "content": "",
                }
                for s in PT2030_SECTIONS
            ],
        )
        logger.info(
            "project_seeded",
            project_id=project.id,
            user_id=user_id,
            sections=len(PT2030_SECTIONS),
        )
        return project

    async def list_projects(self, user_id: str) -> list[Project]:
        return await self._store.list_projects(user_id)

    async def get_project(self, user_id: str, project_id: str) -> Project:
        project = await self._store.get_project(project_id)
        if project is None or project.user_id != user_id:
            raise NotFoundError(message=f"Projeto não encontrado: {project_id}")
        return project

    async def update_project(self, user_id: str, project_id: str, data: ProjectUpdate) -> Project:
        await self.get_project(user_id, project_id)
        fields = data.model_dump(exclude_none=True)
        updated = await self._store.update_project(project_id, fields)
        if updated is None:
            raise NotFoundError(message=f"Projeto não encontrado: {project_id}")
        logger.info("project_updated", project_id=project_id, fields=sorted(fields))
        return updated

    async def delete_project(self, user_id: str, project_id: str) -> None:
        """Delete the project, its stored files, and its vector chunks.

        The store cascades the row delete to sections, file records, and
        the generation and export logs.
        """
        await self.get_project(user_id, project_id)
        files = await self._store.list_files(project_id)
        for record in files:
            await self._file_storage.delete(record.storage_path)

        deleted_chunks = 0
        if self._vector_store is not None:
            try:
                deleted_chunks = await self._vector_store.delete_by_project(project_id)
            except RAGError as exc:
                logger.warning("project_chunks_delete_failed", project_id=project_id, error=str(exc))

        await self._store.delete_project(project_id)
        logger.info(
            "project_deleted",
            project_id=project_id,
            files=len(files),
            chunks=deleted_chunks,
        )

    async def get_stats(self, user_id: str, project_id: str) -> ProjectStats:
        await self.get_project(user_id, project_id)
        sections = await self._store.list_sections(project_id)
        files = await self._store.list_files(project_id)
        generations = await self._store.count_generations(project_id)

        completed = sum(1 for s in sections if s.is_complete)
        total_chars = sum(s.char_count for s in sections)
        total_limit = sum(s.char_limit or 0 for s in sections)
        files_by_status: dict[str, int] = {}
        for record in files:
            files_by_status[record.status.value] = files_by_status.get(record.status.value, 0) + 1

        return ProjectStats(
            total_sections=len(sections),
            completed_sections=completed,
            completion_percentage=_percentage(completed, len(sections)),
            total_chars=total_chars,
            total_char_limit=total_limit,
            char_usage_percentage=_percentage(total_chars, total_limit),
            files_by_status=files_by_status,
            generations=generations,
        )

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    async def list_sections(self, user_id: str, project_id: str) -> list[ProjectSection]:
        """Return the project's sections in catalogue order."""
        await self.get_project(user_id, project_id)
        sections = await self._store.list_sections(project_id)
        return sorted(sections, key=lambda s: section_order(s.key))

    async def get_section(self, user_id: str, project_id: str, key: str) -> ProjectSection:
        await self.get_project(user_id, project_id)
        section = await self._store.get_section(project_id, key)
        if section is None:
            raise NotFoundError(message=f"Secção não encontrada: {key}")
        return section

    async def save_section(self, user_id: str, project_id: str, key: str, content: str) -> ProjectSection:
        section = await self.get_section(user_id, project_id, key)
        if section.char_limit is not None and len(content) > section.char_limit:
            raise CharLimitExceededError(
                message=(
                    f"O conteúdo tem {len(content)} caracteres; "
                    f"o limite da secção {key} é {section.char_limit}"
                ),
            )
        updated = await self._store.update_section_content(project_id, key, content)
        if updated is None:
            raise NotFoundError(message=f"Secção não encontrada: {key}")
        logger.info("section_saved", project_id=project_id, section_key=key, chars=len(content))
        return updated

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def upload_file(
        self,
        user_id: str,
        project_id: str,
        file_name: str,
        data: bytes,
        content_type: str | None = None,
        category: str = "general",
    ) -> IndexedFile:
        """Store an uploaded document and record it as ``pending``.

        Indexing is a separate step (see :class:`IndexingService`).
        """
        await self.get_project(user_id, project_id)
        if not file_name:
            raise InvalidInputError(message="Nome de ficheiro em falta")
        if not is_supported(file_name):
            raise UnsupportedFileTypeError(
                message=(
                    f"Tipo de ficheiro não suportado: {file_name}. "
                    f"Formatos aceites: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
                ),
            )
        if not data:
            raise InvalidInputError(message="O ficheiro está vazio")
        self.check_upload_size(len(data))

        storage_path = build_storage_path(user_id, project_id, file_name)
        await self._file_storage.save(storage_path, data)
        record = await self._store.create_file(
            project_id,
            {
                "file_name": file_name,
                "file_type": content_type or f"application/{file_extension(file_name)}",
                "file_size": len(data),
                "category": category or "general",
                "storage_path": storage_path,
            },
        )
        logger.info(
            "file_uploaded",
            project_id=project_id,
            file_id=record.id,
            file_name=file_name,
            size=len(data),
        )
        return record

    def check_upload_size(self, size: int) -> None:
        """Raise :class:`InvalidInputError` when *size* bytes exceed the upload limit."""
        if size > self._max_upload_bytes:
            raise InvalidInputError(
                message=f"O ficheiro excede o limite de {self._max_upload_bytes // (1024 * 1024)} MB",
            )

    async def list_files(self, user_id: str, project_id: str) -> list[IndexedFile]:
        await self.get_project(user_id, project_id)
        return await self._store.list_files(project_id)

    async def get_file(self, user_id: str, project_id: str, file_id: str) -> IndexedFile:
        await self.get_project(user_id, project_id)
        record = await self._store.get_file(file_id)
        if record is None or record.project_id != project_id:
            raise NotFoundError(message=f"Ficheiro não encontrado: {file_id}")
        return record

    async def delete_file(self, user_id: str, project_id: str, file_id: str) -> None:
        """Remove the file's chunks, the stored bytes, and its record.

        Chunks go first: a vector-store failure raises :class:`RAGError`
        with the bytes and record still in place, so the call can be retried.
        """
        record = await self.get_file(user_id, project_id, file_id)
        if self._vector_store is not None:
            await self._vector_store.delete_by_file(file_id)
        await self._file_storage.delete(record.storage_path)
        await self._store.delete_file(file_id)
        logger.info("file_removed", project_id=project_id, file_id=file_id)

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    async def list_generations(self, user_id: str, project_id: str, limit: int = 100) -> list[GenerationRecord]:
        await self.get_project(user_id, project_id)
        return await self._store.list_generations(project_id, limit=limit)

    async def list_exports(self, user_id: str, project_id: str) -> list[ExportRecord]:
        await self.get_project(user_id, project_id)
        return await self._store.list_exports(project_id)

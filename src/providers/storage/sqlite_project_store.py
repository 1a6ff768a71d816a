"""SQLite-backed project store.

Persists projects, sections, uploaded-file records, and the generation and
export logs to a local SQLite database at ``data/candidaturas.db``.  Uses
``aiosqlite`` for async I/O with one short-lived connection per call.

Deleting a project cascades to its sections, files, and logs through
``ON DELETE CASCADE``; SQLite only enforces foreign keys when the pragma
is enabled, so every connection turns it on.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.project_store import IProjectStore
from src.models.export import ExportRecord
from src.models.generation import GenerationRecord
from src.models.project import FileStatus, IndexedFile, Project, ProjectSection
from src.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/candidaturas.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS projects (
    id             TEXT PRIMARY KEY,
    user_id        TEXT NOT NULL,
    title          TEXT NOT NULL,
    description    TEXT,
    organization   TEXT,
    program        TEXT,
    region         TEXT,
    budget         REAL,
    contact_email  TEXT,
    contact_phone  TEXT,
    status         TEXT NOT NULL DEFAULT 'draft',
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS sections (
    id           TEXT PRIMARY KEY,
    project_id   TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    key          TEXT NOT NULL,
    title        TEXT NOT NULL,
    description  TEXT,
    char_limit   INTEGER,
    content      TEXT NOT NULL DEFAULT '',
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL,
    UNIQUE(project_id, key)
);
""",
    """\
CREATE TABLE IF NOT EXISTS indexed_files (
    id             TEXT PRIMARY KEY,
    project_id     TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    file_name      TEXT NOT NULL,
    file_type      TEXT NOT NULL,
    file_size      INTEGER NOT NULL DEFAULT 0,
    category       TEXT NOT NULL DEFAULT 'general',
    storage_path   TEXT NOT NULL,
    status         TEXT NOT NULL DEFAULT 'pending',
    error_message  TEXT,
    chunk_count    INTEGER NOT NULL DEFAULT 0,
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS generations (
    id           TEXT PRIMARY KEY,
    project_id   TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    section_key  TEXT NOT NULL,
    model        TEXT NOT NULL,
    provider     TEXT,
    timestamp    TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS exports (
    id           TEXT PRIMARY KEY,
    project_id   TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    format       TEXT NOT NULL,
    language     TEXT NOT NULL,
    file_name    TEXT NOT NULL,
    created_at   TEXT NOT NULL
);
""",
]

_INSERT_SECTION_SQL = (
    "INSERT INTO sections (id, project_id, key, title, description, char_limit, "
    "content, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
    "ON CONFLICT(project_id, key) DO NOTHING"
)

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_projects_user ON projects(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_sections_project ON sections(project_id);",
    "CREATE INDEX IF NOT EXISTS idx_files_project ON indexed_files(project_id);",
    "CREATE INDEX IF NOT EXISTS idx_generations_project ON generations(project_id);",
    "CREATE INDEX IF NOT EXISTS idx_exports_project ON exports(project_id);",
]

_PROJECT_COLUMNS = (
    "title",
    "description",
    "organization",
    "program",
    "region",
    "budget",
    "contact_email",
    "contact_phone",
    "status",
)

_FILE_COLUMNS = ("file_name", "file_type", "file_size", "category", "storage_path")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


def _section_rows(project_id: str, sections: list[dict[str, Any]], now: str) -> list[tuple]:
    return [
        (
            _new_id(),
            project_id,
            section["key"],
            section["title"],
            section.get("description"),
            section.get("char_limit"),
            section.get("content", ""),
            now,
            now,
        )
        for section in sections
    ]


def _plain(value: Any) -> Any:
    """Unwrap str enums so sqlite3 can bind them."""
    return value.value if hasattr(value, "value") else value


class SQLiteProjectStore(IProjectStore):
    """SQLite-backed project persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys = ON;")
                yield db
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"SQLite operation failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("project_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def create_project(
        self,
        user_id: str,
        fields: dict[str, Any],
        sections: list[dict[str, Any]] | None = None,
    ) -> Project:
        project_id = _new_id()
        now = _now()
        values = {col: _plain(fields.get(col)) for col in _PROJECT_COLUMNS}
        values["status"] = values["status"] or "draft"
        columns = ", ".join(("id", "user_id", *_PROJECT_COLUMNS, "created_at", "updated_at"))
        placeholders = ", ".join("?" * (len(_PROJECT_COLUMNS) + 4))

        async with self._connect() as db:
            await db.execute(
                f"INSERT INTO projects ({columns}) VALUES ({placeholders})",
                (project_id, user_id, *values.values(), now, now),
            )
            if sections:
                await db.executemany(_INSERT_SECTION_SQL, _section_rows(project_id, sections, now))
            await db.commit()

        logger.info("project_created", project_id=project_id, user_id=user_id, sections=len(sections or ()))
        project = await self.get_project(project_id)
        if project is None:
            raise StorageError(message="Project vanished after insert", provider_name="sqlite")
        return project

    async def get_project(self, project_id: str) -> Project | None:
        async with self._connect() as db:
            cursor = await db.execute("SELECT * FROM projects WHERE id = ?", (project_id,))
            row = await cursor.fetchone()
        return Project(**dict(row)) if row else None

    async def list_projects(self, user_id: str) -> list[Project]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM projects WHERE user_id = ? ORDER BY updated_at DESC",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [Project(**dict(r)) for r in rows]

    async def update_project(self, project_id: str, fields: dict[str, Any]) -> Project | None:
        updates = {k: _plain(v) for k, v in fields.items() if k in _PROJECT_COLUMNS}
        if updates:
            assignments = ", ".join(f"{col} = ?" for col in updates)
            async with self._connect() as db:
                await db.execute(
                    f"UPDATE projects SET {assignments}, updated_at = ? WHERE id = ?",
                    (*updates.values(), _now(), project_id),
                )
                await db.commit()
        return await self.get_project(project_id)

    async def delete_project(self, project_id: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM projects WHERE id = ?", (project_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
        logger.info("project_deleted", project_id=project_id, deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    async def add_sections(self, project_id: str, sections: list[dict[str, Any]]) -> list[ProjectSection]:
        async with self._connect() as db:
            await db.executemany(_INSERT_SECTION_SQL, _section_rows(project_id, sections, _now()))
            await db.commit()
        return await self.list_sections(project_id)

    async def list_sections(self, project_id: str) -> list[ProjectSection]:
        # rowid keeps catalogue insertion order.
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM sections WHERE project_id = ? ORDER BY rowid",
                (project_id,),
            )
            rows = await cursor.fetchall()
        return [ProjectSection(**dict(r)) for r in rows]

    async def get_section(self, project_id: str, key: str) -> ProjectSection | None:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM sections WHERE project_id = ? AND key = ?",
                (project_id, key),
            )
            row = await cursor.fetchone()
        return ProjectSection(**dict(row)) if row else None

    async def update_section_content(self, project_id: str, key: str, content: str) -> ProjectSection | None:
        now = _now()
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE sections SET content = ?, updated_at = ? WHERE project_id = ? AND key = ?",
                (content, now, project_id, key),
            )
            if cursor.rowcount > 0:
                await db.execute("UPDATE projects SET updated_at = ? WHERE id = ?", (now, project_id))
            await db.commit()
        return await self.get_section(project_id, key)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def create_file(self, project_id: str, fields: dict[str, Any]) -> IndexedFile:
        file_id = _new_id()
        now = _now()
        values = [fields.get(col) for col in _FILE_COLUMNS]
        values[3] = values[3] or "general"
        async with self._connect() as db:
            await db.execute(
                "INSERT INTO indexed_files (id, project_id, file_name, file_type, file_size, "
                "category, storage_path, status, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (file_id, project_id, *values, FileStatus.PENDING.value, now, now),
            )
            await db.commit()
        record = await self.get_file(file_id)
        if record is None:
            raise StorageError(message="File record vanished after insert", provider_name="sqlite")
        return record

    async def get_file(self, file_id: str) -> IndexedFile | None:
        async with self._connect() as db:
            cursor = await db.execute("SELECT * FROM indexed_files WHERE id = ?", (file_id,))
            row = await cursor.fetchone()
        return IndexedFile(**dict(row)) if row else None

    async def list_files(self, project_id: str) -> list[IndexedFile]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM indexed_files WHERE project_id = ? ORDER BY created_at DESC, rowid DESC",
                (project_id,),
            )
            rows = await cursor.fetchall()
        return [IndexedFile(**dict(r)) for r in rows]

    async def update_file_status(
        self,
        file_id: str,
        status: FileStatus,
        error_message: str | None = None,
        chunk_count: int | None = None,
    ) -> IndexedFile | None:
        async with self._connect() as db:
            if chunk_count is None:
                await db.execute(
                    "UPDATE indexed_files SET status = ?, error_message = ?, updated_at = ? WHERE id = ?",
                    (_plain(status), error_message, _now(), file_id),
                )
            else:
                await db.execute(
                    "UPDATE indexed_files SET status = ?, error_message = ?, chunk_count = ?, "
                    "updated_at = ? WHERE id = ?",
                    (_plain(status), error_message, chunk_count, _now(), file_id),
                )
            await db.commit()
        logger.debug("file_status_updated", file_id=file_id, status=_plain(status))
        return await self.get_file(file_id)

    async def delete_file(self, file_id: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM indexed_files WHERE id = ?", (file_id,))
            await db.commit()
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    async def record_generation(
        self,
        project_id: str,
        section_key: str,
        model: str,
        provider: str | None = None,
    ) -> GenerationRecord:
        record = GenerationRecord(
            id=_new_id(),
            project_id=project_id,
            section_key=section_key,
            model=model,
            provider=provider,
            timestamp=datetime.now(timezone.utc),
        )
        async with self._connect() as db:
            await db.execute(
                "INSERT INTO generations (id, project_id, section_key, model, provider, timestamp) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (record.id, project_id, section_key, model, provider, record.timestamp.isoformat()),
            )
            await db.commit()
        return record

    async def list_generations(self, project_id: str, limit: int = 100) -> list[GenerationRecord]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM generations WHERE project_id = ? ORDER BY timestamp DESC LIMIT ?",
                (project_id, limit),
            )
            rows = await cursor.fetchall()
        return [GenerationRecord(**dict(r)) for r in rows]

    async def count_generations(self, project_id: str) -> int:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM generations WHERE project_id = ?",
                (project_id,),
            )
            row = await cursor.fetchone()
        return row[0]

    async def record_export(
        self,
        project_id: str,
        export_format: str,
        language: str,
        file_name: str,
    ) -> ExportRecord:
        record = ExportRecord(
            id=_new_id(),
            project_id=project_id,
            format=export_format,
            language=language,
            file_name=file_name,
            created_at=datetime.now(timezone.utc),
        )
        async with self._connect() as db:
            await db.execute(
                "INSERT INTO exports (id, project_id, format, language, file_name, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    project_id,
                    record.format.value,
                    record.language.value,
                    file_name,
                    record.created_at.isoformat(),
                ),
            )
            await db.commit()
        return record

    async def list_exports(self, project_id: str) -> list[ExportRecord]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM exports WHERE project_id = ? ORDER BY created_at DESC",
                (project_id,),
            )
            rows = await cursor.fetchall()
        return [ExportRecord(**dict(r)) for r in rows]

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return "sqlite"

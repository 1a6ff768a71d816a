"""Persistence adapters.

SQLiteProjectStore   — projects, sections, file records, logs (aiosqlite)
LocalFileStorage     — raw uploaded bytes on local disk
"""

from src.providers.storage.local_file_storage import LocalFileStorage
from src.providers.storage.sqlite_project_store import SQLiteProjectStore

__all__ = ["LocalFileStorage", "SQLiteProjectStore"]

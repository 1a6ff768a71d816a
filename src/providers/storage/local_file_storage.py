"""Local-disk storage for uploaded documents.

Files live under a single root directory (``STORAGE_DIR``), addressed by
the relative paths built in :func:`src.utils.filenames.build_storage_path`.
Blocking disk I/O runs in ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from src.interfaces.file_storage_provider import IFileStorageProvider
from src.utils.errors import NotFoundError, StorageError

logger = structlog.get_logger(logger_name=__name__)


class LocalFileStorage(IFileStorageProvider):
    """Stores uploaded bytes on the local filesystem."""

    def __init__(self, root_dir: str | Path = "data/uploads") -> None:
        self._root = Path(root_dir).resolve()

    def _resolve(self, path: str) -> Path:
        """Map a relative storage path to an absolute one under the root."""
        target = (self._root / path).resolve()
        if target == self._root or not target.is_relative_to(self._root):
            raise StorageError(
                message=f"Storage path escapes the storage root: {path!r}",
                provider_name=self.get_provider_name(),
            )
        return target

    async def save(self, path: str, data: bytes) -> str:
        target = self._resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise StorageError(
                message=f"Could not write {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("file_stored", path=path, size=len(data))
        return path

    async def read(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFoundError(message=f"Stored file not found: {path}")
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise StorageError(
                message=f"Could not read {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.is_file():
            return False
        try:
            await asyncio.to_thread(target.unlink)
        except OSError as exc:
            raise StorageError(
                message=f"Could not delete {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("file_deleted", path=path)
        return True

    async def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def get_provider_name(self) -> str:
        return "local_storage"

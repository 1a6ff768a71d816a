"""Abstract base class for uploaded-document storage."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: LocalFileStorage (src/providers/storage/)
class IFileStorageProvider(ABC):
    """Contract for storing raw uploaded bytes under relative paths.

    Paths look like ``{user_id}/{project_id}/{name}_{timestamp}.{ext}``
    (see :func:`src.utils.filenames.build_storage_path`).
    """

    @abstractmethod
    async def save(self, path: str, data: bytes) -> str:
        """Write *data* at *path* and return the stored path.

        Raises
        ------
        src.utils.errors.StorageError
            If the path escapes the storage root or the write fails.
        """

    @abstractmethod
    async def read(self, path: str) -> bytes:
        """Return the bytes stored at *path*.

        Raises
        ------
        src.utils.errors.NotFoundError
            If nothing is stored at *path*.
        """

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Remove *path*.  Returns ``False`` if it did not exist."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Return ``True`` if *path* is stored."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this storage backend."""

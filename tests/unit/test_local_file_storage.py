"""Unit tests for LocalFileStorage."""

from __future__ import annotations

import pytest

from src.providers.storage.local_file_storage import LocalFileStorage
from src.utils.errors import NotFoundError, StorageError


class TestLocalFileStorage:
    @pytest.mark.asyncio
    async def test_save_read_delete(self, file_storage: LocalFileStorage) -> None:
        path = "u1/p1/plano_1.pdf"
        assert await file_storage.save(path, b"%PDF-1.4") == path
        assert await file_storage.exists(path) is True
        assert await file_storage.read(path) == b"%PDF-1.4"

        assert await file_storage.delete(path) is True
        assert await file_storage.exists(path) is False
        assert await file_storage.delete(path) is False

    @pytest.mark.asyncio
    async def test_save_creates_directories(self, file_storage: LocalFileStorage, tmp_path) -> None:
        await file_storage.save("a/b/c/d.txt", b"x")
        assert (tmp_path / "uploads" / "a" / "b" / "c" / "d.txt").read_bytes() == b"x"

    @pytest.mark.asyncio
    async def test_read_missing(self, file_storage: LocalFileStorage) -> None:
        with pytest.raises(NotFoundError):
            await file_storage.read("u1/p1/ghost.pdf")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["../outside.txt", "u1/../../etc/passwd", "", "."])
    async def test_rejects_paths_outside_root(self, file_storage: LocalFileStorage, path: str) -> None:
        with pytest.raises(StorageError):
            await file_storage.save(path, b"x")

    def test_provider_name(self, file_storage: LocalFileStorage) -> None:
        assert file_storage.get_provider_name() == "local_storage"

"""Unit tests for ProjectService over a real SQLite store and file storage."""

from __future__ import annotations

import pytest

from src.config.pt2030_sections import PT2030_SECTIONS
from src.models.project import FileStatus, ProjectCreate, ProjectStatus, ProjectUpdate
from src.services.project_service import ProjectService
from src.utils.errors import (
    CharLimitExceededError,
    InvalidInputError,
    NotFoundError,
    RAGError,
    UnsupportedFileTypeError,
)


@pytest.fixture
def service(sqlite_store, file_storage, mock_vector_store) -> ProjectService:
    return ProjectService(
        store=sqlite_store,
        file_storage=file_storage,
        vector_store=mock_vector_store,
        max_upload_mb=1,
    )


async def _create(service: ProjectService, user_id: str = "u1", title: str = "Expansão Norte"):
    return await service.create_project(user_id, ProjectCreate(title=title, organization="Têxteis SA"))


class TestProjects:
    @pytest.mark.asyncio
    async def test_create_seeds_catalogue_sections(self, service) -> None:
        project = await _create(service)

        assert project.program == "PT2030"
        assert project.status == ProjectStatus.DRAFT
        sections = await service.list_sections("u1", project.id)
        assert [s.key for s in sections] == [s.code for s in PT2030_SECTIONS]
        assert sections[0].char_limit == 1500
        assert all(s.content == "" for s in sections)

    @pytest.mark.asyncio
    async def test_other_user_sees_not_found(self, service) -> None:
        project = await _create(service)

        with pytest.raises(NotFoundError):
            await service.get_project("intruder", project.id)
        with pytest.raises(NotFoundError):
            await service.list_sections("intruder", project.id)
        with pytest.raises(NotFoundError):
            await service.delete_project("intruder", project.id)
        assert await service.list_projects("intruder") == []

    @pytest.mark.asyncio
    async def test_update_only_given_fields(self, service) -> None:
        project = await _create(service)

        updated = await service.update_project(
            "u1", project.id, ProjectUpdate(status=ProjectStatus.SUBMITTED, budget=120000.0)
        )

        assert updated.status == ProjectStatus.SUBMITTED
        assert updated.budget == 120000.0
        assert updated.title == "Expansão Norte"
        assert updated.organization == "Têxteis SA"

    @pytest.mark.asyncio
    async def test_delete_removes_files_and_chunks(
        self, service, sqlite_store, file_storage, mock_vector_store
    ) -> None:
        project = await _create(service)
        record = await service.upload_file("u1", project.id, "plano.txt", b"Plano de investimento")

        await service.delete_project("u1", project.id)

        assert await file_storage.exists(record.storage_path) is False
        mock_vector_store.delete_by_project.assert_awaited_once_with(project.id)
        assert await sqlite_store.get_project(project.id) is None
        assert await sqlite_store.get_file(record.id) is None

    @pytest.mark.asyncio
    async def test_delete_survives_vector_store_failure(self, service, sqlite_store, mock_vector_store) -> None:
        mock_vector_store.delete_by_project.side_effect = RAGError(message="locked", provider_name="chromadb")
        project = await _create(service)

        await service.delete_project("u1", project.id)
        assert await sqlite_store.get_project(project.id) is None

    @pytest.mark.asyncio
    async def test_stats(self, service, sqlite_store) -> None:
        project = await _create(service)
        await service.save_section("u1", project.id, "4.i", "x" * 750)
        await service.save_section("u1", project.id, "4.ii", "   ")
        await service.upload_file("u1", project.id, "a.txt", b"a")
        record = await service.upload_file("u1", project.id, "b.txt", b"b")
        await sqlite_store.update_file_status(record.id, FileStatus.INDEXED, chunk_count=1)
        await sqlite_store.record_generation(project.id, "4.i", "gpt-4o", "openai")

        stats = await service.get_stats("u1", project.id)

        total_limit = sum(s.char_limit for s in PT2030_SECTIONS)
        assert stats.total_sections == len(PT2030_SECTIONS)
        assert stats.completed_sections == 1
        assert stats.completion_percentage == round(1 / len(PT2030_SECTIONS) * 100, 1)
        assert stats.total_chars == 753
        assert stats.total_char_limit == total_limit
        assert stats.char_usage_percentage == round(753 / total_limit * 100, 1)
        assert stats.files_by_status == {"pending": 1, "indexed": 1}
        assert stats.generations == 1


class TestSections:
    @pytest.mark.asyncio
    async def test_save_within_limit(self, service) -> None:
        project = await _create(service)

        section = await service.save_section("u1", project.id, "4.i", "y" * 1500)

        assert section.char_count == 1500
        assert section.is_complete is True
        assert (await service.get_section("u1", project.id, "4.i")).content == "y" * 1500

    @pytest.mark.asyncio
    async def test_save_over_limit_is_rejected(self, service) -> None:
        project = await _create(service)

        with pytest.raises(CharLimitExceededError) as exc_info:
            await service.save_section("u1", project.id, "4.i", "y" * 1501)

        assert exc_info.value.status_code == 422
        assert (await service.get_section("u1", project.id, "4.i")).content == ""

    @pytest.mark.asyncio
    async def test_unknown_section(self, service) -> None:
        project = await _create(service)
        with pytest.raises(NotFoundError):
            await service.save_section("u1", project.id, "99.z", "texto")


class TestFiles:
    @pytest.mark.asyncio
    async def test_upload_stores_bytes_and_records_pending(self, service, file_storage) -> None:
        project = await _create(service)

        record = await service.upload_file(
            "u1", project.id, "Relatório Anual.pdf", b"%PDF-1.4 data", content_type="application/pdf"
        )

        assert record.status == FileStatus.PENDING
        assert record.file_name == "Relatório Anual.pdf"
        assert record.file_type == "application/pdf"
        assert record.file_size == len(b"%PDF-1.4 data")
        assert record.storage_path.startswith(f"u1/{project.id}/Relat_rio_Anual_")
        assert record.storage_path.endswith(".pdf")
        assert await file_storage.read(record.storage_path) == b"%PDF-1.4 data"

    @pytest.mark.asyncio
    async def test_upload_defaults_type_from_extension(self, service) -> None:
        project = await _create(service)
        record = await service.upload_file("u1", project.id, "contas.xlsx", b"bytes", category="financeiro")

        assert record.file_type == "application/xlsx"
        assert record.category == "financeiro"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["antigo.doc", "folha.xls", "imagem.png", "sem_extensao"])
    async def test_upload_unsupported_type(self, service, name: str) -> None:
        project = await _create(service)
        with pytest.raises(UnsupportedFileTypeError) as exc_info:
            await service.upload_file("u1", project.id, name, b"data")
        assert exc_info.value.status_code == 415

    @pytest.mark.asyncio
    async def test_upload_empty_file(self, service) -> None:
        project = await _create(service)
        with pytest.raises(InvalidInputError):
            await service.upload_file("u1", project.id, "vazio.txt", b"")

    @pytest.mark.asyncio
    async def test_upload_too_large(self, service) -> None:
        project = await _create(service)
        with pytest.raises(InvalidInputError, match="1 MB"):
            await service.upload_file("u1", project.id, "grande.txt", b"x" * (1024 * 1024 + 1))

    @pytest.mark.asyncio
    async def test_upload_to_foreign_project(self, service) -> None:
        project = await _create(service)
        with pytest.raises(NotFoundError):
            await service.upload_file("intruder", project.id, "plano.txt", b"data")

    @pytest.mark.asyncio
    async def test_file_from_other_project_not_found(self, service) -> None:
        first = await _create(service)
        second = await _create(service, title="Outro")
        record = await service.upload_file("u1", first.id, "plano.txt", b"data")

        with pytest.raises(NotFoundError):
            await service.get_file("u1", second.id, record.id)

    @pytest.mark.asyncio
    async def test_delete_file(self, service, file_storage, mock_vector_store) -> None:
        project = await _create(service)
        record = await service.upload_file("u1", project.id, "plano.txt", b"data")

        await service.delete_file("u1", project.id, record.id)

        assert await file_storage.exists(record.storage_path) is False
        mock_vector_store.delete_by_file.assert_awaited_once_with(record.id)
        assert await service.list_files("u1", project.id) == []

    @pytest.mark.asyncio
    async def test_delete_file_chunk_failure_keeps_file(
        self, service, sqlite_store, file_storage, mock_vector_store
    ) -> None:
        mock_vector_store.delete_by_file.side_effect = RAGError(message="locked", provider_name="chromadb")
        project = await _create(service)
        record = await service.upload_file("u1", project.id, "plano.txt", b"data")

        with pytest.raises(RAGError):
            await service.delete_file("u1", project.id, record.id)

        assert await file_storage.exists(record.storage_path) is True
        assert await sqlite_store.get_file(record.id) is not None

    @pytest.mark.asyncio
    async def test_works_without_vector_store(self, sqlite_store, file_storage) -> None:
        service = ProjectService(store=sqlite_store, file_storage=file_storage)
        project = await _create(service)
        record = await service.upload_file("u1", project.id, "plano.txt", b"data")

        await service.delete_file("u1", project.id, record.id)
        await service.delete_project("u1", project.id)

        assert await service.list_projects("u1") == []

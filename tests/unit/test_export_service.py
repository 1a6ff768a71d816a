"""Unit tests for ExportService.

Rendered documents are read back with python-docx and PyMuPDF, so these
tests check real output rather than renderer calls.
"""

from __future__ import annotations

import io
from datetime import date

import fitz
import pytest
from docx import Document

from src.models.export import ExportFormat, ExportLanguage, ExportRequest
from src.models.project import FileStatus, ProjectCreate
from src.services.export_service import ExportService, parse_export_request
from src.services.project_service import ProjectService
from src.utils.errors import InvalidInputError, NotFoundError

_DAY = date(2025, 3, 14)


@pytest.fixture
def projects(sqlite_store, file_storage) -> ProjectService:
    return ProjectService(store=sqlite_store, file_storage=file_storage)


@pytest.fixture
def exporter(projects, sqlite_store) -> ExportService:
    return ExportService(projects=projects, store=sqlite_store)


async def _project_with_content(projects: ProjectService):
    project = await projects.create_project(
        "u1",
        ProjectCreate(title="Expansão  Norte", organization="Têxteis SA", budget=250000.0, region="Norte"),
    )
    await projects.save_section(
        "u1",
        project.id,
        "4.i",
        "A empresa foi fundada em 1998.\n\nExporta para Espanha e França.",
    )
    return project


def _docx_text(content: bytes) -> list[str]:
    return [p.text for p in Document(io.BytesIO(content)).paragraphs]


def _pdf_text(content: bytes) -> str:
    with fitz.open(stream=content, filetype="pdf") as doc:
        return "\n".join(page.get_text() for page in doc)


class TestParseExportRequest:
    def test_valid(self) -> None:
        request = parse_export_request("DOCX", "EN", include_attachments=True)
        assert request == ExportRequest(
            format=ExportFormat.DOCX, language=ExportLanguage.EN, include_attachments=True
        )

    def test_defaults(self) -> None:
        request = parse_export_request("pdf")
        assert request.language == ExportLanguage.PT
        assert request.include_attachments is False

    @pytest.mark.parametrize(("fmt", "lang"), [("odt", "pt"), ("pdf", "fr")])
    def test_invalid(self, fmt: str, lang: str) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            parse_export_request(fmt, lang)
        assert exc_info.value.status_code == 400


class TestDocxExport:
    @pytest.mark.asyncio
    async def test_renders_sections_and_details(self, projects, exporter) -> None:
        project = await _project_with_content(projects)

        document = await exporter.export_project(
            "u1", project.id, ExportRequest(format=ExportFormat.DOCX), on=_DAY
        )

        assert document.file_name == "Expansão_Norte_2025-03-14.docx"
        assert document.media_type.endswith("wordprocessingml.document")
        text = _docx_text(document.content)
        assert text[0] == "Expansão  Norte"
        assert "Entidade: Têxteis SA" in text
        assert "Orçamento: 250 000.00 EUR" in text
        assert "Estado: draft" in text
        assert any(line.startswith("4.i – Descrição da atividade") for line in text)
        assert "A empresa foi fundada em 1998." in text
        assert "Exporta para Espanha e França." in text
        assert text.count("[Secção não preenchida]") == 14
        assert text[-1] == "Documento gerado em 2025-03-14"

    @pytest.mark.asyncio
    async def test_english_labels(self, projects, exporter) -> None:
        project = await _project_with_content(projects)

        document = await exporter.export_project(
            "u1",
            project.id,
            ExportRequest(format=ExportFormat.DOCX, language=ExportLanguage.EN),
            on=_DAY,
        )

        text = _docx_text(document.content)
        assert "Organisation: Têxteis SA" in text
        assert "[Section not filled in]" in text

    @pytest.mark.asyncio
    async def test_attachments_list_only_indexed_files(self, projects, exporter, sqlite_store) -> None:
        project = await _project_with_content(projects)
        indexed = await projects.upload_file("u1", project.id, "plano.txt", b"x" * 4096)
        await sqlite_store.update_file_status(indexed.id, FileStatus.INDEXED, chunk_count=1)
        await projects.upload_file("u1", project.id, "pendente.txt", b"y")

        document = await exporter.export_project(
            "u1",
            project.id,
            ExportRequest(format=ExportFormat.DOCX, include_attachments=True),
            on=_DAY,
        )

        text = _docx_text(document.content)
        assert "Anexos" in text
        assert "plano.txt (4 KB)" in text
        assert not any("pendente.txt" in line for line in text)

    @pytest.mark.asyncio
    async def test_attachments_heading_without_files(self, projects, exporter) -> None:
        project = await _project_with_content(projects)

        document = await exporter.export_project(
            "u1",
            project.id,
            ExportRequest(format=ExportFormat.DOCX, include_attachments=True),
            on=_DAY,
        )
        assert "Sem documentos anexos." in _docx_text(document.content)


class TestPdfExport:
    @pytest.mark.asyncio
    async def test_renders_text(self, projects, exporter) -> None:
        project = await _project_with_content(projects)

        document = await exporter.export_project("u1", project.id, ExportRequest(), on=_DAY)

        assert document.media_type == "application/pdf"
        assert document.file_name.endswith(".pdf")
        assert document.content.startswith(b"%PDF")
        text = _pdf_text(document.content)
        assert "Norte" in text
        assert "A empresa foi fundada em 1998." in text
        assert "4.i - Descri" in text

    @pytest.mark.asyncio
    async def test_long_content_spans_pages(self, projects, exporter) -> None:
        project = await projects.create_project("u1", ProjectCreate(title="Longo"))
        for key in ("4.i", "4.ii", "4.iii", "4.iv"):
            await projects.save_section("u1", project.id, key, "palavra " * 180)

        document = await exporter.export_project("u1", project.id, ExportRequest(), on=_DAY)

        with fitz.open(stream=document.content, filetype="pdf") as doc:
            assert doc.page_count > 1


class TestExportRecords:
    @pytest.mark.asyncio
    async def test_each_export_is_recorded(self, projects, exporter) -> None:
        project = await _project_with_content(projects)

        first = await exporter.export_project("u1", project.id, ExportRequest(), on=_DAY)
        second = await exporter.export_project(
            "u1", project.id, ExportRequest(format=ExportFormat.DOCX, language=ExportLanguage.EN), on=_DAY
        )

        records = await projects.list_exports("u1", project.id)
        assert {r.id for r in records} == {first.export_id, second.export_id}
        assert {(r.format, r.language) for r in records} == {
            (ExportFormat.PDF, ExportLanguage.PT),
            (ExportFormat.DOCX, ExportLanguage.EN),
        }

    @pytest.mark.asyncio
    async def test_foreign_project(self, projects, exporter, sqlite_store) -> None:
        project = await _project_with_content(projects)

        with pytest.raises(NotFoundError):
            await exporter.export_project("intruder", project.id, ExportRequest())
        assert await sqlite_store.list_exports(project.id) == []

"""Render a project's application text as a DOCX or PDF document.

Both renderers lay out the same content:

    <project title>
    <details block: organisation, programme, region, budget, contact, status>
    <code> – <section title>
        <section content, or a "not filled" placeholder>
    ...
    <attachments list, when requested>

DOCX output uses python-docx; PDF output is drawn with PyMuPDF on A4
pages using the built-in Helvetica font, wrapped by measured text width.
"""

from __future__ import annotations

import io
from datetime import date
from typing import TYPE_CHECKING

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog
from docx import Document
from docx.shared import Pt

from src.models.export import ExportedDocument, ExportFormat, ExportLanguage, ExportRequest
from src.models.project import FileStatus, IndexedFile, Project, ProjectSection
from src.utils.errors import ExportError, InvalidInputError
from src.utils.filenames import export_filename

if TYPE_CHECKING:
    from src.interfaces.project_store import IProjectStore
    from src.services.project_service import ProjectService

logger = structlog.get_logger(logger_name=__name__)

_MEDIA_TYPES = {
    ExportFormat.PDF: "application/pdf",
    ExportFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

_LABELS: dict[ExportLanguage, dict[str, str]] = {
    ExportLanguage.PT: {
        "details": "Dados do projeto",
        "organization": "Entidade",
        "program": "Programa",
        "region": "Região",
        "budget": "Orçamento",
        "contact_email": "Email de contacto",
        "contact_phone": "Telefone de contacto",
        "status": "Estado",
        "description": "Descrição",
        "sections": "Conteúdo da candidatura",
        "empty": "[Secção não preenchida]",
        "attachments": "Anexos",
        "no_attachments": "Sem documentos anexos.",
        "generated_on": "Documento gerado em",
    },
    ExportLanguage.EN: {
        "details": "Project details",
        "organization": "Organisation",
        "program": "Programme",
        "region": "Region",
        "budget": "Budget",
        "contact_email": "Contact email",
        "contact_phone": "Contact phone",
        "status": "Status",
        "description": "Description",
        "sections": "Application content",
        "empty": "[Section not filled in]",
        "attachments": "Attachments",
        "no_attachments": "No attached documents.",
        "generated_on": "Document generated on",
    },
}

_DETAIL_FIELDS = (
    "organization",
    "program",
    "region",
    "budget",
    "contact_email",
    "contact_phone",
    "status",
)

# A4 in points.
_PAGE_WIDTH = 595
_PAGE_HEIGHT = 842
_MARGIN = 56

# Helvetica (base-14) covers Latin-1; map the common typographic extras.
_PDF_REPLACEMENTS = str.maketrans(
    {
        "–": "-",
        "—": "-",
        "‘": "'",
        "’": "'",
        "“": '"',
        "”": '"',
        "…": "...",
        "•": "-",
        "€": "EUR",
    }
)


def parse_export_request(
    export_format: str,
    language: str = "pt",
    include_attachments: bool = False,
) -> ExportRequest:
    """Validate raw option strings into an :class:`ExportRequest`."""
    try:
        fmt = ExportFormat(str(export_format).lower())
    except ValueError as exc:
        raise InvalidInputError(message=f"Formato de exportação inválido: {export_format}") from exc
    try:
        lang = ExportLanguage(str(language).lower())
    except ValueError as exc:
        raise InvalidInputError(message=f"Idioma de exportação inválido: {language}") from exc
    return ExportRequest(format=fmt, language=lang, include_attachments=include_attachments)


def _format_budget(value: float) -> str:
    return f"{value:,.2f} EUR".replace(",", " ")


def _detail_lines(project: Project, labels: dict[str, str]) -> list[tuple[str, str]]:
    lines: list[tuple[str, str]] = []
    for name in _DETAIL_FIELDS:
        value = getattr(project, name)
        if value is None or value == "":
            continue
        if name == "budget":
            text = _format_budget(value)
        elif name == "status":
            text = value.value
        else:
            text = str(value)
        lines.append((labels[name], text))
    return lines


def _attachment_line(record: IndexedFile) -> str:
    size_kb = max(1, record.file_size // 1024)
    return f"{record.file_name} ({size_kb} KB)"


class ExportService:
    """Builds downloadable documents and records each export."""

    def __init__(self, projects: ProjectService, store: IProjectStore) -> None:
        self._projects = projects
        self._store = store

    async def export_project(
        self,
        user_id: str,
        project_id: str,
        request: ExportRequest,
        on: date | None = None,
    ) -> ExportedDocument:
        project = await self._projects.get_project(user_id, project_id)
        sections = await self._projects.list_sections(user_id, project_id)
        attachments: list[IndexedFile] | None = None
        if request.include_attachments:
            files = await self._projects.list_files(user_id, project_id)
            attachments = [f for f in files if f.status == FileStatus.INDEXED]

        labels = _LABELS[request.language]
        day = on or date.today()
        try:
            if request.format == ExportFormat.DOCX:
                content = self._render_docx(project, sections, attachments, labels, day)
            else:
                content = self._render_pdf(project, sections, attachments, labels, day)
        except Exception as exc:
            raise ExportError(
                message=f"Falha ao gerar o documento {request.format.value}: {exc}",
                provider_name=request.format.value,
            ) from exc

        file_name = export_filename(project.title, request.format.value, on=day)
        record = await self._store.record_export(
            project_id=project_id,
            export_format=request.format.value,
            language=request.language.value,
            file_name=file_name,
        )
        logger.info(
            "project_exported",
            project_id=project_id,
            format=request.format.value,
            language=request.language.value,
            size=len(content),
            sections=len(sections),
        )
        return ExportedDocument(
            file_name=file_name,
            media_type=_MEDIA_TYPES[request.format],
            content=content,
            export_id=record.id,
        )

    # ------------------------------------------------------------------
    # DOCX
    # ------------------------------------------------------------------

    @staticmethod
    def _render_docx(
        project: Project,
        sections: list[ProjectSection],
        attachments: list[IndexedFile] | None,
        labels: dict[str, str],
        day: date,
    ) -> bytes:
        doc = Document()
        doc.add_heading(project.title, level=0)

        doc.add_heading(labels["details"], level=1)
        for label, value in _detail_lines(project, labels):
            paragraph = doc.add_paragraph()
            paragraph.add_run(f"{label}: ").bold = True
            paragraph.add_run(value)
        if project.description:
            paragraph = doc.add_paragraph()
            paragraph.add_run(f"{labels['description']}: ").bold = True
            paragraph.add_run(project.description)

        doc.add_heading(labels["sections"], level=1)
        for section in sections:
            doc.add_heading(f"{section.key} – {section.title}", level=2)
            if section.content.strip():
                for block in section.content.split("\n\n"):
                    if block.strip():
                        doc.add_paragraph(block.strip())
            else:
                doc.add_paragraph().add_run(labels["empty"]).italic = True

        if attachments is not None:
            doc.add_heading(labels["attachments"], level=1)
            if attachments:
                for record in attachments:
                    doc.add_paragraph(_attachment_line(record), style="List Bullet")
            else:
                doc.add_paragraph(labels["no_attachments"])

        footer = doc.add_paragraph()
        run = footer.add_run(f"{labels['generated_on']} {day.isoformat()}")
        run.font.size = Pt(8)

        buffer = io.BytesIO()
        doc.save(buffer)
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    @staticmethod
    def _render_pdf(
        project: Project,
        sections: list[ProjectSection],
        attachments: list[IndexedFile] | None,
        labels: dict[str, str],
        day: date,
    ) -> bytes:
        writer = _PdfWriter()
        writer.write(project.title, fontsize=18, bold=True, space_after=10)

        writer.write(labels["details"], fontsize=13, bold=True, space_after=4)
        for label, value in _detail_lines(project, labels):
            writer.write(f"{label}: {value}", fontsize=10)
        if project.description:
            writer.write(f"{labels['description']}: {project.description}", fontsize=10)
        writer.space(12)

        writer.write(labels["sections"], fontsize=13, bold=True, space_after=6)
        for section in sections:
            writer.write(f"{section.key} – {section.title}", fontsize=11, bold=True, space_after=3)
            if section.content.strip():
                for block in section.content.split("\n"):
                    writer.write(block.strip(), fontsize=10)
            else:
                writer.write(labels["empty"], fontsize=10)
            writer.space(8)

        if attachments is not None:
            writer.write(labels["attachments"], fontsize=13, bold=True, space_after=4)
            if attachments:
                for record in attachments:
                    writer.write(f"- {_attachment_line(record)}", fontsize=10)
            else:
                writer.write(labels["no_attachments"], fontsize=10)
            writer.space(8)

        writer.write(f"{labels['generated_on']} {day.isoformat()}", fontsize=8)
        return writer.finish()


class _PdfWriter:
    """Top-to-bottom text flow over A4 pages with automatic page breaks."""

    def __init__(self) -> None:
        self._doc = fitz.open()
        self._page = self._doc.new_page(width=_PAGE_WIDTH, height=_PAGE_HEIGHT)
        self._y = _MARGIN

    def space(self, points: float) -> None:
        self._y += points

    def write(self, text: str, fontsize: float = 10, bold: bool = False, space_after: float = 2) -> None:
        fontname = "hebo" if bold else "helv"
        line_height = fontsize * 1.4
        for line in self._wrap(text.translate(_PDF_REPLACEMENTS), fontname, fontsize):
            if self._y + line_height > _PAGE_HEIGHT - _MARGIN:
                self._page = self._doc.new_page(width=_PAGE_WIDTH, height=_PAGE_HEIGHT)
                self._y = _MARGIN
            self._y += line_height
            self._page.insert_text((_MARGIN, self._y), line, fontname=fontname, fontsize=fontsize)
        self._y += space_after

    def finish(self) -> bytes:
        content = self._doc.tobytes()
        self._doc.close()
        return content

    @staticmethod
    def _wrap(text: str, fontname: str, fontsize: float) -> list[str]:
        max_width = _PAGE_WIDTH - 2 * _MARGIN
        if not text:
            return [""]
        lines: list[str] = []
        current = ""
        for word in text.split():
            candidate = f"{current} {word}" if current else word
            if fitz.get_text_length(candidate, fontname=fontname, fontsize=fontsize) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            current = word
        if current:
            lines.append(current)
        return lines

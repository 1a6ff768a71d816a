"""Plain-text extraction for uploaded project documents.

Dispatches on the file extension:

    .pdf            PyMuPDF, one page per PDF page
    .docx           python-docx paragraphs, then table rows
    .xlsx           openpyxl, one page per worksheet, cells tab-joined
    .txt .md .csv   UTF-8 decode with replacement characters

PDFs and workbooks report real page numbers (``paginated=True``); other
formats come back as a single page and the indexer estimates pages from
the text length.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog
from docx import Document
from openpyxl import load_workbook

from src.utils.errors import IndexingError, UnsupportedFileTypeError
from src.utils.filenames import file_extension

logger = structlog.get_logger(logger_name=__name__)

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset({"pdf", "docx", "xlsx", "txt", "md", "csv"})

# Estimated characters per printed page for unpaginated formats.
CHARS_PER_PAGE = 3000


@dataclass(frozen=True)
class ExtractedPage:
    number: int
    text: str


@dataclass(frozen=True)
class ExtractedDocument:
    """Text pulled out of one uploaded file."""

    pages: list[ExtractedPage] = field(default_factory=list)
    paginated: bool = False

    @property
    def text(self) -> str:
        return "\n\n".join(p.text for p in self.pages if p.text.strip())

    @property
    def page_count(self) -> int:
        """Real page count, or an estimate of one page per 3000 characters."""
        if self.paginated:
            return len(self.pages)
        return max(1, -(-len(self.text) // CHARS_PER_PAGE))

    def is_empty(self) -> bool:
        return not any(p.text.strip() for p in self.pages)


def is_supported(file_name: str) -> bool:
    return file_extension(file_name) in SUPPORTED_EXTENSIONS


def extract_text(data: bytes, file_name: str) -> ExtractedDocument:
    """Extract text from *data* according to *file_name*'s extension.

    Raises
    ------
    UnsupportedFileTypeError
        If the extension is not one of :data:`SUPPORTED_EXTENSIONS`.
    IndexingError
        If the file cannot be parsed.
    """
    ext = file_extension(file_name)
    extractors = {
        "pdf": _extract_pdf,
        "docx": _extract_docx,
        "xlsx": _extract_xlsx,
        "txt": _extract_plain,
        "md": _extract_plain,
        "csv": _extract_plain,
    }
    extractor = extractors.get(ext)
    if extractor is None:
        raise UnsupportedFileTypeError(
            message=f"Tipo de ficheiro não suportado: .{ext or '?'}"
        )

    try:
        document = extractor(data)
    except UnsupportedFileTypeError:
        raise
    except Exception as exc:
        raise IndexingError(
            message=f"Não foi possível ler {file_name}: {exc}",
            provider_name=ext,
        ) from exc

    logger.debug(
        "text_extracted",
        file_name=file_name,
        pages=len(document.pages),
        chars=len(document.text),
    )
    return document


def _extract_pdf(data: bytes) -> ExtractedDocument:
    pages: list[ExtractedPage] = []
    with fitz.open(stream=data, filetype="pdf") as doc:
        for page_num in range(len(doc)):
            text = doc[page_num].get_text("text")
            pages.append(ExtractedPage(number=page_num + 1, text=text.strip()))
    return ExtractedDocument(pages=pages, paginated=True)


def _extract_docx(data: bytes) -> ExtractedDocument:
    doc = Document(io.BytesIO(data))
    parts = [p.text.strip() for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                parts.append(" | ".join(cells))
    return ExtractedDocument(pages=[ExtractedPage(number=1, text="\n\n".join(parts))])


def _extract_xlsx(data: bytes) -> ExtractedDocument:
    workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    pages: list[ExtractedPage] = []
    try:
        for index, sheet in enumerate(workbook.worksheets, start=1):
            lines = [f"# {sheet.title}"]
            for row in sheet.iter_rows(values_only=True):
                cells = ["" if value is None else str(value) for value in row]
                if any(c.strip() for c in cells):
                    lines.append("\t".join(cells).rstrip())
            body = "\n".join(lines) if len(lines) > 1 else ""
            pages.append(ExtractedPage(number=index, text=body))
    finally:
        workbook.close()
    return ExtractedDocument(pages=pages, paginated=True)


def _extract_plain(data: bytes) -> ExtractedDocument:
    text = data.decode("utf-8", errors="replace").lstrip("\ufeff")
    return ExtractedDocument(pages=[ExtractedPage(number=1, text=text.strip())])

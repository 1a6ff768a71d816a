"""Text chunking with overlapping windows and paragraph boundary preservation.

Splits extracted document text into :class:`~src.models.rag.DocumentChunk`
objects of roughly 500 characters with 100 characters of overlap.

1. **Paragraph-preserving** -- Paragraphs (double newlines) are packed
   greedily into a chunk until the next one would exceed the budget.

2. **Sentence fallback** -- A paragraph longer than the budget is split at
   sentence boundaries with an abbreviation-aware splitter that does not
   break on "Sr.", "Dra.", "art.", "n.º", etc.  A single sentence that is
   still too long is cut into fixed character windows.

3. **Overlapping windows** -- Each new chunk starts with the tail (at most
   ``overlap`` characters, beginning on a word) of the previous one, so a
   statement that straddles a boundary is retrievable from either side.
"""

from __future__ import annotations

import re
import uuid

import structlog

from src.models.rag import DocumentChunk
from src.services.ingestion.text_extractor import ExtractedDocument

logger = structlog.get_logger(logger_name=__name__)

# Abbreviations (Portuguese first) whose trailing period is not a sentence end.
_ABBREVIATIONS = frozenset(
    {
        "Sr",
        "Sra",
        "Srs",
        "Dr",
        "Dra",
        "Drs",
        "Eng",
        "Enga",
        "Prof",
        "Profa",
        "Exmo",
        "Exma",
        "Lda",
        "SA",
        "art",
        "Art",
        "arts",
        "al",
        "n",
        "nº",
        "n.º",
        "p",
        "pp",
        "pág",
        "cf",
        "ex",
        "etc",
        "aprox",
        "máx",
        "mín",
        "Av",
        "vs",
        "Mr",
        "Mrs",
        "Inc",
        "Ltd",
        "No",
    }
)

_PARAGRAPH_SEP = "\n\n"
_SENTENCE_SEP = " "


class TextChunker:
    """Splits text into overlapping character-bounded chunks.

    Parameters
    ----------
    chunk_size:
        Maximum characters per chunk (default 500).
    overlap:
        Maximum characters carried from the end of one chunk into the next
        (default 100).  Must be smaller than *chunk_size*.
    """

    def __init__(self, chunk_size: int = 500, overlap: int = 100) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError("overlap must be >= 0 and smaller than chunk_size")
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def split(self, text: str) -> list[str]:
        """Split *text* into chunk strings; empty input returns ``[]``."""
        if not text or not text.strip():
            return []

        units: list[tuple[str, str]] = []  # (separator before, text)
        for para in self._split_paragraphs(text):
            if len(para) <= self._chunk_size:
                units.append((_PARAGRAPH_SEP, para))
                continue
            first = True
            for piece in self._split_long_paragraph(para):
                units.append((_PARAGRAPH_SEP if first else _SENTENCE_SEP, piece))
                first = False

        return self._pack(units)

    def chunk(
        self,
        document: ExtractedDocument,
        project_id: str,
        file_id: str,
        source: str,
    ) -> list[DocumentChunk]:
        """Chunk an extracted document and attach page metadata.

        Paginated documents are chunked page by page so every chunk keeps
        its real page.  Others are chunked as one text and each chunk gets
        the estimated page ``floor(i / n * pages) + 1``.
        """
        pieces: list[tuple[str, int | None]] = []
        if document.paginated:
            for page in document.pages:
                pieces.extend((text, page.number) for text in self.split(page.text))
        else:
            pieces.extend((text, None) for text in self.split(document.text))

        total = len(pieces)
        pages = document.page_count
        chunks = [
            DocumentChunk(
                chunk_id=str(uuid.uuid4()),
                project_id=project_id,
                file_id=file_id,
                chunk_index=index,
                text=text,
                source=source or "Documento",
                page=page if page is not None else estimate_page(index, total, pages),
                total_chunks=max(total, 1),
            )
            for index, (text, page) in enumerate(pieces)
        ]

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            avg_chars=sum(len(c.text) for c in chunks) // len(chunks) if chunks else 0,
            file_id=file_id,
        )
        return chunks

    # ------------------------------------------------------------------
    # Paragraph / sentence splitting
    # ------------------------------------------------------------------

    @staticmethod
    def _split_paragraphs(text: str) -> list[str]:
        """Split *text* on double-newlines, discarding blanks."""
        parts = re.split(r"\n\s*\n", text)
        return [p.strip() for p in parts if p.strip()]

    @staticmethod
    def _split_sentences(text: str) -> list[str]:
        """Split *text* at ``.``, ``!`` or ``?`` followed by whitespace.

        Periods after known abbreviations are masked with ``\\x00`` (same
        length, so indices stay aligned with the original text).
        """
        masked = text
        for abbr in _ABBREVIATIONS:
            masked = re.sub(
                rf"(?<!\w){re.escape(abbr)}\.",
                lambda m: m.group(0)[:-1] + "\x00",
                masked,
            )

        sentences: list[str] = []
        last = 0
        for match in re.finditer(r"[.!?](?:\s|$)", masked):
            end = match.end()
            sentence = text[last:end].strip()
            if sentence:
                sentences.append(sentence)
            last = end

        remainder = text[last:].strip()
        if remainder:
            sentences.append(remainder)

        return sentences if sentences else [text]

    def _split_long_paragraph(self, paragraph: str) -> list[str]:
        pieces: list[str] = []
        for sentence in self._split_sentences(paragraph):
            if len(sentence) <= self._chunk_size:
                pieces.append(sentence)
            else:
                pieces.extend(self._fixed_windows(sentence))
        return pieces

    def _fixed_windows(self, text: str) -> list[str]:
        """Cut *text* into ``chunk_size`` windows stepping by ``chunk_size - overlap``."""
        step = self._chunk_size - self._overlap
        windows: list[str] = []
        for start in range(0, len(text), step):
            window = text[start : start + self._chunk_size].strip()
            if window:
                windows.append(window)
            if start + self._chunk_size >= len(text):
                break
        return windows

    # ------------------------------------------------------------------
    # Chunk accumulation
    # ------------------------------------------------------------------

    def _pack(self, units: list[tuple[str, str]]) -> list[str]:
        """Greedily pack units (each at most ``chunk_size``) into chunks."""
        chunks: list[str] = []
        current = ""

        for sep, unit in units:
            if not current:
                current = unit
                continue
            if len(current) + len(sep) + len(unit) <= self._chunk_size:
                current = current + sep + unit
                continue

            chunks.append(current)
            tail = self._tail(current)
            if tail and len(tail) + len(sep) + len(unit) <= self._chunk_size:
                current = tail + sep + unit
            else:
                current = unit

        if current:
            chunks.append(current)
        return chunks

    def _tail(self, text: str) -> str:
        """Return at most ``overlap`` trailing characters, starting on a word."""
        if self._overlap == 0:
            return ""
        if len(text) <= self._overlap:
            return text
        tail = text[-self._overlap :]
        # Drop a leading partial word when the cut lands mid-word.
        if not text[-self._overlap - 1].isspace():
            parts = tail.split(None, 1)
            tail = parts[1] if len(parts) > 1 else ""
        return tail.strip()


def estimate_page(index: int, total: int, pages: int) -> int:
    """Spread *total* chunks evenly over *pages*: ``floor(index / total * pages) + 1``."""
    if total <= 0 or pages <= 0:
        return 1
    return int(index / total * pages) + 1

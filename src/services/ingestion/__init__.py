"""Document indexing pipeline for project retrieval.

Pipeline stages: **read -> extract -> chunk -> embed -> store**.

1. **Extract** (text_extractor.py) -- PDF, DOCX, XLSX, and plain-text
   readers turn uploaded bytes into page-tagged text.

2. **Chunk** (chunker.py / TextChunker) -- Splits the text into ~500
   character overlapping windows, preserving paragraph and sentence
   boundaries.

3. **Embed and store** (indexing_service.py / IndexingService) -- Embeds
   the chunks and writes them to the vector store under the owning
   project, tracking the file's indexing status.
"""

from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.indexing_service import IndexingService
from src.services.ingestion.text_extractor import (
    SUPPORTED_EXTENSIONS,
    ExtractedDocument,
    ExtractedPage,
    extract_text,
)

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "ExtractedDocument",
    "ExtractedPage",
    "IndexingService",
    "TextChunker",
    "extract_text",
]

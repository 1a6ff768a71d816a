"""Utility modules.

- **errors** -- Domain exception hierarchy rooted at CandidaturaError; each
  class carries the HTTP status the API layer maps it to.
- **logging** -- structlog setup with a dual renderer: coloured console
  output in development, JSON in production.
- **filenames** -- Upload path and export file-name helpers.
"""

from src.utils.errors import (
    CandidaturaError,
    CharLimitExceededError,
    ConfigurationError,
    ExportError,
    GenerationError,
    IndexingError,
    InvalidInputError,
    LLMError,
    NotFoundError,
    ProviderUnavailableError,
    RAGError,
    RateLimitError,
    StorageError,
    UnsupportedFileTypeError,
)
from src.utils.filenames import build_storage_path, export_filename, sanitize_filename
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "CandidaturaError",
    "CharLimitExceededError",
    "ConfigurationError",
    "ExportError",
    "GenerationError",
    "IndexingError",
    "InvalidInputError",
    "LLMError",
    "NotFoundError",
    "ProviderUnavailableError",
    "RAGError",
    "RateLimitError",
    "StorageError",
    "UnsupportedFileTypeError",
    "build_storage_path",
    "configure_logging",
    "export_filename",
    "get_logger",
    "sanitize_filename",
]

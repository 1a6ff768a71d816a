"""File-name helpers shared by uploads and exports."""

from __future__ import annotations

import re
import time
from datetime import date
from pathlib import PurePosixPath

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_WHITESPACE_RUN = re.compile(r"\s+")


def sanitize_filename(name: str) -> str:
    """Replace every character outside ``[a-zA-Z0-9.-]`` with ``_``.

    >>> sanitize_filename("Relatório Anual 2023.pdf")
    'Relat_rio_Anual_2023.pdf'
    """
    return _UNSAFE_CHARS.sub("_", name)


def file_extension(name: str) -> str:
    """Return the lowercase extension without the dot, or ``""``."""
    suffix = PurePosixPath(name).suffix
    return suffix[1:].lower() if suffix else ""


def build_storage_path(
    user_id: str,
    project_id: str,
    original_name: str,
    timestamp_ms: int | None = None,
) -> str:
    """Build ``{user_id}/{project_id}/{stem}_{timestamp}.{ext}`` for an upload.

    The stem is the sanitized name up to its first dot, so
    ``"plano.v2.pdf"`` stores as ``plano_<ts>.pdf``.
    """
    ts = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    sanitized = sanitize_filename(original_name)
    stem = sanitized.split(".")[0] or "documento"
    ext = file_extension(original_name)
    file_name = f"{stem}_{ts}.{ext}" if ext else f"{stem}_{ts}"
    return f"{sanitize_filename(user_id)}/{sanitize_filename(project_id)}/{file_name}"


def export_filename(title: str, export_format: str, on: date | None = None) -> str:
    """Return ``{title with whitespace runs as _}_{YYYY-MM-DD}.{format}``."""
    day = on or date.today()
    return f"{_WHITESPACE_RUN.sub('_', title.strip())}_{day.isoformat()}.{export_format}"

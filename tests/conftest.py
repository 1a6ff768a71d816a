"""Shared pytest fixtures for the candidaturas test suite."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import DocumentChunk, RetrievedChunk
from src.providers.storage.local_file_storage import LocalFileStorage
from src.providers.storage.sqlite_project_store import SQLiteProjectStore


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Return a minimal configuration dict shaped like ``load_config()``."""
    return {
        "app": {"name": "Candidaturas PT2030", "version": "0.1.0"},
        "models": [
            {
                "id": "google/gemini-2.0-flash-exp",
                "label": "Gemini 2.0 Flash",
                "group": "Rápidos",
                "provider": "openrouter",
            },
            {
                "id": "gpt-4o",
                "label": "GPT-4o (Flowise)",
                "group": "Flowise (legacy)",
                "provider": "flowise",
            },
        ],
        "rag": {"top_k": 8, "similarity_threshold": 0.7},
    }


# ---------------------------------------------------------------------------
# Provider mocks
# ---------------------------------------------------------------------------


def make_llm(name: str, reply: str | Exception = "Texto gerado.", default_model: str = "m") -> MagicMock:
    """Build an ``ILLMProvider`` mock whose ``complete`` returns *reply* or raises it."""
    llm = MagicMock(spec=ILLMProvider)
    if isinstance(reply, Exception):
        llm.complete = AsyncMock(side_effect=reply)
    else:
        llm.complete = AsyncMock(return_value=reply)
    llm.get_provider_name.return_value = name
    llm.get_default_model.return_value = default_model
    llm.is_available.return_value = True
    llm.validate_credentials = AsyncMock(return_value=True)
    return llm


@pytest.fixture
def mock_llm() -> MagicMock:
    return make_llm("openrouter", default_model="google/gemini-2.0-flash-exp")


@pytest.fixture
def mock_embedding_provider() -> MagicMock:
    mock = MagicMock(spec=IEmbeddingProvider)
    mock.embed = AsyncMock(side_effect=lambda texts: [[0.1] * 8 for _ in texts])
    mock.embed_single = AsyncMock(return_value=[0.1] * 8)
    mock.get_dimension.return_value = 8
    mock.get_provider_name.return_value = "mock_embedding"
    mock.is_available.return_value = True
    return mock


@pytest.fixture
def mock_vector_store() -> MagicMock:
    mock = MagicMock(spec=IVectorStoreProvider)
    mock.add_chunks = AsyncMock(side_effect=lambda chunks, embeddings: len(chunks))
    mock.query = AsyncMock(return_value=[])
    mock.delete_by_file = AsyncMock(return_value=0)
    mock.delete_by_project = AsyncMock(return_value=0)
    mock.count = AsyncMock(return_value=0)
    mock.get_provider_name.return_value = "chromadb"
    mock.is_available.return_value = True
    return mock


def make_retrieved(
    text: str = "A empresa exporta 60% da produção para Espanha e França.",
    similarity: float = 0.82,
    source: str = "plano_negocios.pdf",
    page: int = 3,
    chunk_id: str = "f1_0",
) -> RetrievedChunk:
    return RetrievedChunk(
        chunk=DocumentChunk(
            chunk_id=chunk_id,
            project_id="p1",
            file_id="f1",
            chunk_index=0,
            text=text,
            source=source,
            page=page,
            total_chunks=4,
        ),
        similarity_score=similarity,
    )


# ---------------------------------------------------------------------------
# Real storage under tmp_path
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def sqlite_store(tmp_path: Path) -> SQLiteProjectStore:
    store = SQLiteProjectStore(db_path=str(tmp_path / "candidaturas.db"))
    await store.initialize()
    return store


@pytest.fixture
def file_storage(tmp_path: Path) -> LocalFileStorage:
    return LocalFileStorage(root_dir=str(tmp_path / "uploads"))


# ---------------------------------------------------------------------------
# In-memory documents
# ---------------------------------------------------------------------------


def make_docx_bytes(paragraphs: list[str], table: list[list[str]] | None = None) -> bytes:
    from docx import Document

    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def make_xlsx_bytes(sheets: dict[str, list[list[Any]]]) -> bytes:
    from openpyxl import Workbook

    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets.items():
        sheet = workbook.create_sheet(title=title)
        for row in rows:
            sheet.append(row)
    buf = io.BytesIO()
    workbook.save(buf)
    return buf.getvalue()


def make_pdf_bytes(pages: list[str]) -> bytes:
    import fitz

    document = fitz.open()
    for text in pages:
        page = document.new_page()
        page.insert_text((72, 72), text, fontsize=11)
    data = document.tobytes()
    document.close()
    return data

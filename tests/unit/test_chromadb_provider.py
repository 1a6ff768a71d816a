"""Unit tests for the ChromaDB vector store provider.

Runs against a real persistent ChromaDB under ``tmp_path`` with the
offline hash embedder, so similarity scores are genuine.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models.rag import DocumentChunk
from src.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from src.providers.vector_store.chromadb_provider import ChromaDBProvider
from src.utils.errors import RAGError

_TEXTS = [
    "A empresa exporta 60% da produção para Espanha e França.",
    "O investimento em robótica aumenta a capacidade produtiva da fábrica.",
    "A equipa de gestão tem vinte anos de experiência no setor têxtil.",
]


def _make_chunk(
    index: int,
    text: str,
    project_id: str = "p1",
    file_id: str = "f1",
    source: str = "plano.pdf",
) -> DocumentChunk:
    return DocumentChunk(
        chunk_id=f"{file_id}_{index}",
        project_id=project_id,
        file_id=file_id,
        chunk_index=index,
        text=text,
        source=source,
        page=index + 1,
        total_chunks=len(_TEXTS),
    )


def _provider(tmp_path: Path, dimension: int = 128) -> ChromaDBProvider:
    return ChromaDBProvider(
        embedding_provider=HashEmbeddingProvider(dimension=dimension),
        persist_directory=str(tmp_path / "chroma"),
        collection_name="test_chunks",
    )


async def _seed(provider: ChromaDBProvider, project_id: str = "p1", file_id: str = "f1") -> None:
    embedder = HashEmbeddingProvider(dimension=128)
    chunks = [_make_chunk(i, t, project_id=project_id, file_id=file_id) for i, t in enumerate(_TEXTS)]
    await provider.add_chunks(chunks, await embedder.embed(_TEXTS))


class TestChromaDBProvider:
    def test_metadata(self, tmp_path: Path) -> None:
        provider = _provider(tmp_path)
        assert provider.get_provider_name() == "chromadb"
        assert provider.is_available() is True

    @pytest.mark.asyncio
    async def test_add_and_count(self, tmp_path: Path) -> None:
        provider = _provider(tmp_path)
        await _seed(provider)
        await _seed(provider, project_id="p2", file_id="f2")

        assert await provider.count() == 6
        assert await provider.count("p1") == 3
        assert await provider.count("nope") == 0

    @pytest.mark.asyncio
    async def test_upsert_is_idempotent(self, tmp_path: Path) -> None:
        provider = _provider(tmp_path)
        await _seed(provider)
        await _seed(provider)
        assert await provider.count("p1") == 3

    @pytest.mark.asyncio
    async def test_query_scoped_to_project(self, tmp_path: Path) -> None:
        provider = _provider(tmp_path)
        await _seed(provider, project_id="p1", file_id="f1")
        await _seed(provider, project_id="p2", file_id="f2")

        results = await provider.query(_TEXTS[0], "p1", top_k=8, min_similarity=0.0)

        assert {r.chunk.project_id for r in results} == {"p1"}
        assert results[0].chunk.text == _TEXTS[0]
        assert results[0].similarity_score == pytest.approx(1.0, abs=1e-3)
        scores = [r.similarity_score for r in results]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    async def test_query_restores_chunk_metadata(self, tmp_path: Path) -> None:
        provider = _provider(tmp_path)
        await _seed(provider)

        top = (await provider.query(_TEXTS[1], "p1", top_k=1, min_similarity=0.0))[0]
        assert top.chunk.chunk_id == "f1_1"
        assert top.chunk.page == 2
        assert top.chunk.source == "plano.pdf"
        assert top.chunk.metadata == {"source": "plano.pdf", "page": 2, "chunk": 2, "total_chunks": 3}

    @pytest.mark.asyncio
    async def test_threshold_filters_results(self, tmp_path: Path) -> None:
        provider = _provider(tmp_path)
        await _seed(provider)

        results = await provider.query(_TEXTS[2], "p1", top_k=8, min_similarity=0.99)
        assert [r.chunk.chunk_id for r in results] == ["f1_2"]

    @pytest.mark.asyncio
    async def test_query_empty_project_returns_nothing(self, tmp_path: Path) -> None:
        provider = _provider(tmp_path)
        assert await provider.query("qualquer coisa", "p1") == []
        assert await provider.query("qualquer coisa", "p1", top_k=0) == []

    @pytest.mark.asyncio
    async def test_delete_by_file_and_project(self, tmp_path: Path) -> None:
        provider = _provider(tmp_path)
        await _seed(provider, project_id="p1", file_id="f1")
        await _seed(provider, project_id="p1", file_id="f3")
        await _seed(provider, project_id="p2", file_id="f2")

        assert await provider.delete_by_file("f1") == 3
        assert await provider.count("p1") == 3
        assert await provider.delete_by_project("p1") == 3
        assert await provider.delete_by_project("p1") == 0
        assert await provider.count() == 3

    @pytest.mark.asyncio
    async def test_length_mismatch(self, tmp_path: Path) -> None:
        provider = _provider(tmp_path)
        with pytest.raises(ValueError):
            await provider.add_chunks([_make_chunk(0, "x")], [])
        assert await provider.add_chunks([], []) == 0

    @pytest.mark.asyncio
    async def test_dimension_mismatch_on_reopen(self, tmp_path: Path) -> None:
        provider = _provider(tmp_path)
        await _seed(provider)

        with pytest.raises(RAGError, match="dimension mismatch"):
            _provider(tmp_path, dimension=64)

    @pytest.mark.asyncio
    async def test_embedding_failure_becomes_rag_error(self, tmp_path: Path) -> None:
        provider = _provider(tmp_path)
        await _seed(provider)

        failing = MagicMock()
        failing.embed_single = AsyncMock(side_effect=RuntimeError("embedder down"))
        provider._embedding_provider = failing

        with pytest.raises(RAGError):
            await provider.query("texto", "p1")

"""Unit tests for TextChunker."""

from __future__ import annotations

import pytest

from src.services.ingestion.chunker import TextChunker, estimate_page
from src.services.ingestion.text_extractor import ExtractedDocument, ExtractedPage


def _sentences(count: int, prefix: str = "Frase") -> str:
    return " ".join(f"{prefix} numero {i} sobre o investimento produtivo." for i in range(count))


class TestSplit:
    def test_empty_text(self) -> None:
        assert TextChunker().split("") == []
        assert TextChunker().split("  \n\n ") == []

    def test_short_text_single_chunk(self) -> None:
        assert TextChunker().split("Um parágrafo curto.") == ["Um parágrafo curto."]

    def test_paragraphs_packed_together(self) -> None:
        text = "Primeiro parágrafo.\n\nSegundo parágrafo.\n \nTerceiro."
        assert TextChunker().split(text) == ["Primeiro parágrafo.\n\nSegundo parágrafo.\n\nTerceiro."]

    def test_chunks_respect_size(self) -> None:
        chunker = TextChunker(chunk_size=500, overlap=100)
        text = "\n\n".join(_sentences(12, prefix=f"P{p}") for p in range(6))

        chunks = chunker.split(text)

        assert len(chunks) > 1
        assert all(len(c) <= 500 for c in chunks)

    def test_consecutive_chunks_overlap(self) -> None:
        chunker = TextChunker(chunk_size=300, overlap=80)
        chunks = chunker.split(_sentences(40))

        for prev, nxt in zip(chunks, chunks[1:]):
            first_words = " ".join(nxt.split(" ")[:2])
            assert first_words in prev[-80:]

    def test_no_overlap(self) -> None:
        chunker = TextChunker(chunk_size=200, overlap=0)
        text = _sentences(20)
        chunks = chunker.split(text)
        assert " ".join(chunks) == text

    def test_every_sentence_is_kept(self) -> None:
        text = _sentences(30)
        joined = " ".join(TextChunker(chunk_size=250, overlap=50).split(text))
        for i in range(30):
            assert f"numero {i} sobre" in joined

    def test_unbroken_text_uses_fixed_windows(self) -> None:
        text = "x" * 1200
        chunks = TextChunker(chunk_size=500, overlap=100).split(text)
        assert [len(c) for c in chunks] == [500, 500, 400]

    def test_sentence_split_ignores_abbreviations(self) -> None:
        sentences = TextChunker._split_sentences("O Sr. Silva é o gerente. A Dra. Costa lidera a I&D! Certo?")
        assert sentences == ["O Sr. Silva é o gerente.", "A Dra. Costa lidera a I&D!", "Certo?"]

    @pytest.mark.parametrize(("size", "overlap"), [(0, 0), (100, 100), (100, 150), (100, -1)])
    def test_invalid_configuration(self, size: int, overlap: int) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=size, overlap=overlap)


class TestChunkDocument:
    def test_unpaginated_estimates_pages(self) -> None:
        text = "\n\n".join(_sentences(10, prefix=f"Bloco {b}") for b in range(20))
        document = ExtractedDocument(pages=[ExtractedPage(1, text)])
        assert document.page_count >= 2

        chunks = TextChunker().chunk(document, project_id="p1", file_id="f1", source="memoria.docx")

        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
        assert all(c.total_chunks == len(chunks) for c in chunks)
        assert chunks[0].page == 1
        assert chunks[-1].page == document.page_count
        assert [c.page for c in chunks] == sorted(c.page for c in chunks)
        assert len({c.chunk_id for c in chunks}) == len(chunks)
        assert all(c.project_id == "p1" and c.file_id == "f1" for c in chunks)
        assert chunks[0].source == "memoria.docx"

    def test_paginated_keeps_real_pages(self) -> None:
        document = ExtractedDocument(
            pages=[
                ExtractedPage(1, "Capítulo um."),
                ExtractedPage(2, ""),
                ExtractedPage(3, "Capítulo três."),
            ],
            paginated=True,
        )
        chunks = TextChunker().chunk(document, project_id="p1", file_id="f1", source="")

        assert [(c.text, c.page) for c in chunks] == [("Capítulo um.", 1), ("Capítulo três.", 3)]
        assert chunks[0].source == "Documento"

    def test_empty_document(self) -> None:
        assert TextChunker().chunk(ExtractedDocument(), "p1", "f1", "x.txt") == []


class TestEstimatePage:
    def test_spread(self) -> None:
        assert estimate_page(0, 10, 3) == 1
        assert estimate_page(4, 10, 3) == 2
        assert estimate_page(9, 10, 3) == 3

    def test_degenerate(self) -> None:
        assert estimate_page(0, 0, 3) == 1
        assert estimate_page(5, 10, 0) == 1

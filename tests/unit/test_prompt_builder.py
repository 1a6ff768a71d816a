"""Unit tests for prompt construction."""

from __future__ import annotations

from src.services.prompt_builder import (
    SYSTEM_PROMPT,
    build_context,
    build_user_prompt,
    compute_max_tokens,
)
from tests.conftest import make_retrieved


class TestBuildContext:
    def test_empty(self) -> None:
        assert build_context([]) == ""

    def test_numbered_chunks(self) -> None:
        context = build_context(
            [make_retrieved(text="Primeiro excerto."), make_retrieved(text="Segundo excerto.")]
        )
        assert context == (
            "\n\nDOCUMENTAÇÃO RELEVANTE:\n"
            "\n[1] Primeiro excerto.\n"
            "\n[2] Segundo excerto.\n"
        )


class TestBuildUserPrompt:
    def test_draft_prompt(self) -> None:
        prompt = build_user_prompt(
            title="Mercados mais relevantes",
            description="Grau de internacionalização",
            char_limit=1000,
            chunks=[make_retrieved(text="Exporta para Espanha.")],
        )

        assert 'Gere conteúdo para a secção "Mercados mais relevantes"' in prompt
        assert "DESCRIÇÃO DA SECÇÃO: Grau de internacionalização" in prompt
        assert "- Máximo 1000 caracteres" in prompt
        assert "- Seja específico e concreto" in prompt
        assert "[1] Exporta para Espanha." in prompt
        assert prompt.endswith('Gere o conteúdo para a secção "Mercados mais relevantes":')
        assert "INSTRUÇÕES DE REVISÃO" not in prompt

    def test_without_chunks_or_description(self) -> None:
        prompt = build_user_prompt("Título", None, 500, [])
        assert "DOCUMENTAÇÃO RELEVANTE" not in prompt
        assert "DESCRIÇÃO DA SECÇÃO: \n" in prompt

    def test_revision_prompt(self) -> None:
        prompt = build_user_prompt(
            "Título",
            "Desc",
            800,
            [],
            instruction="Torne o texto mais conciso",
            current_text="Texto original longo.",
        )
        assert "TEXTO ATUAL:\nTexto original longo." in prompt
        assert "INSTRUÇÕES DE REVISÃO:\nTorne o texto mais conciso" in prompt
        assert prompt.index("INSTRUÇÕES DE REVISÃO") < prompt.index("Gere o conteúdo para a secção")

    def test_system_prompt_mentions_programme(self) -> None:
        assert "Portugal 2030" in SYSTEM_PROMPT


class TestComputeMaxTokens:
    def test_scales_with_limit(self) -> None:
        assert compute_max_tokens(1000) == 1200
        assert compute_max_tokens(1500) == 1800

    def test_capped(self) -> None:
        assert compute_max_tokens(5000) == 4000
        assert compute_max_tokens(5000, cap=2000) == 2000

    def test_minimum_one(self) -> None:
        assert compute_max_tokens(0) == 1

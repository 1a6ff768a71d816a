"""Prompt templates for section generation and refinement.

The user prompt lists the section's title and description, the writing
requirements (including the character limit), and a numbered block of
retrieved document chunks:

    DOCUMENTAÇÃO RELEVANTE:

    [1] <chunk text>

    [2] <chunk text>

Refinement prompts add the current section text and the user's revision
instructions before the closing line.
"""

from __future__ import annotations

from src.models.rag import RetrievedChunk

SYSTEM_PROMPT = (
    "Você é um especialista em candidaturas ao programa Portugal 2030. "
    "Gere conteúdo profissional e técnico para candidaturas."
)

_REQUIREMENTS = (
    "Linguagem técnica mas acessível",
    "Foque nos aspectos mais relevantes para a candidatura",
    "Use informação da documentação fornecida quando disponível",
    "Seja específico e concreto",
)

# Generated Portuguese runs close to 1 token per 0.8 characters.
_TOKENS_PER_CHAR = 1.2


def build_context(chunks: list[RetrievedChunk]) -> str:
    if not chunks:
        return ""
    context = "\n\nDOCUMENTAÇÃO RELEVANTE:\n"
    for index, retrieved in enumerate(chunks, start=1):
        context += f"\n[{index}] {retrieved.chunk.text}\n"
    return context


def build_user_prompt(
    title: str,
    description: str | None,
    char_limit: int,
    chunks: list[RetrievedChunk],
    instruction: str | None = None,
    current_text: str | None = None,
) -> str:
    """Build the user message for one section.

    When *instruction* is given the prompt asks for a revision of
    *current_text* instead of a fresh draft.
    """
    requirements = "\n".join(
        [f"- Máximo {char_limit} caracteres", *(f"- {r}" for r in _REQUIREMENTS)]
    )
    revision = ""
    if instruction:
        revision = (
            f"\n\nTEXTO ATUAL:\n{current_text or ''}"
            f"\n\nINSTRUÇÕES DE REVISÃO:\n{instruction}"
        )

    return (
        "\nVocê é um especialista em candidaturas ao programa Portugal 2030. "
        f'Gere conteúdo para a secção "{title}" de uma candidatura.\n'
        f"\nDESCRIÇÃO DA SECÇÃO: {description or ''}\n"
        f"\nREQUISITOS:\n{requirements}\n"
        f"\n{build_context(chunks)}{revision}\n"
        f'\nGere o conteúdo para a secção "{title}":'
    )


def compute_max_tokens(char_limit: int, cap: int = 4000) -> int:
    """Token budget for a char limit: ``min(floor(char_limit * 1.2), cap)``, at least 1."""
    return max(1, min(int(char_limit * _TOKENS_PER_CHAR), cap))

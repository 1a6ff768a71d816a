"""Unit tests for GenerationService: routing, fallback, truncation and auto-save."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.config.model_catalog import ModelCatalog
from src.models.generation import GenerationRequest
from src.services.generation_service import GenerationService, truncate_to_limit
from src.services.prompt_builder import SYSTEM_PROMPT
from src.services.retrieval_service import RetrievalService
from src.utils.errors import (
    GenerationError,
    LLMError,
    NotFoundError,
    ProviderUnavailableError,
    RateLimitError,
)
from tests.conftest import make_llm, make_retrieved


def _retrieval(chunks=None) -> MagicMock:
    retrieval = MagicMock(spec=RetrievalService)
    retrieval.retrieve = AsyncMock(return_value=chunks or [])
    return retrieval


async def _project_with_section(store, char_limit: int = 1000, content: str = "") -> str:
    project = await store.create_project("u1", {"title": "Projeto"})
    await store.add_sections(
        project.id,
        [
            {
                "key": "4.ii",
                "title": "Mercados mais relevantes",
                "description": "Grau de internacionalização",
                "char_limit": char_limit,
                "content": content,
            }
        ],
    )
    return project.id


def _service(store, providers, mock_config, retrieval=None) -> GenerationService:
    return GenerationService(
        store=store,
        retrieval=retrieval or _retrieval(),
        llm_providers=providers,
        catalog=ModelCatalog.from_config(mock_config),
        temperature=0.7,
        max_tokens_cap=4000,
        default_char_limit=2000,
    )


class TestTruncateToLimit:
    def test_within_limit(self) -> None:
        assert truncate_to_limit("curto", 10) == ("curto", False)

    def test_cuts_at_word_boundary(self) -> None:
        text, truncated = truncate_to_limit("uma frase bastante comprida", 20)
        assert truncated is True
        assert text == "uma frase bastante"
        assert len(text) <= 20

    def test_hard_cut_when_no_late_space(self) -> None:
        text, truncated = truncate_to_limit("a " + "x" * 50, 20)
        assert truncated is True
        assert text == ("a " + "x" * 50)[:20]


class TestGenerate:
    @pytest.mark.asyncio
    async def test_generates_and_saves(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store)
        llm = make_llm("openrouter", reply="  Texto sobre mercados.  ", default_model="google/gemini-2.0-flash-exp")
        retrieval = _retrieval([make_retrieved(similarity=0.9), make_retrieved(chunk_id="f1_1", similarity=0.8)])
        service = _service(sqlite_store, {"openrouter": llm}, mock_config, retrieval)

        result = await service.generate(project_id, GenerationRequest(section_key="4.ii"))

        assert result.text == "Texto sobre mercados."
        assert result.chars_used == len("Texto sobre mercados.")
        assert result.char_limit == 1000
        assert result.truncated is False
        assert result.provider == "openrouter"
        assert result.model == "google/gemini-2.0-flash-exp"
        assert result.search_method == "vector"
        assert result.chunks_used == 2
        assert [s.confidence for s in result.sources] == [0.9, 0.8]
        assert result.saved is True

        retrieval.retrieve.assert_awaited_once_with(project_id, "Mercados mais relevantes Grau de internacionalização")
        kwargs = llm.complete.call_args.kwargs
        assert kwargs["system_prompt"] == SYSTEM_PROMPT
        assert kwargs["max_tokens"] == 1200
        assert "[1] A empresa exporta" in kwargs["user_prompt"]

        section = await sqlite_store.get_section(project_id, "4.ii")
        assert section.content == "Texto sobre mercados."
        generations = await sqlite_store.list_generations(project_id)
        assert [g.id for g in generations] == [result.generation_id]

    @pytest.mark.asyncio
    async def test_request_limit_above_section_limit_is_not_saved(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store, char_limit=100, content="Texto anterior.")
        reply = "Mercados " * 30
        service = _service(sqlite_store, {"openrouter": make_llm("openrouter", reply=reply)}, mock_config)

        result = await service.generate(project_id, GenerationRequest(section_key="4.ii", char_limit=5000))

        assert result.char_limit == 5000
        assert result.text == reply.strip()
        assert result.saved is False
        section = await sqlite_store.get_section(project_id, "4.ii")
        assert section.content == "Texto anterior."

    @pytest.mark.asyncio
    async def test_request_limit_above_section_limit_saves_short_text(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store, char_limit=100)
        service = _service(sqlite_store, {"openrouter": make_llm("openrouter", reply="Curto.")}, mock_config)

        result = await service.generate(project_id, GenerationRequest(section_key="4.ii", char_limit=5000))

        assert result.saved is True
        assert (await sqlite_store.get_section(project_id, "4.ii")).content == "Curto."

    @pytest.mark.asyncio
    async def test_without_chunks(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store)
        service = _service(sqlite_store, {"openrouter": make_llm("openrouter")}, mock_config)

        result = await service.generate(project_id, GenerationRequest(section_key="4.ii"))

        assert result.search_method == "none"
        assert result.sources == []

    @pytest.mark.asyncio
    async def test_truncates_to_char_limit(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store, char_limit=30)
        llm = make_llm("openrouter", reply="palavra " * 20)
        service = _service(sqlite_store, {"openrouter": llm}, mock_config)

        result = await service.generate(project_id, GenerationRequest(section_key="4.ii"))

        assert result.truncated is True
        assert len(result.text) <= 30
        assert result.chars_used == len(result.text)

    @pytest.mark.asyncio
    async def test_request_char_limit_overrides_section(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store, char_limit=1000)
        llm = make_llm("openrouter")
        service = _service(sqlite_store, {"openrouter": llm}, mock_config)

        result = await service.generate(project_id, GenerationRequest(section_key="4.ii", char_limit=500))

        assert result.char_limit == 500
        assert llm.complete.call_args.kwargs["max_tokens"] == 600

    @pytest.mark.asyncio
    async def test_no_auto_save(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store, content="Texto anterior")
        service = _service(sqlite_store, {"openrouter": make_llm("openrouter")}, mock_config)

        result = await service.generate(project_id, GenerationRequest(section_key="4.ii", auto_save=False))

        assert result.saved is False
        assert (await sqlite_store.get_section(project_id, "4.ii")).content == "Texto anterior"

    @pytest.mark.asyncio
    async def test_unknown_section(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store)
        service = _service(sqlite_store, {"openrouter": make_llm("openrouter")}, mock_config)

        with pytest.raises(NotFoundError):
            await service.generate(project_id, GenerationRequest(section_key="99"))

    @pytest.mark.asyncio
    async def test_refine_includes_current_text(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store, content="Versão longa e repetitiva.")
        llm = make_llm("openrouter", reply="Versão concisa.")
        service = _service(sqlite_store, {"openrouter": llm}, mock_config)

        result = await service.refine(project_id, "4.ii", "Torne mais conciso")

        prompt = llm.complete.call_args.kwargs["user_prompt"]
        assert "TEXTO ATUAL:\nVersão longa e repetitiva." in prompt
        assert "Torne mais conciso" in prompt
        assert result.text == "Versão concisa."
        assert (await sqlite_store.get_section(project_id, "4.ii")).content == "Versão concisa."


class TestRoutingAndFallback:
    @pytest.mark.asyncio
    async def test_routes_model_to_catalogue_provider(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store)
        openrouter = make_llm("openrouter")
        flowise = make_llm("flowise", reply="Do Flowise.")
        service = _service(sqlite_store, {"openrouter": openrouter, "flowise": flowise}, mock_config)

        result = await service.generate(project_id, GenerationRequest(section_key="4.ii", model="gpt-4o"))

        assert result.provider == "flowise"
        assert result.model == "gpt-4o"
        openrouter.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_vendor_prefixed_model_goes_to_openrouter(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store)
        openai_llm = make_llm("openai", default_model="gpt-4o-mini")
        openrouter = make_llm("openrouter")
        service = _service(sqlite_store, {"openai": openai_llm, "openrouter": openrouter}, mock_config)

        result = await service.generate(
            project_id, GenerationRequest(section_key="4.ii", model="mistralai/mixtral-8x7b")
        )

        assert result.provider == "openrouter"
        assert openrouter.complete.call_args.kwargs["model"] == "mistralai/mixtral-8x7b"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            LLMError(message="bad", provider_name="openrouter"),
            ProviderUnavailableError(message="down", provider_name="openrouter"),
            RateLimitError(message="429", provider_name="openrouter"),
        ],
    )
    async def test_falls_back_with_default_model(self, sqlite_store, mock_config, error) -> None:
        project_id = await _project_with_section(sqlite_store)
        openrouter = make_llm("openrouter", reply=error)
        anthropic = make_llm("anthropic", reply="Texto do Claude.", default_model="claude-3-5-sonnet-20241022")
        service = _service(sqlite_store, {"openrouter": openrouter, "anthropic": anthropic}, mock_config)

        result = await service.generate(
            project_id,
            GenerationRequest(section_key="4.ii", model="google/gemini-2.0-flash-exp"),
        )

        assert result.provider == "anthropic"
        assert result.model == "claude-3-5-sonnet-20241022"
        assert anthropic.complete.call_args.kwargs["model"] == "claude-3-5-sonnet-20241022"
        generations = await sqlite_store.list_generations(project_id)
        assert generations[0].provider == "anthropic"

    @pytest.mark.asyncio
    async def test_empty_reply_falls_back(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store)
        first = make_llm("openrouter", reply="   ")
        second = make_llm("ollama", reply="Texto local.")
        service = _service(sqlite_store, {"openrouter": first, "ollama": second}, mock_config)

        result = await service.generate(project_id, GenerationRequest(section_key="4.ii"))
        assert result.provider == "ollama"

    @pytest.mark.asyncio
    async def test_all_providers_fail(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store)
        service = _service(
            sqlite_store,
            {
                "openrouter": make_llm("openrouter", reply=RateLimitError(message="429")),
                "flowise": make_llm("flowise", reply=LLMError(message="500")),
            },
            mock_config,
        )

        with pytest.raises(GenerationError) as exc_info:
            await service.generate(project_id, GenerationRequest(section_key="4.ii"))

        assert [name for name, _ in exc_info.value.attempts] == ["openrouter", "flowise"]
        assert exc_info.value.status_code == 502
        assert (await sqlite_store.get_section(project_id, "4.ii")).content == ""
        assert await sqlite_store.list_generations(project_id) == []

    @pytest.mark.asyncio
    async def test_unexpected_error_is_not_swallowed(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store)
        broken = make_llm("openrouter", reply=RuntimeError("bug"))
        backup = make_llm("openai")
        service = _service(sqlite_store, {"openrouter": broken, "openai": backup}, mock_config)

        with pytest.raises(RuntimeError):
            await service.generate(project_id, GenerationRequest(section_key="4.ii"))
        backup.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_providers(self, sqlite_store, mock_config) -> None:
        project_id = await _project_with_section(sqlite_store)
        unavailable = make_llm("openai")
        unavailable.is_available.return_value = False
        service = _service(sqlite_store, {"openai": unavailable}, mock_config)

        assert service.available_providers() == []
        with pytest.raises(ProviderUnavailableError):
            await service.generate(project_id, GenerationRequest(section_key="4.ii"))

    def test_plan_skips_duplicate_provider(self, mock_config) -> None:
        service = _service(
            MagicMock(),
            {"openrouter": make_llm("openrouter", default_model="d1"), "flowise": make_llm("flowise", default_model="d2")},
            mock_config,
        )
        assert service._plan_attempts("google/gemini-2.0-flash-exp") == [
            ("openrouter", "google/gemini-2.0-flash-exp"),
            ("flowise", "d2"),
        ]
        assert service._plan_attempts(None) == [("openrouter", "d1"), ("flowise", "d2")]

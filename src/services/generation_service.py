"""RAG-assisted section generation with multi-provider fallback.

Flow for one section:

  1. SECTION      -- load title, description and char limit from the store.
  2. RETRIEVE     -- query the project's chunks with "{title} {description}".
  3. PROMPT       -- build the system and user prompts (prompt_builder).
  4. COMPLETE     -- call the LLM provider that serves the requested model;
                     on LLMError / ProviderUnavailableError / RateLimitError
                     move on to the next available provider in priority
                     order, using that provider's default model.
  5. ENFORCE      -- cut the text at a word boundary if it exceeds the limit.
  6. RECORD/SAVE  -- log the generation and auto-save it to the section.

The service never talks to an SDK directly; providers are injected as
:class:`ILLMProvider` instances keyed by name.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from src.models.generation import GenerationRequest, GenerationResult, GenerationSource
from src.services.prompt_builder import (
    SYSTEM_PROMPT,
    build_user_prompt,
    compute_max_tokens,
)
from src.services.retrieval_service import RetrievalService, build_query
from src.utils.errors import (
    GenerationError,
    LLMError,
    NotFoundError,
    ProviderUnavailableError,
    RateLimitError,
)

if TYPE_CHECKING:
    from src.config.model_catalog import ModelCatalog
    from src.interfaces.llm_provider import ILLMProvider
    from src.interfaces.project_store import IProjectStore

logger = structlog.get_logger(logger_name=__name__)

_FALLBACK_ERRORS = (LLMError, ProviderUnavailableError, RateLimitError)


def truncate_to_limit(text: str, char_limit: int) -> tuple[str, bool]:
    """Cut *text* to at most *char_limit* characters at a word boundary.

    Falls back to a hard cut when the last whitespace is in the first half
    of the allowed span.  Returns ``(text, truncated)``.
    """
    if len(text) <= char_limit:
        return text, False
    cut = text[:char_limit]
    boundary = max(cut.rfind(" "), cut.rfind("\n"))
    if boundary > char_limit // 2:
        cut = cut[:boundary]
    return cut.rstrip(), True


class GenerationService:
    """Generates and refines project sections.

    Parameters
    ----------
    store:
        Project store for sections and the generation log.
    retrieval:
        Project-scoped retrieval over indexed documents.
    llm_providers:
        Provider name -> instance, in fallback priority order.
    catalog:
        Model catalogue used to route a model id to its provider.
    """

    def __init__(
        self,
        store: IProjectStore,
        retrieval: RetrievalService,
        llm_providers: dict[str, ILLMProvider],
        catalog: ModelCatalog,
        temperature: float = 0.7,
        max_tokens_cap: int = 4000,
        default_char_limit: int = 2000,
    ) -> None:
        self._store = store
        self._retrieval = retrieval
        self._providers = dict(llm_providers)
        self._catalog = catalog
        self._temperature = temperature
        self._max_tokens_cap = max_tokens_cap
        self._default_char_limit = default_char_limit

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(self, project_id: str, request: GenerationRequest) -> GenerationResult:
        """Generate (or, with ``request.instruction``, refine) one section."""
        section = await self._store.get_section(project_id, request.section_key)
        if section is None:
            raise NotFoundError(
                message=f"Secção não encontrada: {request.section_key}",
            )

        char_limit = request.char_limit or section.char_limit or self._default_char_limit
        query = build_query(section.title, section.description)
        chunks = await self._retrieval.retrieve(project_id, query)

        user_prompt = build_user_prompt(
            title=section.title,
            description=section.description,
            char_limit=char_limit,
            chunks=chunks,
            instruction=request.instruction,
            current_text=section.content if request.instruction else None,
        )

        started = time.monotonic()
        raw_text, provider_name, model_id = await self._complete_with_fallback(
            user_prompt=user_prompt,
            model=request.model,
            max_tokens=compute_max_tokens(char_limit, self._max_tokens_cap),
        )
        text, truncated = truncate_to_limit(raw_text.strip(), char_limit)

        record = await self._store.record_generation(
            project_id=project_id,
            section_key=section.key,
            model=model_id,
            provider=provider_name,
        )

        saved = False
        # A request limit above the section's own limit is honoured for the
        # returned text, but that text is not stored in the section.
        fits_section = section.char_limit is None or len(text) <= section.char_limit
        if request.auto_save and fits_section:
            await self._store.update_section_content(project_id, section.key, text)
            saved = True
        elif request.auto_save:
            logger.warning(
                "auto_save_skipped",
                project_id=project_id,
                section_key=section.key,
                chars=len(text),
                section_char_limit=section.char_limit,
            )

        logger.info(
            "section_generated",
            project_id=project_id,
            section_key=section.key,
            provider=provider_name,
            model=model_id,
            chars=len(text),
            char_limit=char_limit,
            truncated=truncated,
            chunks_used=len(chunks),
            refined=bool(request.instruction),
            elapsed_s=round(time.monotonic() - started, 2),
        )

        return GenerationResult(
            section_key=section.key,
            text=text,
            chars_used=len(text),
            char_limit=char_limit,
            truncated=truncated,
            sources=[GenerationSource.from_retrieved(c) for c in chunks],
            chunks_used=len(chunks),
            search_method="vector" if chunks else "none",
            provider=provider_name,
            model=model_id,
            generation_id=record.id,
            saved=saved,
        )

    async def refine(
        self,
        project_id: str,
        section_key: str,
        instruction: str,
        model: str | None = None,
        char_limit: int | None = None,
        auto_save: bool = True,
    ) -> GenerationResult:
        """Revise the section's current text following *instruction*."""
        request = GenerationRequest(
            section_key=section_key,
            model=model,
            char_limit=char_limit,
            instruction=instruction,
            auto_save=auto_save,
        )
        return await self.generate(project_id, request)

    def available_providers(self) -> list[str]:
        return [name for name, p in self._providers.items() if p.is_available()]

    # ------------------------------------------------------------------
    # Routing and fallback
    # ------------------------------------------------------------------

    def _plan_attempts(self, model: str | None) -> list[tuple[str, str]]:
        """Return ``(provider_name, model_id)`` pairs in the order to try."""
        available = self.available_providers()
        if not available:
            return []

        routed = self._catalog.provider_for(model)
        attempts: list[tuple[str, str]] = []
        if model and routed in available:
            attempts.append((routed, model))

        for name in available:
            if any(name == tried for tried, _ in attempts):
                continue
            attempts.append((name, self._providers[name].get_default_model()))
        return attempts

    async def _complete_with_fallback(
        self,
        user_prompt: str,
        model: str | None,
        max_tokens: int,
    ) -> tuple[str, str, str]:
        attempts = self._plan_attempts(model)
        if not attempts:
            raise ProviderUnavailableError(
                message="Nenhum fornecedor de IA configurado",
            )

        failures: list[tuple[str, str]] = []
        for provider_name, model_id in attempts:
            provider = self._providers[provider_name]
            try:
                text = await provider.complete(
                    system_prompt=SYSTEM_PROMPT,
                    user_prompt=user_prompt,
                    temperature=self._temperature,
                    max_tokens=max_tokens,
                    model=model_id,
                )
            except _FALLBACK_ERRORS as exc:
                failures.append((provider_name, str(exc)))
                logger.warning(
                    "llm_attempt_failed",
                    provider=provider_name,
                    model=model_id,
                    error=str(exc),
                )
                continue

            if not text or not text.strip():
                failures.append((provider_name, "empty response"))
                logger.warning("llm_attempt_empty", provider=provider_name, model=model_id)
                continue

            if failures:
                logger.info(
                    "llm_fallback_succeeded",
                    provider=provider_name,
                    model=model_id,
                    failed=[name for name, _ in failures],
                )
            return text, provider_name, model_id

        raise GenerationError(
            message="Todos os fornecedores de IA falharam: "
            + "; ".join(f"{name}: {error}" for name, error in failures),
            attempts=failures,
        )

"""Candidaturas PT2030 FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.  ``build_components`` is also used by the operator CLI
(``python -m src.cli``) so both share one assembly path.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.model_catalog import ModelCatalog
from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.flowise_provider import FlowiseLLMProvider
from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.llm.openrouter_provider import OpenRouterLLMProvider
from src.providers.storage.local_file_storage import LocalFileStorage
from src.providers.storage.sqlite_project_store import SQLiteProjectStore
from src.services.export_service import ExportService
from src.services.generation_service import GenerationService
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.indexing_service import IndexingService
from src.services.project_service import ProjectService
from src.services.retrieval_service import RetrievalService
from src.utils.errors import ConfigurationError, RAGError
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)

_APP_VERSION = str(config.get("app", {}).get("version", "0.1.0"))


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_providers(
    app_settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, ILLMProvider]:
    """Build every configured LLM provider, keyed by name in priority order.

    Providers without the settings they need are skipped; the generation
    service falls back through the rest in this order.
    """
    factories = {
        "openrouter": lambda: OpenRouterLLMProvider(settings=app_settings),
        "openai": lambda: OpenAILLMProvider(settings=app_settings),
        "anthropic": lambda: AnthropicLLMProvider(settings=app_settings),
        "ollama": lambda: OllamaLLMProvider(settings=app_settings),
        "flowise": lambda: FlowiseLLMProvider(settings=app_settings, http_client=http_client),
    }
    available = set(app_settings.get_available_llm_providers())
    providers: dict[str, ILLMProvider] = {}
    for name in app_settings.get_provider_priority():
        if name in available:
            providers[name] = factories[name]()
    return providers


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Select the embedding provider.

    ``auto``: OpenAI when an API key is set, otherwise the offline hash
    embedder.  ``openai`` requires the key; ``hash`` never calls out.
    """
    choice = app_settings.embedding_provider.strip().lower()
    if choice not in ("auto", "openai", "hash"):
        raise ConfigurationError(
            message=f"EMBEDDING_PROVIDER must be auto, openai or hash (got {choice!r})",
        )
    if choice in ("auto", "openai") and app_settings.openai_api_key:
        return OpenAIEmbeddingProvider(settings=app_settings)
    if choice == "openai":
        raise ConfigurationError(
            message="EMBEDDING_PROVIDER=openai requires OPENAI_API_KEY",
            provider_name="openai_embedding",
        )
    return HashEmbeddingProvider(dimension=app_settings.embedding_dimension)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=30.0)

    # -- Persistence --
    store = SQLiteProjectStore(db_path=app_settings.database_path)
    file_storage = LocalFileStorage(root_dir=app_settings.storage_dir)

    # -- LLM --
    llm_providers = _build_llm_providers(app_settings, http_client=http_client)
    if not llm_providers:
        _logger.warning(
            "no_llm_provider_configured",
            msg="Generation will fail until an LLM provider is configured.",
        )
    catalog = ModelCatalog.from_config(app_config)

    # -- RAG --
    embedding_provider = _build_embedding_provider(app_settings)
    vector_store: IVectorStoreProvider | None = None
    try:
        from src.providers.vector_store.chromadb_provider import ChromaDBProvider

        vector_store = ChromaDBProvider(
            embedding_provider=embedding_provider,
            persist_directory=app_settings.chromadb_persist_dir,
            collection_name=app_settings.chromadb_collection,
        )
        _logger.info(
            "rag_enabled",
            embedding_provider=embedding_provider.get_provider_name(),
            vector_store="chromadb",
            persist_dir=app_settings.chromadb_persist_dir,
        )
    except RAGError as exc:
        _logger.error("rag_disabled", error=str(exc))

    min_similarity = app_settings.rag_similarity_threshold
    if min_similarity is None:
        min_similarity = embedding_provider.default_similarity_threshold()

    retrieval_service = RetrievalService(
        vector_store=vector_store,
        top_k=app_settings.rag_top_k,
        min_similarity=min_similarity,
    )

    indexing_service: IndexingService | None = None
    if vector_store is not None:
        indexing_service = IndexingService(
            store=store,
            file_storage=file_storage,
            embedding_provider=embedding_provider,
            vector_store=vector_store,
            chunker=TextChunker(
                chunk_size=app_settings.chunk_size,
                overlap=app_settings.chunk_overlap,
            ),
        )

    # -- Services --
    project_service = ProjectService(
        store=store,
        file_storage=file_storage,
        vector_store=vector_store,
        max_upload_mb=app_settings.max_upload_mb,
    )
    generation_service = GenerationService(
        store=store,
        retrieval=retrieval_service,
        llm_providers=llm_providers,
        catalog=catalog,
        temperature=app_settings.generation_temperature,
        max_tokens_cap=app_settings.generation_max_tokens_cap,
        default_char_limit=app_settings.default_char_limit,
    )
    export_service = ExportService(projects=project_service, store=store)

    # -- Provider list for /providers --
    provider_list: list[dict[str, Any]] = [
        {
            "name": name,
            "type": "llm",
            "available": provider.is_available(),
            "default_model": provider.get_default_model(),
        }
        for name, provider in llm_providers.items()
    ]
    provider_list.append(
        {
            "name": embedding_provider.get_provider_name(),
            "type": "embedding",
            "available": embedding_provider.is_available(),
        }
    )
    provider_list.append(
        {
            "name": "chromadb",
            "type": "vector_store",
            "available": vector_store is not None and vector_store.is_available(),
        }
    )
    provider_list.append({"name": store.get_provider_name(), "type": "database", "available": True})
    provider_list.append({"name": file_storage.get_provider_name(), "type": "storage", "available": True})

    return {
        "settings": app_settings,
        "app_version": _APP_VERSION,
        "http_client": http_client,
        "store": store,
        "file_storage": file_storage,
        "llm_providers": llm_providers,
        "model_catalog": catalog,
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "retrieval_service": retrieval_service,
        "indexing_service": indexing_service,
        "project_service": project_service,
        "generation_service": generation_service,
        "export_service": export_service,
        "provider_list": provider_list,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = build_components(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    # Create tables on first start.
    await components["store"].initialize()

    _logger.info(
        "app_startup",
        version=_APP_VERSION,
        environment=settings.app_env,
        llm_providers=list(components["llm_providers"]),
        rag=components["vector_store"] is not None,
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Candidaturas PT2030 API",
        version=_APP_VERSION,
        description=(
            "Draft Portugal 2030 grant applications: manage projects and their "
            "sections, upload supporting documents, and generate section text "
            "with retrieval-augmented LLM generation."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_cors_origins())

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )

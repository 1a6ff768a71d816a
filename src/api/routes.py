"""FastAPI API routes for the PT2030 candidaturas service.

Provides REST endpoints for projects, sections, RAG generation, document
upload and indexing, retrieval previews, exports, health checks, and
provider listing.  Service dependencies are resolved from ``app.state``
via FastAPI's ``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                        Method   Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/health                                  GET      Health + provider status
# /api/v1/providers                               GET      Configured providers
# /api/v1/providers/test                          POST     Live LLM credential check
# /api/v1/models                                  GET      Model catalogue
# /api/v1/sections/catalog                        GET      PT2030 section catalogue
# /api/v1/projects                                POST/GET Create (seeded) / list
# /api/v1/projects/{pid}                          GET/PATCH/DELETE
# /api/v1/projects/{pid}/stats                    GET      Completion statistics
# /api/v1/projects/{pid}/sections                 GET      Sections in form order
# /api/v1/projects/{pid}/sections/{key}           GET/PUT  Read / save content
# /api/v1/projects/{pid}/sections/{key}/generate  POST     RAG generation
# /api/v1/projects/{pid}/sections/{key}/refine    POST     Revise current text
# /api/v1/projects/{pid}/generations              GET      Generation log
# /api/v1/projects/{pid}/files                    POST/GET Upload (+ indexing) / list
# /api/v1/projects/{pid}/files/{fid}              DELETE   Remove file + chunks
# /api/v1/projects/{pid}/files/{fid}/index        POST     (Re)index now
# /api/v1/projects/{pid}/search                   POST     Retrieval preview
# /api/v1/projects/{pid}/export                   POST     Download PDF / DOCX
# /api/v1/projects/{pid}/exports                  GET      Export log
#
# Every /projects route requires an ``X-User-Id`` header; projects owned
# by another user answer 404, exactly like missing ones.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any
from urllib.parse import quote

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request, Response, UploadFile

from src.api.schemas import (
    ErrorResponse,
    ExportListResponse,
    ExportRequestBody,
    FileListResponse,
    FileUploadResponse,
    GenerateSectionRequest,
    GenerationListResponse,
    HealthResponse,
    IndexFileResponse,
    ModelsResponse,
    ProjectListResponse,
    ProvidersResponse,
    ProviderTestResponse,
    ProviderTestResult,
    RefineSectionRequest,
    SaveSectionRequest,
    SearchRequest,
    SearchResponse,
    SearchResult,
    SectionCatalogResponse,
    SectionListResponse,
)
from src.config.model_catalog import ModelCatalog
from src.config.pt2030_sections import PT2030_SECTIONS
from src.models.generation import GenerationRequest, GenerationResult, GenerationSource
from src.models.project import Project, ProjectCreate, ProjectSection, ProjectStats, ProjectUpdate
from src.services.export_service import ExportService, parse_export_request
from src.services.generation_service import GenerationService
from src.services.ingestion.indexing_service import IndexingService
from src.services.project_service import ProjectService
from src.services.retrieval_service import RetrievalService
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# All routes in this file are prefixed with /api/v1.
router = APIRouter(prefix="/api/v1")

# Uploads are read in 64 KB increments.
_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_project_service(request: Request) -> ProjectService:
    return request.app.state.project_service


def _get_generation_service(request: Request) -> GenerationService:
    return request.app.state.generation_service


def _get_indexing_service(request: Request) -> IndexingService | None:
    """Return the indexing service, or ``None`` when indexing is disabled."""
    return getattr(request.app.state, "indexing_service", None)


def _get_retrieval_service(request: Request) -> RetrievalService:
    return request.app.state.retrieval_service


def _get_export_service(request: Request) -> ExportService:
    return request.app.state.export_service


def _get_model_catalog(request: Request) -> ModelCatalog:
    return request.app.state.model_catalog


def _get_user_id(x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None) -> str:
    """Caller identity; used only to scope projects."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


ProjectServiceDep = Annotated[ProjectService, Depends(_get_project_service)]
GenerationServiceDep = Annotated[GenerationService, Depends(_get_generation_service)]
IndexingServiceDep = Annotated[IndexingService | None, Depends(_get_indexing_service)]
RetrievalServiceDep = Annotated[RetrievalService, Depends(_get_retrieval_service)]
ExportServiceDep = Annotated[ExportService, Depends(_get_export_service)]
ModelCatalogDep = Annotated[ModelCatalog, Depends(_get_model_catalog)]
UserIdDep = Annotated[str, Depends(_get_user_id)]


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability.

    healthy: an LLM provider and the vector store are available.
    degraded: generation works but retrieval does not.
    unhealthy: no LLM provider is configured.
    """
    llm_providers: dict[str, Any] = getattr(request.app.state, "llm_providers", {}) or {}
    providers: dict[str, Any] = {
        name: provider.is_available() for name, provider in llm_providers.items()
    }
    llm_ok = any(providers.values())
    providers["llm"] = llm_ok

    vector_store = getattr(request.app.state, "vector_store", None)
    rag_ok = False
    if vector_store is not None:
        try:
            providers["rag_chunks"] = await vector_store.count()
            rag_ok = vector_store.is_available()
        except Exception as exc:
            _logger.warning("health_vector_store_failed", error=str(exc))
            providers["rag_chunks"] = 0
    providers["rag"] = rag_ok

    if llm_ok and rag_ok:
        status = "healthy"
    elif llm_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        version=getattr(request.app.state, "app_version", "0.1.0"),
        providers=providers,
    )


@router.get(
    "/providers",
    response_model=ProvidersResponse,
    summary="List configured providers",
)
async def list_providers(request: Request) -> ProvidersResponse:
    """List all configured providers, their types, and availability status."""
    providers: list[dict[str, Any]] = []
    if hasattr(request.app.state, "provider_list"):
        providers = request.app.state.provider_list

    return ProvidersResponse(providers=providers)


@router.post(
    "/providers/test",
    response_model=ProviderTestResponse,
    summary="Test the connection to each LLM provider",
)
async def test_providers(request: Request) -> ProviderTestResponse:
    llm_providers: dict[str, Any] = getattr(request.app.state, "llm_providers", {}) or {}
    results: list[ProviderTestResult] = []
    for name, provider in llm_providers.items():
        available = provider.is_available()
        connected = False
        error: str | None = None
        if available:
            try:
                connected = await provider.validate_credentials()
            except Exception as exc:
                error = str(exc)
        results.append(
            ProviderTestResult(provider=name, available=available, connected=connected, error=error)
        )
    _logger.info(
        "providers_tested",
        connected=[r.provider for r in results if r.connected],
    )
    return ProviderTestResponse(results=results)


@router.get(
    "/models",
    response_model=ModelsResponse,
    summary="List selectable generation models",
)
async def list_models(request: Request, catalog: ModelCatalogDep) -> ModelsResponse:
    settings = getattr(request.app.state, "settings", None)
    default_model = settings.openrouter_default_model if settings is not None else None
    return ModelsResponse(models=catalog.list_models(), default_model=default_model)


@router.get(
    "/sections/catalog",
    response_model=SectionCatalogResponse,
    summary="PT2030 application section catalogue",
)
async def section_catalog() -> SectionCatalogResponse:
    return SectionCatalogResponse(sections=list(PT2030_SECTIONS))


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


@router.post(
    "/projects",
    response_model=Project,
    status_code=201,
    responses={401: {"model": ErrorResponse}},
    summary="Create a project seeded with the PT2030 sections",
)
async def create_project(body: ProjectCreate, user_id: UserIdDep, projects: ProjectServiceDep) -> Project:
    return await projects.create_project(user_id, body)


@router.get(
    "/projects",
    response_model=ProjectListResponse,
    summary="List the caller's projects",
)
async def list_projects(user_id: UserIdDep, projects: ProjectServiceDep) -> ProjectListResponse:
    items = await projects.list_projects(user_id)
    return ProjectListResponse(projects=items, total=len(items))


@router.get(
    "/projects/{project_id}",
    response_model=Project,
    responses={404: {"model": ErrorResponse}},
)
async def get_project(project_id: str, user_id: UserIdDep, projects: ProjectServiceDep) -> Project:
    return await projects.get_project(user_id, project_id)


@router.patch(
    "/projects/{project_id}",
    response_model=Project,
    responses={404: {"model": ErrorResponse}},
)
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    user_id: UserIdDep,
    projects: ProjectServiceDep,
) -> Project:
    return await projects.update_project(user_id, project_id, body)


@router.delete(
    "/projects/{project_id}",
    status_code=204,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a project with its sections, files, and chunks",
)
async def delete_project(project_id: str, user_id: UserIdDep, projects: ProjectServiceDep) -> Response:
    await projects.delete_project(user_id, project_id)
    return Response(status_code=204)


@router.get(
    "/projects/{project_id}/stats",
    response_model=ProjectStats,
    responses={404: {"model": ErrorResponse}},
)
async def project_stats(project_id: str, user_id: UserIdDep, projects: ProjectServiceDep) -> ProjectStats:
    return await projects.get_stats(user_id, project_id)


# ---------------------------------------------------------------------------
# Sections and generation
# ---------------------------------------------------------------------------


@router.get(
    "/projects/{project_id}/sections",
    response_model=SectionListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_sections(project_id: str, user_id: UserIdDep, projects: ProjectServiceDep) -> SectionListResponse:
    return SectionListResponse(sections=await projects.list_sections(user_id, project_id))


@router.get(
    "/projects/{project_id}/sections/{key}",
    response_model=ProjectSection,
    responses={404: {"model": ErrorResponse}},
)
async def get_section(
    project_id: str,
    key: str,
    user_id: UserIdDep,
    projects: ProjectServiceDep,
) -> ProjectSection:
    return await projects.get_section(user_id, project_id, key)


@router.put(
    "/projects/{project_id}/sections/{key}",
    response_model=ProjectSection,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Save section content (rejected above the section's char limit)",
)
async def save_section(
    project_id: str,
    key: str,
    body: SaveSectionRequest,
    user_id: UserIdDep,
    projects: ProjectServiceDep,
) -> ProjectSection:
    return await projects.save_section(user_id, project_id, key, body.content)


@router.post(
    "/projects/{project_id}/sections/{key}/generate",
    response_model=GenerationResult,
    responses={
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Generate section text from the project's documents",
)
async def generate_section(
    project_id: str,
    key: str,
    user_id: UserIdDep,
    projects: ProjectServiceDep,
    generation: GenerationServiceDep,
    body: GenerateSectionRequest | None = None,
) -> GenerationResult:
    await projects.get_project(user_id, project_id)
    options = body or GenerateSectionRequest()
    request = GenerationRequest(
        section_key=key,
        model=options.model,
        char_limit=options.char_limit,
        auto_save=options.auto_save,
    )
    return await generation.generate(project_id, request)


@router.post(
    "/projects/{project_id}/sections/{key}/refine",
    response_model=GenerationResult,
    responses={
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Revise the section's current text with an instruction",
)
async def refine_section(
    project_id: str,
    key: str,
    body: RefineSectionRequest,
    user_id: UserIdDep,
    projects: ProjectServiceDep,
    generation: GenerationServiceDep,
) -> GenerationResult:
    await projects.get_project(user_id, project_id)
    return await generation.refine(
        project_id,
        key,
        instruction=body.instruction,
        model=body.model,
        char_limit=body.char_limit,
        auto_save=body.auto_save,
    )


@router.get(
    "/projects/{project_id}/generations",
    response_model=GenerationListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_generations(
    project_id: str,
    user_id: UserIdDep,
    projects: ProjectServiceDep,
) -> GenerationListResponse:
    return GenerationListResponse(generations=await projects.list_generations(user_id, project_id))


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


@router.post(
    "/projects/{project_id}/files",
    response_model=FileUploadResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
    },
    summary="Upload a supporting document and index it in the background",
)
async def upload_file(
    project_id: str,
    file: UploadFile,
    background_tasks: BackgroundTasks,
    user_id: UserIdDep,
    projects: ProjectServiceDep,
    indexing: IndexingServiceDep,
    category: str = "general",
) -> FileUploadResponse:
    await projects.get_project(user_id, project_id)
    parts: list[bytes] = []
    received = 0
    while True:
        part = await file.read(_UPLOAD_CHUNK_SIZE)
        if not part:
            break
        received += len(part)
        # Stop reading as soon as the upload is over the limit.
        projects.check_upload_size(received)
        parts.append(part)
    data = b"".join(parts)
    del parts

    record = await projects.upload_file(
        user_id,
        project_id,
        file_name=file.filename or "",
        data=data,
        content_type=file.content_type,
        category=category,
    )

    if indexing is None:
        return FileUploadResponse(file=record, indexing="skipped")
    background_tasks.add_task(indexing.index_file, record.id)
    return FileUploadResponse(file=record, indexing="scheduled")


@router.get(
    "/projects/{project_id}/files",
    response_model=FileListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_files(project_id: str, user_id: UserIdDep, projects: ProjectServiceDep) -> FileListResponse:
    return FileListResponse(files=await projects.list_files(user_id, project_id))


@router.delete(
    "/projects/{project_id}/files/{file_id}",
    status_code=204,
    responses={404: {"model": ErrorResponse}},
)
async def delete_file(
    project_id: str,
    file_id: str,
    user_id: UserIdDep,
    projects: ProjectServiceDep,
) -> Response:
    await projects.delete_file(user_id, project_id, file_id)
    return Response(status_code=204)


@router.post(
    "/projects/{project_id}/files/{file_id}/index",
    response_model=IndexFileResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Index (or reindex) one file and wait for the result",
)
async def index_file(
    project_id: str,
    file_id: str,
    user_id: UserIdDep,
    projects: ProjectServiceDep,
    indexing: IndexingServiceDep,
) -> IndexFileResponse:
    await projects.get_file(user_id, project_id, file_id)
    if indexing is None:
        raise HTTPException(status_code=503, detail="Document indexing is not available")
    result = await indexing.index_file(file_id)
    record = await projects.get_file(user_id, project_id, file_id)
    return IndexFileResponse(result=result, file=record)


# ---------------------------------------------------------------------------
# Retrieval preview
# ---------------------------------------------------------------------------


@router.post(
    "/projects/{project_id}/search",
    response_model=SearchResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Preview which document chunks a query retrieves",
)
async def search_documents(
    project_id: str,
    body: SearchRequest,
    user_id: UserIdDep,
    projects: ProjectServiceDep,
    retrieval: RetrievalServiceDep,
) -> SearchResponse:
    await projects.get_project(user_id, project_id)
    chunks = await retrieval.retrieve(
        project_id,
        body.query,
        top_k=body.top_k,
        min_similarity=body.min_similarity,
    )
    return SearchResponse(
        query=body.query,
        results=[
            SearchResult(
                text=rc.chunk.text,
                similarity=rc.similarity_score,
                metadata=rc.chunk.metadata,
                source=GenerationSource.from_retrieved(rc),
            )
            for rc in chunks
        ],
        search_method="vector" if chunks else "none",
    )


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


@router.post(
    "/projects/{project_id}/export",
    responses={
        200: {"content": {"application/pdf": {}, "application/octet-stream": {}}},
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Render the application as PDF or DOCX",
)
async def export_project(
    project_id: str,
    user_id: UserIdDep,
    exporter: ExportServiceDep,
    body: ExportRequestBody | None = None,
) -> Response:
    options = body or ExportRequestBody()
    request = parse_export_request(options.format, options.language, options.include_attachments)
    document = await exporter.export_project(user_id, project_id, request)
    ascii_name = document.file_name.encode("ascii", "replace").decode("ascii").replace("?", "_")
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(document.file_name)}"
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": disposition, "X-Export-Id": document.export_id},
    )


@router.get(
    "/projects/{project_id}/exports",
    response_model=ExportListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_exports(project_id: str, user_id: UserIdDep, projects: ProjectServiceDep) -> ExportListResponse:
    return ExportListResponse(exports=await projects.list_exports(user_id, project_id))

# =============================================================================
# src/cli/manage.py: Operator CLI
# =============================================================================
#
# Supported subcommands:
#
#   sections: Print the PT2030 section catalogue (code, limit, title)
#   projects: List a user's projects
#   upload: Store a document for a project and index it synchronously
#   reindex: Re-run indexing for an already uploaded file
#   search: Preview which chunks retrieval would feed the model
#   generate: Generate (or refine) one section
#   export: Render a project to PDF or DOCX on disk
#   providers: Check credentials of every configured LLM provider
#
# Usage examples:
#   python -m src.cli sections
#   python -m src.cli upload --user u1 --project <id> --file plano.pdf
#   python -m src.cli generate --user u1 --project <id> --section 4.i
#   python -m src.cli export --user u1 --project <id> --format docx --out c.docx
# =============================================================================

"""Standalone operator CLI for the candidaturas service."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from src.config.pt2030_sections import PT2030_SECTIONS
from src.models.generation import GenerationRequest
from src.utils.errors import CandidaturaError


def _build_components() -> dict[str, Any]:
    # Deferred: importing src.main loads settings and configures logging.
    from src.main import build_components, config, settings

    return build_components(settings, config)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_sections() -> int:
    """Print the section catalogue."""
    print(f"{'Code':<8} {'Limit':>6}  Title")
    print("-" * 72)
    for section in PT2030_SECTIONS:
        print(f"{section.code:<8} {section.char_limit:>6}  {section.title}")
    return 0


async def _handle_projects(args: argparse.Namespace, components: dict[str, Any]) -> int:
    projects = await components["project_service"].list_projects(args.user)
    if not projects:
        print("No projects.")
        return 0
    for project in projects:
        print(f"{project.id}  [{project.status.value}]  {project.title}")
    return 0


async def _index(components: dict[str, Any], file_id: str) -> int:
    indexing = components["indexing_service"]
    if indexing is None:
        print("Error: vector store unavailable, indexing disabled.", file=sys.stderr)
        return 1

    result = await indexing.index_file(file_id)
    print("\nIndexing complete:")
    print(f"  Status:         {result.status.value}")
    print(f"  Chunks created: {result.chunks_created}")
    print(f"  Pages:          {result.pages}")
    print(f"  Time:           {result.processing_time:.2f}s")
    if result.error_message:
        print(f"  Error:          {result.error_message}")
        return 1
    return 0


async def _handle_upload(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Upload a local file to a project, then index it."""
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    print(f"Uploading: {path.name}")
    record = await components["project_service"].upload_file(
        args.user,
        args.project,
        path.name,
        path.read_bytes(),
        category=args.category,
    )
    print(f"  File ID: {record.id}")
    return await _index(components, record.id)


async def _handle_reindex(args: argparse.Namespace, components: dict[str, Any]) -> int:
    await components["project_service"].get_file(args.user, args.project, args.file_id)
    return await _index(components, args.file_id)


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Show the chunks retrieval returns for a query."""
    await components["project_service"].get_project(args.user, args.project)
    retrieval = components["retrieval_service"]
    if not retrieval.is_available:
        print("Vector store not available.")
        return 1

    results = await retrieval.retrieve(
        args.project,
        args.query,
        top_k=args.top_k,
        min_similarity=args.min_similarity,
    )
    print(f"{len(results)} result(s) for: {args.query}")
    for i, item in enumerate(results, start=1):
        chunk = item.chunk
        print(f"\n[{i}] {chunk.source} p.{chunk.page}  (similarity {item.similarity_score:.3f})")
        print(f"    {chunk.text[:200]}")
    return 0


async def _handle_generate(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Generate one section and print the text."""
    await components["project_service"].get_section(args.user, args.project, args.section)
    request = GenerationRequest(
        section_key=args.section,
        model=args.model,
        char_limit=args.char_limit,
        instruction=args.instruction,
        auto_save=not args.no_save,
    )
    result = await components["generation_service"].generate(args.project, request)

    print(result.text)
    print()
    print(f"Provider:   {result.provider} ({result.model})")
    print(f"Characters: {result.chars_used}/{result.char_limit}" + (" (truncated)" if result.truncated else ""))
    print(f"Sources:    {len(result.sources)} [{result.search_method}]")
    print(f"Saved:      {'yes' if result.saved else 'no'}")
    return 0


async def _handle_export(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from src.services.export_service import parse_export_request

    request = parse_export_request(args.format, args.language, args.attachments)
    document = await components["export_service"].export_project(args.user, args.project, request)
    out = Path(args.out) if args.out else Path(document.file_name)
    out.write_bytes(document.content)
    print(f"Wrote {out} ({len(document.content)} bytes)")
    return 0


async def _handle_providers(components: dict[str, Any]) -> int:
    providers = components["llm_providers"]
    if not providers:
        print("No LLM provider configured.")
        return 1
    failures = 0
    for name, provider in providers.items():
        try:
            ok = await provider.validate_credentials()
        except CandidaturaError as exc:
            ok = False
            print(f"  {name:<12} error: {exc.message}")
        if not ok:
            failures += 1
        print(f"  {name:<12} {'ok' if ok else 'FAILED'}  (default model {provider.get_default_model()})")
    return 1 if failures else 0


_HANDLERS = {
    "projects": _handle_projects,
    "upload": _handle_upload,
    "reindex": _handle_reindex,
    "search": _handle_search,
    "generate": _handle_generate,
    "export": _handle_export,
}


async def _run(args: argparse.Namespace) -> int:
    components = _build_components()
    await components["store"].initialize()
    try:
        if args.command == "providers":
            return await _handle_providers(components)
        return await _HANDLERS[args.command](args, components)
    except CandidaturaError as exc:
        print(f"Error ({type(exc).__name__}): {exc.message}", file=sys.stderr)
        return 1
    finally:
        await components["http_client"].aclose()


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_owner(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--user", required=True, help="Owning user id")
    parser.add_argument("--project", required=True, help="Project id")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Operate the PT2030 candidaturas service from the shell.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("sections", help="Print the PT2030 section catalogue")
    subparsers.add_parser("providers", help="Check LLM provider credentials")

    projects_parser = subparsers.add_parser("projects", help="List a user's projects")
    projects_parser.add_argument("--user", required=True, help="Owning user id")

    upload_parser = subparsers.add_parser("upload", help="Upload and index a document")
    _add_owner(upload_parser)
    upload_parser.add_argument("--file", required=True, help="Path to the document")
    upload_parser.add_argument("--category", default="general", help="File category label")

    reindex_parser = subparsers.add_parser("reindex", help="Re-index an uploaded file")
    _add_owner(reindex_parser)
    reindex_parser.add_argument("--file-id", required=True, dest="file_id", help="File id")

    search_parser = subparsers.add_parser("search", help="Preview retrieval for a query")
    _add_owner(search_parser)
    search_parser.add_argument("--query", required=True, help="Query text")
    search_parser.add_argument("--top-k", type=int, default=None, dest="top_k")
    search_parser.add_argument("--min-similarity", type=float, default=None, dest="min_similarity")

    generate_parser = subparsers.add_parser("generate", help="Generate one section")
    _add_owner(generate_parser)
    generate_parser.add_argument("--section", required=True, help="Section code, e.g. 4.i")
    generate_parser.add_argument("--model", default=None, help="Catalogue model id")
    generate_parser.add_argument("--char-limit", type=int, default=None, dest="char_limit")
    generate_parser.add_argument("--instruction", default=None, help="Refine the current text")
    generate_parser.add_argument(
        "--no-save", action="store_true", dest="no_save", help="Do not store the result"
    )

    export_parser = subparsers.add_parser("export", help="Export a project document")
    _add_owner(export_parser)
    export_parser.add_argument("--format", default="pdf", help="pdf or docx")
    export_parser.add_argument("--language", default="pt", help="pt or en")
    export_parser.add_argument("--attachments", action="store_true", help="List indexed files")
    export_parser.add_argument("--out", default=None, help="Output path")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    # The catalogue is static; no providers needed.
    if args.command == "sections":
        sys.exit(_handle_sections())

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()

# =============================================================================
# src/cli/__init__.py: CLI Module Overview
# =============================================================================
#
# Command-line tools for operators who need to work with projects outside
# the HTTP API: inspecting the PT2030 section catalogue, uploading and
# (re)indexing supporting documents, previewing retrieval, generating a
# section and exporting a project.
#
# Architecture Notes:
#   - argparse only (no Click/Typer).
#   - The CLI reuses src.main.build_components, so it sees exactly the
#     providers and services the API would build from the same .env.
# =============================================================================

"""Operator CLI for the candidaturas service.

- ``python -m src.cli sections`` — print the PT2030 section catalogue
- ``python -m src.cli upload`` — store and index a document for a project
- ``python -m src.cli generate`` — generate one section with RAG context
- ``python -m src.cli export`` — render a project to PDF or DOCX
"""

"""API middleware — CORS, request logging, and error handling.

Provides a CORS helper plus two middleware classes: structured request
logging (via structlog) and conversion of ``CandidaturaError`` subclasses
into JSON ``ErrorResponse`` bodies with the status code each error class
declares.

# ─── MIDDLEWARE ORDER ─────────────────────────────────────────────────
#
# Starlette middleware is a stack (last added runs first):
#
#     app.add_middleware(ErrorHandlingMiddleware)    # inner
#     app.add_middleware(RequestLoggingMiddleware)   # outer
#
#   Client -> RequestLogging -> ErrorHandling -> route handler
#
# RequestLoggingMiddleware therefore logs the final status code, after
# ErrorHandlingMiddleware has turned a domain error into e.g. a 404.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas import ErrorResponse
from src.utils.errors import CandidaturaError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins (``CORS_ORIGINS``).  Defaults to
        ``["*"]``.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentialed requests against a wildcard origin.
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                user_id=request.headers.get("x-user-id"),
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``CandidaturaError`` subclasses and return structured JSON errors.

    The response carries the exception class name and message with the
    class's ``status_code`` (404 for NotFoundError, 415 for unsupported
    uploads, 502 when every LLM provider failed, ...).  Stack traces stay
    in the server log.  Other exceptions fall through to FastAPI's
    default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except CandidaturaError as exc:
            log = _logger.error if exc.status_code >= 500 else _logger.warning
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=exc.status_code,
                path=str(request.url.path),
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message,
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=body.model_dump(),
            )

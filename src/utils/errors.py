"""Custom exception hierarchy for the PT2030 candidaturas service.

All application exceptions inherit from :class:`CandidaturaError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openrouter", "chromadb", "flowise") caused the
failure.  Each class also declares the HTTP status the API layer maps it to.

The hierarchy is organized by domain:

    CandidaturaError  (base -- catch-all for any application error)
    +-- ConfigurationError       (startup / missing config)
    +-- NotFoundError            (unknown project, section, file)
    +-- InvalidInputError        (bad request payloads)
    |   +-- UnsupportedFileTypeError
    |   +-- CharLimitExceededError
    +-- LLMError                 (any LLM API call failure)
    |   +-- GenerationError      (every provider in the chain failed)
    +-- RateLimitError           (provider rate-limit exceeded)
    +-- ProviderUnavailableError (external service down / unreachable)
    +-- RAGError                 (embedding or vector-store failure)
    +-- IndexingError            (document extraction / chunking failure)
    +-- StorageError             (file storage or database failure)
    +-- ExportError              (document rendering failure)

Callers handle errors at the right level -- e.g. fall back to another LLM
provider on LLMError or ProviderUnavailableError, or mark an uploaded file
as failed on IndexingError.
"""


class CandidaturaError(Exception):
    """Base exception for all application errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openrouter] Rate limit exceeded``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request / domain errors
# ---------------------------------------------------------------------------

class ConfigurationError(CandidaturaError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(CandidaturaError):
    """Raised when a project, section, or file does not exist for the caller."""

    status_code = 404

    def __init__(
        self,
        message: str = "Resource not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InvalidInputError(CandidaturaError):
    """Raised when a request payload fails domain validation."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedFileTypeError(InvalidInputError):
    """Raised when an uploaded document has an extension we cannot extract."""

    status_code = 415

    def __init__(
        self,
        message: str = "Unsupported file type",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class CharLimitExceededError(InvalidInputError):
    """Raised when section content is longer than the section's character limit."""

    status_code = 422

    def __init__(
        self,
        message: str = "Content exceeds the section character limit",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class ProviderUnavailableError(CandidaturaError):
    """Raised when an external service or provider is unreachable.

    The generation fallback chain catches this to try the next provider
    in the configured priority order.
    """

    status_code = 503

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(CandidaturaError):
    """Raised when an API rate limit is exceeded."""

    status_code = 429

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(CandidaturaError):
    """Raised when an LLM API call fails or returns an unusable response."""

    status_code = 502

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class GenerationError(LLMError):
    """Raised when every provider in the fallback chain failed.

    ``attempts`` holds ``(provider_name, error_message)`` pairs in the
    order the providers were tried.
    """

    def __init__(
        self,
        message: str = "All generation providers failed",
        provider_name: str | None = None,
        attempts: list[tuple[str, str]] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.attempts: list[tuple[str, str]] = attempts or []


# ---------------------------------------------------------------------------
# RAG / indexing / storage errors
# ---------------------------------------------------------------------------

class RAGError(CandidaturaError):
    """Raised when a RAG operation fails (embedding or vector store)."""

    def __init__(
        self,
        message: str = "RAG operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IndexingError(CandidaturaError):
    """Raised when a document cannot be extracted or chunked."""

    def __init__(
        self,
        message: str = "Document indexing failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(CandidaturaError):
    """Raised when file storage or the project database fails."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExportError(CandidaturaError):
    """Raised when a project document cannot be rendered."""

    def __init__(
        self,
        message: str = "Document export failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

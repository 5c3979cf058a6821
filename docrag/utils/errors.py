"""Custom exception hierarchy for docrag.

All application exceptions inherit from :class:`DocRagError`, which carries
an optional ``provider_name`` so error handlers can identify which external
service (e.g. "ollama", "chromadb", "qdrant") caused the failure.

The hierarchy follows the failure kinds of the ingestion/retrieval core:

    DocRagError  (base -- catch-all for any docrag error)
    +-- InvalidInputError          (rejected before orchestration begins)
    |   +-- UnsupportedFormatError (no extractor accepts the content type)
    +-- ExtractionError            (corrupt or undecodable document)
    +-- NotFoundError              (unknown document id)
    +-- BackendUnavailableError    (embedding / vector index / LLM failure)
    |   +-- LLMError               (generative model call failure)
    +-- ConcurrencyConflictError   (stale document version on update)
    +-- IngestionCancelledError    (cooperative cancellation observed)
    +-- ConfigurationError         (startup / mismatched configuration)

The API layer maps each kind onto an HTTP status code (see
``docrag.api.middleware``).
"""


class DocRagError(Exception):
    """Base exception for all docrag errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for log
    output, e.g. ``[ollama] Connection refused``.
    """

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
# Input errors
# ---------------------------------------------------------------------------

class InvalidInputError(DocRagError):
    """Raised for empty queries, zero-length files and similar bad input."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedFormatError(InvalidInputError):
    """Raised when no registered extractor can handle a content type."""

    def __init__(
        self,
        message: str = "Unsupported document format",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(DocRagError):
    """Raised when a document id has no matching record."""

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class ExtractionError(DocRagError):
    """Raised when an extractor cannot parse a document (corrupt PDF, bad encoding)."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class BackendUnavailableError(DocRagError):
    """Raised when an embedding, vector-index or LLM call fails.

    Covers network errors, non-success status codes and malformed
    responses.  No retry is attempted; callers see the failure directly.
    """

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(BackendUnavailableError):
    """Raised when an LLM API call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------

class ConcurrencyConflictError(DocRagError):
    """Raised when a document update carries a stale version token."""

    def __init__(
        self,
        message: str = "Document was modified concurrently",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IngestionCancelledError(DocRagError):
    """Raised when an ingestion observes a cancellation request between chunks."""

    def __init__(
        self,
        message: str = "Ingestion was cancelled",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(DocRagError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

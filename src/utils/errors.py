"""Custom exception hierarchy for the knowledge indexer.

All application exceptions inherit from :class:`IndexerError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai_embedding", "chromadb", "s3") caused the
failure.

The hierarchy is organized by ingestion concern:

    IndexerError  (base -- catch-all for any indexer error)
    +-- ConfigurationError       (startup / missing config or credentials)
    |   +-- UnknownProviderError (embedding provider name not registered)
    +-- UnsupportedFormatError   (MIME type the loader cannot read)
    +-- DocumentLoadError        (blob fetch or document parsing failed)
    +-- RAGError                 (embedding or vector-store failure)
    +-- PipelineError            (malformed job / orchestration failure)
    +-- QueueError               (job queue backend failure)

Permanent input errors (unsupported format, unreadable document) and
dependency errors (RAGError) are both surfaced to the worker so the queue
records the failed attempt; configuration errors are raised while the
container is being built, before any job is accepted.
"""


class IndexerError(Exception):
    """Base exception for all knowledge indexer errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[chromadb] upsert failed``.
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
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(IndexerError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnknownProviderError(ConfigurationError):
    """Raised when an embedding provider name has not been registered.

    The message lists every registered name so a typo in
    ``EMBEDDING_PROVIDER`` is obvious from the log line alone.
    """

    def __init__(self, name: str, available: list[str]) -> None:
        self._requested = name
        self._available = list(available)
        super().__init__(
            message=(
                f'Embedding provider "{name}" not registered. '
                f"Available: [{', '.join(self._available)}]"
            ),
        )

    @property
    def requested(self) -> str:
        return self._requested

    @property
    def available(self) -> list[str]:
        return list(self._available)


# ---------------------------------------------------------------------------
# Document loading errors
# ---------------------------------------------------------------------------

class UnsupportedFormatError(IndexerError):
    """Raised when a document's MIME type has no text extractor."""

    def __init__(self, mime_type: str) -> None:
        self._mime_type = mime_type
        super().__init__(
            message=f"Unsupported MIME type for document ingestion: {mime_type}",
        )

    @property
    def mime_type(self) -> str:
        return self._mime_type


class DocumentLoadError(IndexerError):
    """Raised when a stored object cannot be fetched or parsed into text."""

    def __init__(
        self,
        message: str = "Document could not be loaded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# RAG / vector-store errors
# ---------------------------------------------------------------------------

class RAGError(IndexerError):
    """Raised when an embedding or vector-store operation fails."""

    def __init__(
        self,
        message: str = "RAG pipeline operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration errors
# ---------------------------------------------------------------------------

class PipelineError(IndexerError):
    """Raised when a job cannot be dispatched or is missing required fields."""

    def __init__(
        self,
        message: str = "Ingestion pipeline failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class QueueError(IndexerError):
    """Raised when the job queue backend rejects an operation."""

    def __init__(
        self,
        message: str = "Job queue operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

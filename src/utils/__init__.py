"""Utility modules for the knowledge indexer.

- **errors** -- Domain-specific exception hierarchy rooted at IndexerError;
  loaders, providers and pipelines raise their own subclass so the worker
  can tell permanent input errors from dependency failures.
- **concurrency** -- batching and fan-out helpers that bound how many
  embedding requests a single job has in flight.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from src.utils.concurrency import batched, throttled_gather
from src.utils.errors import (
    ConfigurationError,
    DocumentLoadError,
    IndexerError,
    PipelineError,
    QueueError,
    RAGError,
    UnknownProviderError,
    UnsupportedFormatError,
)
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DocumentLoadError",
    "IndexerError",
    "PipelineError",
    "QueueError",
    "RAGError",
    "UnknownProviderError",
    "UnsupportedFormatError",
    "batched",
    "configure_logging",
    "get_logger",
    "throttled_gather",
]

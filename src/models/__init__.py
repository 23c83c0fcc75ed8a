"""Knowledge indexer domain models - re-exports all public model classes.

Other parts of the codebase import directly from ``src.models`` (e.g.
``from src.models import DocumentJob``) instead of the individual modules.

The models are organized across two submodules by concern:
    - ingestion.py - jobs, chunks, crawled pages, document status, queue envelopes
    - vector.py    - vector payloads, points and search results
"""

from __future__ import annotations

from src.models.ingestion import (
    SYNC_FREQUENCIES,
    Chunk,
    DocumentJob,
    DocumentState,
    DocumentStatus,
    FetchedPage,
    FetchMode,
    IngestionResult,
    JobType,
    QueuedJob,
    SourceType,
    StatusUpdate,
)
from src.models.vector import VectorPayload, VectorPoint, VectorSearchResult

__all__ = [
    "SYNC_FREQUENCIES",
    "Chunk",
    "DocumentJob",
    "DocumentState",
    "DocumentStatus",
    "FetchMode",
    "FetchedPage",
    "IngestionResult",
    "JobType",
    "QueuedJob",
    "SourceType",
    "StatusUpdate",
    "VectorPayload",
    "VectorPoint",
    "VectorSearchResult",
]

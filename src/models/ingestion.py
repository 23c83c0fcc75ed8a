"""Ingestion data models: jobs, chunks, crawled pages, and document status.

Defines Pydantic v2 models for everything that flows through the
ingestion worker.  All models use frozen config to enforce immutability.

Wire format note:
    Jobs are produced by the external API layer as camelCase JSON
    (``documentId``, ``sourceUrl``, ``syncFrequency`` ...).  Models that
    cross that boundary use ``alias_generator=to_camel`` with
    ``populate_by_name=True`` so Python code can use snake_case names while
    ``model_dump(by_alias=True)`` round-trips the wire names unchanged.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

SourceType = Literal["pdf", "docx", "text", "url"]
JobType = Literal["ingest", "delete-vectors"]
FetchMode = Literal["single", "crawl"]

# Frequencies that re-arm a recurring crawl; anything else means "manual".
SYNC_FREQUENCIES: tuple[str, ...] = ("manual", "1hour", "6hours", "daily")


# ---------------------------------------------------------------------------
# DocumentJob - the unit of work consumed by the IngestionWorker.
# ---------------------------------------------------------------------------
class DocumentJob(BaseModel):
    """A single ingestion (or vector deletion) request for one document.

    Created by an external producer, consumed exactly once per attempt by
    the worker, and possibly recreated by the worker itself (with a delay)
    for recurring URL crawls.  Unknown fields sent by the producer (e.g.
    ``title``, ``catalog``) are preserved so a re-armed job carries the
    same data it arrived with.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    document_id: str = Field(min_length=1, description="Id of the knowledge document record.")
    job_type: JobType = Field(
        default="ingest",
        description='"ingest" (default) or "delete-vectors" (purge the document only).',
    )
    source: SourceType = Field(description="Source type - selects the ingestion pipeline.")
    file_key: str = Field(default="", description="Blob storage object key (pdf/docx).")
    mime_type: str = Field(default="", description="MIME type - selects the text extractor.")
    file_name: str = Field(default="", description="Original file name or document title.")
    team_id: str = Field(default="", description="Tenant that owns the document.")
    source_url: str | None = Field(default=None, description="Root URL (url sources).")
    content: str | None = Field(default=None, description="Raw text (text sources).")
    fetch_mode: FetchMode = Field(default="single", description="URL fetch strategy.")
    crawl_depth: int = Field(default=1, ge=0, description="Max BFS depth for crawl mode.")
    sync_frequency: str | None = Field(
        default=None,
        description='Re-sync policy: "manual", "1hour", "6hours" or "daily".',
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Arbitrary metadata copied into every vector payload.",
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize back to the camelCase payload the queue carries."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Chunk - an embedding-sized window of normalized source text.
# ---------------------------------------------------------------------------
class Chunk(BaseModel):
    """A bounded substring of a source document, ready for embedding.

    Produced by :class:`~src.services.ingestion.chunker.TextChunker`; never
    persisted.  ``start_offset``/``end_offset`` delimit the window in the
    *normalized* source text; ``text`` is that window with surrounding
    whitespace trimmed.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1, description="Trimmed chunk text.")
    index: int = Field(ge=0, description="0-based position among emitted chunks.")
    start_offset: int = Field(ge=0, description="Window start in the normalized text.")
    end_offset: int = Field(description="Window end (exclusive) in the normalized text.")

    @model_validator(mode="after")
    def _check_offsets(self) -> Chunk:
        if self.start_offset >= self.end_offset:
            raise ValueError(
                f"start_offset ({self.start_offset}) must be < end_offset ({self.end_offset})"
            )
        return self


# ---------------------------------------------------------------------------
# FetchedPage - one HTML page extracted by the UrlCrawler.
# ---------------------------------------------------------------------------
class FetchedPage(BaseModel):
    """Plain text extracted from one crawled HTML page."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="Fragment-free URL the page was fetched from.")
    text: str = Field(description="Visible body text with boilerplate removed.")


# ---------------------------------------------------------------------------
# Document status - the only externally visible side effect besides vectors.
# ---------------------------------------------------------------------------
class DocumentStatus(str, Enum):
    """Lifecycle of a knowledge document: pending → indexing → indexed | failed."""

    PENDING = "pending"
    INDEXING = "indexing"
    INDEXED = "indexed"
    FAILED = "failed"


class StatusUpdate(BaseModel):
    """Status write-back sent to the document metadata store.

    ``indexed`` updates carry ``word_count``, ``chunk_count`` and
    ``last_indexed``; ``failed`` updates carry ``error_message``.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    document_id: str
    status: DocumentStatus
    word_count: int | None = Field(default=None, ge=0)
    chunk_count: int | None = Field(default=None, ge=0)
    last_indexed: datetime | None = None
    error_message: str | None = None


class DocumentState(BaseModel):
    """Live existence / pause flags read before re-arming a recurring crawl."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    exists: bool = False
    is_paused: bool = False


# ---------------------------------------------------------------------------
# IngestionResult - summary of one pipeline run.
# ---------------------------------------------------------------------------
class IngestionResult(BaseModel):
    """Summary of a single pipeline run, returned to the worker for logging."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    status: DocumentStatus
    chunk_count: int = Field(default=0, ge=0)
    word_count: int = Field(default=0, ge=0)
    page_count: int = Field(default=0, ge=0, description="Pages ingested (url sources).")
    error_message: str | None = None
    elapsed: float = Field(default=0.0, ge=0.0, description="Wall-clock seconds.")


# ---------------------------------------------------------------------------
# QueuedJob - envelope handed out by a job queue backend.
# ---------------------------------------------------------------------------
class QueuedJob(BaseModel):
    """A job reserved from the queue, with its raw payload."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = "ingest"
    data: dict[str, Any] = Field(default_factory=dict)
    attempts_made: int = Field(default=0, ge=0)
    enqueued_at: float = Field(default=0.0, description="Unix time the job was added.")

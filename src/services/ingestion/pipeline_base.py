"""Shared machinery for the text, file and URL ingestion pipelines.

Every pipeline follows the same skeleton:

    1. status → ``indexing``
    2. obtain text (raw content, a stored file, or crawled pages)
    3. chunk it with :class:`TextChunker`
    4. prepare the index: ensure the collection for the active embedding
       provider's dimension, then delete the document's previous vectors
    5. embed and upsert, 25 chunks per batch
    6. status → ``indexed`` with word/chunk counts, or ``failed``

Within a batch every ``embed`` call is issued at once and joined before
the single ``upsert`` for that batch.  Batches run one after another, so
at most one batch of embedding requests is in flight per job.

:meth:`BaseIngestionPipeline.run` owns the failure contract: any exception
raised by a pipeline marks the document ``failed`` with the error message
and is then re-raised so the queue records the failed attempt.
"""

from __future__ import annotations

import math
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from src.models.ingestion import (
    Chunk,
    DocumentJob,
    DocumentStatus,
    IngestionResult,
    StatusUpdate,
)
from src.models.vector import VectorPayload, VectorPoint
from src.utils.concurrency import batched, throttled_gather

if TYPE_CHECKING:
    from src.interfaces.document_status_provider import IDocumentStatusProvider
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.vector_store_provider import IVectorStoreProvider
    from src.providers.embedding.registry import EmbeddingProviderRegistry
    from src.services.ingestion.chunker import TextChunker

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_EMBED_BATCH_SIZE = 25


def count_words(text: str) -> int:
    """Whitespace-delimited word count."""
    return len(text.split())


class BaseIngestionPipeline(ABC):
    """Template for a single-source ingestion pipeline.

    Parameters
    ----------
    embedding_registry:
        Resolves the active embedding provider at the start of each run.
    vector_store:
        Shared tenant-scoped vector index.
    status_provider:
        Receives ``indexing`` / ``indexed`` / ``failed`` transitions.
    chunker:
        Splits text into embedding-sized chunks.
    embed_batch_size:
        Chunks embedded concurrently before each upsert.
    """

    #: Short label used in log events, e.g. ``"text"``.
    source_label: str = "base"

    def __init__(
        self,
        embedding_registry: EmbeddingProviderRegistry,
        vector_store: IVectorStoreProvider,
        status_provider: IDocumentStatusProvider,
        chunker: TextChunker,
        embed_batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
    ) -> None:
        if embed_batch_size < 1:
            raise ValueError(f"embed_batch_size must be >= 1, got {embed_batch_size}")
        self._embeddings = embedding_registry
        self._vector_store = vector_store
        self._status = status_provider
        self._chunker = chunker
        self._embed_batch_size = embed_batch_size

    async def run(self, job: DocumentJob) -> IngestionResult:
        """Ingest *job*; mark the document failed and re-raise on any error."""
        start = time.monotonic()
        logger.info(
            "ingestion_started",
            source=self.source_label,
            document_id=job.document_id,
            file_name=job.file_name,
        )
        try:
            result = await self._ingest(job, start)
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            logger.error(
                "ingestion_failed",
                source=self.source_label,
                document_id=job.document_id,
                error=message,
                error_type=type(exc).__name__,
            )
            await self._mark_failed(job.document_id, message)
            raise

        logger.info(
            "ingestion_finished",
            source=self.source_label,
            document_id=job.document_id,
            status=result.status.value,
            chunk_count=result.chunk_count,
            word_count=result.word_count,
            page_count=result.page_count,
            elapsed=round(result.elapsed, 3),
        )
        return result

    @abstractmethod
    async def _ingest(self, job: DocumentJob, start: float) -> IngestionResult:
        """Pipeline-specific body; *start* is the ``time.monotonic()`` origin."""

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    async def _prepare_index(self, document_id: str) -> IEmbeddingProvider:
        """Ensure the collection matches the active provider and purge old vectors.

        Returns the provider that every batch of this run must use.
        """
        provider = self._embeddings.get()
        await self._vector_store.ensure_collection(provider.dimensions)
        removed = await self._vector_store.delete_by_document_id(document_id)
        logger.debug(
            "index_prepared",
            document_id=document_id,
            provider=provider.name,
            dimensions=provider.dimensions,
            removed_points=removed,
        )
        return provider

    async def _embed_and_upsert(
        self,
        provider: IEmbeddingProvider,
        chunks: list[Chunk],
        job: DocumentJob,
        source_url: str | None = None,
    ) -> int:
        """Embed *chunks* batch by batch and upsert each batch.  Returns chunk count."""
        total_batches = math.ceil(len(chunks) / self._embed_batch_size)
        for batch_number, batch in enumerate(batched(chunks, self._embed_batch_size), start=1):
            vectors = await throttled_gather([provider.embed(chunk.text) for chunk in batch])
            points = [
                VectorPoint(
                    id=str(uuid.uuid4()),
                    vector=vector,
                    payload=self._build_payload(job, chunk, source_url),
                )
                for chunk, vector in zip(batch, vectors, strict=True)
            ]
            await self._vector_store.upsert(points)
            logger.debug(
                "batch_upserted",
                document_id=job.document_id,
                batch=batch_number,
                total_batches=total_batches,
                points=len(points),
            )
        return len(chunks)

    @staticmethod
    def _build_payload(job: DocumentJob, chunk: Chunk, source_url: str | None) -> VectorPayload:
        return VectorPayload.build(
            job.metadata,
            document_id=job.document_id,
            team_id=job.team_id,
            file_key=job.file_key,
            file_name=job.file_name,
            source_url=source_url,
            chunk_index=chunk.index,
            text=chunk.text,
        )

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def _mark_indexing(self, document_id: str) -> None:
        await self._status.set_status(
            StatusUpdate(document_id=document_id, status=DocumentStatus.INDEXING)
        )

    async def _mark_indexed(
        self,
        document_id: str,
        word_count: int,
        chunk_count: int,
        start: float,
        page_count: int = 0,
    ) -> IngestionResult:
        await self._status.set_status(
            StatusUpdate(
                document_id=document_id,
                status=DocumentStatus.INDEXED,
                word_count=word_count,
                chunk_count=chunk_count,
                last_indexed=datetime.now(timezone.utc),
            )
        )
        return IngestionResult(
            document_id=document_id,
            status=DocumentStatus.INDEXED,
            chunk_count=chunk_count,
            word_count=word_count,
            page_count=page_count,
            elapsed=time.monotonic() - start,
        )

    async def _mark_failed(
        self,
        document_id: str,
        message: str,
        start: float | None = None,
    ) -> IngestionResult:
        await self._status.set_status(
            StatusUpdate(
                document_id=document_id,
                status=DocumentStatus.FAILED,
                error_message=message,
            )
        )
        return IngestionResult(
            document_id=document_id,
            status=DocumentStatus.FAILED,
            error_message=message,
            elapsed=time.monotonic() - start if start is not None else 0.0,
        )

"""Plain-text ingestion pipeline.

Indexes the raw ``content`` string carried on the job itself.  Empty or
whitespace-only content is a permanent input error: the document is
marked ``failed`` ("Content is empty") without touching the vector store
and without raising.
"""

from __future__ import annotations

import structlog

from src.models.ingestion import DocumentJob, IngestionResult
from src.services.ingestion.pipeline_base import BaseIngestionPipeline, count_words

logger = structlog.get_logger(logger_name=__name__)

EMPTY_CONTENT_MESSAGE = "Content is empty"


class TextIngestionPipeline(BaseIngestionPipeline):
    """content → chunk → embed → upsert."""

    source_label = "text"

    async def _ingest(self, job: DocumentJob, start: float) -> IngestionResult:
        content = job.content or ""
        if not content.strip():
            logger.warning("text_ingestion_empty_content", document_id=job.document_id)
            return await self._mark_failed(job.document_id, EMPTY_CONTENT_MESSAGE, start)

        await self._mark_indexing(job.document_id)

        chunks = self._chunker.chunk(content)
        provider = await self._prepare_index(job.document_id)
        chunk_count = await self._embed_and_upsert(provider, chunks, job)

        return await self._mark_indexed(
            job.document_id,
            word_count=count_words(content),
            chunk_count=chunk_count,
            start=start,
        )

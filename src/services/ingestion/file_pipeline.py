"""Uploaded-file ingestion pipeline (PDF and DOCX).

Loads the stored file through :class:`DocumentLoader`, then indexes its
text.  A file that yields no text is marked ``failed`` without raising.
Unsupported formats and unreadable files raise after the document has
been marked ``failed``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from src.models.ingestion import DocumentJob, IngestionResult
from src.services.ingestion.pipeline_base import BaseIngestionPipeline, count_words

if TYPE_CHECKING:
    from src.services.ingestion.document_loader import DocumentLoader

logger = structlog.get_logger(logger_name=__name__)

NO_TEXT_MESSAGE = "No text could be extracted from the document"


class FileIngestionPipeline(BaseIngestionPipeline):
    """blob → text → chunk → embed → upsert."""

    source_label = "file"

    def __init__(self, *args, loader: DocumentLoader, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._loader = loader

    async def _ingest(self, job: DocumentJob, start: float) -> IngestionResult:
        await self._mark_indexing(job.document_id)

        text = await self._loader.load(job.file_key, job.mime_type)
        if not text.strip():
            logger.warning(
                "file_ingestion_no_text",
                document_id=job.document_id,
                file_key=job.file_key,
            )
            return await self._mark_failed(job.document_id, NO_TEXT_MESSAGE, start)

        chunks = self._chunker.chunk(text)
        logger.info(
            "file_text_extracted",
            document_id=job.document_id,
            characters=len(text),
            chunks=len(chunks),
        )
        provider = await self._prepare_index(job.document_id)
        chunk_count = await self._embed_and_upsert(provider, chunks, job)

        return await self._mark_indexed(
            job.document_id,
            word_count=count_words(text),
            chunk_count=chunk_count,
            start=start,
        )

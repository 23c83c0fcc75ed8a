"""Web page ingestion pipeline (single page or same-site crawl).

# ─── CRAWL STREAMING ──────────────────────────────────────────────────
#
#   producer task                     bounded channel          consumer
#   UrlCrawler.crawl() ──put(page)──▶ asyncio.Queue(maxsize) ──get()──▶ buffer
#                                                                      │
#                                         every PAGE_FLUSH_SIZE pages ─┘
#                                         chunk → embed → upsert
#
# The crawl keeps fetching while a flush is embedding, until the channel
# is full; then put() blocks (backpressure).  Flushes run one at a time
# in discovery order, so memory stays bounded regardless of site size.
# ──────────────────────────────────────────────────────────────────────

A URL that yields no HTML text at all is marked ``failed`` without
raising; fetch and provider errors raise after marking ``failed``.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

import structlog

from src.models.ingestion import DocumentJob, FetchedPage, IngestionResult
from src.services.ingestion.pipeline_base import BaseIngestionPipeline, count_words
from src.utils.errors import PipelineError

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.services.ingestion.url_crawler import UrlCrawler

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_PAGE_FLUSH_SIZE = 20
NO_CONTENT_MESSAGE = "No HTML content could be extracted from the URL"


class _CrawlFinished:
    """End-of-stream marker put on the channel by the producer."""


class _CrawlFailed:
    """Carries a producer-side exception across the channel."""

    def __init__(self, error: Exception) -> None:
        self.error = error


_END = _CrawlFinished()


class UrlIngestionPipeline(BaseIngestionPipeline):
    """page(s) → chunk per page → embed → upsert, flushed every N pages."""

    source_label = "url"

    def __init__(
        self,
        *args,
        crawler: UrlCrawler,
        page_flush_size: int = DEFAULT_PAGE_FLUSH_SIZE,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        if page_flush_size < 1:
            raise ValueError(f"page_flush_size must be >= 1, got {page_flush_size}")
        self._crawler = crawler
        self._page_flush_size = page_flush_size

    async def _ingest(self, job: DocumentJob, start: float) -> IngestionResult:
        if not job.source_url:
            raise PipelineError(f"sourceUrl missing for document {job.document_id}")

        await self._mark_indexing(job.document_id)
        logger.info(
            "url_ingestion_fetch",
            document_id=job.document_id,
            source_url=job.source_url,
            fetch_mode=job.fetch_mode,
            crawl_depth=job.crawl_depth,
        )

        provider = await self._prepare_index(job.document_id)
        stats = _FlushStats()

        if job.fetch_mode == "crawl":
            await self._stream_crawl(job, provider, stats)
        else:
            pages = await self._crawler.fetch_single(job.source_url)
            await self._flush(pages, job, provider, stats)

        if stats.pages == 0:
            logger.warning(
                "url_ingestion_no_content",
                document_id=job.document_id,
                source_url=job.source_url,
            )
            return await self._mark_failed(job.document_id, NO_CONTENT_MESSAGE, start)

        return await self._mark_indexed(
            job.document_id,
            word_count=stats.words,
            chunk_count=stats.chunks,
            start=start,
            page_count=stats.pages,
        )

    async def _stream_crawl(
        self,
        job: DocumentJob,
        provider: IEmbeddingProvider,
        stats: _FlushStats,
    ) -> None:
        channel: asyncio.Queue[FetchedPage | _CrawlFinished | _CrawlFailed] = asyncio.Queue(
            maxsize=self._page_flush_size
        )

        async def produce() -> None:
            try:
                pages = self._crawler.crawl(job.source_url, job.crawl_depth)
                async with contextlib.aclosing(pages):
                    async for page in pages:
                        await channel.put(page)
            except Exception as exc:
                await channel.put(_CrawlFailed(exc))
                return
            await channel.put(_END)

        producer = asyncio.create_task(produce(), name=f"crawl-{job.document_id}")
        buffer: list[FetchedPage] = []
        try:
            while True:
                item = await channel.get()
                if isinstance(item, _CrawlFinished):
                    break
                if isinstance(item, _CrawlFailed):
                    raise item.error
                buffer.append(item)
                if len(buffer) >= self._page_flush_size:
                    await self._flush(buffer, job, provider, stats)
                    buffer = []

            if buffer:
                await self._flush(buffer, job, provider, stats)
        finally:
            if not producer.done():
                producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await producer

    async def _flush(
        self,
        pages: list[FetchedPage],
        job: DocumentJob,
        provider: IEmbeddingProvider,
        stats: _FlushStats,
    ) -> None:
        if not pages:
            return
        logger.info(
            "url_pages_flushing",
            document_id=job.document_id,
            pages=len(pages),
            pages_so_far=stats.pages + len(pages),
        )
        for page in pages:
            chunks = self._chunker.chunk(page.text)
            stats.words += count_words(page.text)
            stats.chunks += await self._embed_and_upsert(provider, chunks, job, source_url=page.url)
            stats.pages += 1


class _FlushStats:
    """Running totals across every flush of one run."""

    __slots__ = ("chunks", "pages", "words")

    def __init__(self) -> None:
        self.chunks = 0
        self.pages = 0
        self.words = 0

"""Queue consumer that runs ingestion jobs.

# ─── JOB LIFECYCLE ─────────────────────────────────────────────────────
#
#   reserve ──▶ validate payload ──▶ should_run? ──▶ dispatch ──▶ complete ──▶ maybe re-arm
#                    │                   │              │
#                    │                   no ──▶ complete └── exception ──▶ fail
#                    └── invalid ──▶ fail
#
# ``should_run`` drops URL crawls whose document was deleted or paused
# after the job was queued.
#
# Dispatch:
#   jobType "delete-vectors"  → vector_store.delete_by_document_id only
#   source "text"             → TextIngestionPipeline
#   source "url"              → UrlIngestionPipeline
#   source "pdf" / "docx"     → FileIngestionPipeline
#
# ``concurrency`` consumer loops run side by side; each handles one job at
# a time.  A failed job is recorded on the queue and never retried; the
# loop moves on to the next job.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from src.models.ingestion import DocumentJob, IngestionResult, QueuedJob
from src.utils.errors import PipelineError, QueueError
from src.utils.logging import bind_job_context, clear_job_context

if TYPE_CHECKING:
    from src.interfaces.job_queue_provider import IJobQueueProvider
    from src.interfaces.vector_store_provider import IVectorStoreProvider
    from src.services.ingestion.file_pipeline import FileIngestionPipeline
    from src.services.ingestion.text_pipeline import TextIngestionPipeline
    from src.services.ingestion.url_pipeline import UrlIngestionPipeline
    from src.services.sync_scheduler import SyncScheduler

logger = structlog.get_logger(logger_name=__name__)


class IngestionWorker:
    """Pulls document jobs off the queue and runs the matching pipeline.

    Parameters
    ----------
    queue:
        Source of jobs; also receives completion/failure records.
    text_pipeline / file_pipeline / url_pipeline:
        One pipeline per source family.
    vector_store:
        Used directly by ``delete-vectors`` jobs.
    scheduler:
        Liveness check before each job and re-arm policy after it.
    concurrency:
        Number of consumer loops (jobs processed at once).
    poll_timeout:
        Seconds each loop blocks waiting for a job before re-checking
        whether it should stop.
    """

    def __init__(
        self,
        queue: IJobQueueProvider,
        text_pipeline: TextIngestionPipeline,
        file_pipeline: FileIngestionPipeline,
        url_pipeline: UrlIngestionPipeline,
        vector_store: IVectorStoreProvider,
        scheduler: SyncScheduler,
        concurrency: int = 2,
        poll_timeout: float = 1.0,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._queue = queue
        self._text_pipeline = text_pipeline
        self._file_pipeline = file_pipeline
        self._url_pipeline = url_pipeline
        self._vector_store = vector_store
        self._scheduler = scheduler
        self._concurrency = concurrency
        self._poll_timeout = poll_timeout
        self._stopping = False

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def process(self, job: DocumentJob) -> IngestionResult | None:
        """Run the work *job* describes.

        Returns the pipeline result, or ``None`` for ``delete-vectors`` jobs.

        Raises
        ------
        PipelineError
            If the job's source has no pipeline.
        """
        if job.job_type == "delete-vectors":
            removed = await self._vector_store.delete_by_document_id(job.document_id)
            logger.info("document_vectors_deleted", document_id=job.document_id, removed=removed)
            return None

        if job.source == "text":
            return await self._text_pipeline.run(job)
        if job.source == "url":
            return await self._url_pipeline.run(job)
        if job.source in ("pdf", "docx"):
            return await self._file_pipeline.run(job)
        raise PipelineError(f"No pipeline for source {job.source!r}")

    async def handle(self, queued: QueuedJob) -> bool:
        """Process one reserved job end to end.  Returns ``True`` on success."""
        bind_job_context(job_id=queued.id, job_name=queued.name)
        try:
            try:
                job = DocumentJob.model_validate(queued.data)
            except ValidationError as exc:
                logger.error("job_payload_invalid", errors=exc.error_count(), detail=str(exc))
                await self._queue.fail(queued, f"Invalid job payload: {exc}")
                return False

            bind_job_context(document_id=job.document_id, source=job.source)
            logger.info("job_started", job_type=job.job_type, attempts=queued.attempts_made)

            try:
                runnable = await self._scheduler.should_run(job)
                if runnable:
                    await self.process(job)
            except Exception as exc:
                logger.error("job_failed", error=str(exc), error_type=type(exc).__name__)
                await self._queue.fail(queued, str(exc) or type(exc).__name__)
                return False

            await self._queue.complete(queued)
            if not runnable:
                logger.info("job_skipped_inactive_document")
                return True
            logger.info("job_completed")

            try:
                await self._scheduler.maybe_rearm(job)
            except Exception as exc:
                # The job itself succeeded; only the next cycle is lost.
                logger.error("sync_rearm_failed", error=str(exc), error_type=type(exc).__name__)
            return True
        finally:
            clear_job_context()

    # ------------------------------------------------------------------
    # Consumer loops
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Run consumer loops until :meth:`stop` is called."""
        self._stopping = False
        logger.info(
            "worker_started",
            queue=self._queue.get_provider_name(),
            concurrency=self._concurrency,
        )
        loops = [
            asyncio.create_task(self._consume(slot), name=f"ingestion-worker-{slot}")
            for slot in range(self._concurrency)
        ]
        try:
            await asyncio.gather(*loops)
        finally:
            for task in loops:
                task.cancel()
            await asyncio.gather(*loops, return_exceptions=True)
            logger.info("worker_stopped")

    def stop(self) -> None:
        """Ask every loop to exit after its current job."""
        self._stopping = True

    @property
    def is_stopping(self) -> bool:
        return self._stopping

    async def _consume(self, slot: int) -> None:
        while not self._stopping:
            try:
                queued = await self._queue.reserve(timeout=self._poll_timeout)
            except QueueError as exc:
                logger.error("queue_reserve_failed", slot=slot, error=str(exc))
                await asyncio.sleep(self._poll_timeout)
                continue
            if queued is None:
                continue
            await self.handle(queued)

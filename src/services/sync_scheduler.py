"""Re-arm policy for recurring URL crawls.

A URL document with ``syncFrequency`` set to ``1hour``, ``6hours`` or
``daily`` is re-crawled on that cadence.  After each successful run the
worker asks :class:`SyncScheduler` whether to schedule the next one; the
scheduler enqueues the same job again with a delay, but only if the
document still exists and is not paused *at that moment*.

A crawl already sitting in the queue is checked again when it is
reserved: :meth:`SyncScheduler.should_run` rejects URL ingest jobs whose
document was deleted or paused in the meantime, so a stale re-crawl never
writes vectors back for a removed document.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from src.models.ingestion import DocumentJob

if TYPE_CHECKING:
    from src.interfaces.document_status_provider import IDocumentStatusProvider
    from src.interfaces.job_queue_provider import IJobQueueProvider

logger = structlog.get_logger(logger_name=__name__)

# Seconds until the next crawl for each recurring frequency.
_FREQUENCY_DELAYS: dict[str, float] = {
    "1hour": 60 * 60,
    "6hours": 6 * 60 * 60,
    "daily": 24 * 60 * 60,
}


def frequency_to_delay(frequency: str | None) -> float | None:
    """Map a sync frequency to a delay in seconds.

    ``"manual"``, ``None`` and unrecognized values return ``None``
    (no recurrence).
    """
    if frequency is None:
        return None
    return _FREQUENCY_DELAYS.get(frequency)


class SyncScheduler:
    """Decides whether a finished job should be scheduled again.

    Parameters
    ----------
    queue:
        Queue the delayed follow-up job is added to.
    status_provider:
        Source of the document's live existence and pause flags.
    """

    def __init__(
        self,
        queue: IJobQueueProvider,
        status_provider: IDocumentStatusProvider,
    ) -> None:
        self._queue = queue
        self._status = status_provider

    async def maybe_rearm(self, job: DocumentJob) -> bool:
        """Enqueue the next run of *job* if its policy and state allow.

        Returns ``True`` when a delayed job was added.
        """
        if job.source != "url" or job.job_type != "ingest":
            return False

        delay = frequency_to_delay(job.sync_frequency)
        if delay is None:
            return False

        if not await self._is_live(job.document_id, "sync_rearm_skipped"):
            return False

        job_id = await self._queue.add("ingest", job.to_wire(), delay=delay)
        logger.info(
            "sync_rearmed",
            document_id=job.document_id,
            sync_frequency=job.sync_frequency,
            delay_seconds=delay,
            next_job_id=job_id,
        )
        return True

    async def should_run(self, job: DocumentJob) -> bool:
        """Return ``False`` for a URL ingest job whose document is gone or paused.

        Other job kinds always run.
        """
        if job.source != "url" or job.job_type != "ingest":
            return True
        return await self._is_live(job.document_id, "sync_job_skipped")

    async def _is_live(self, document_id: str, event: str) -> bool:
        state = await self._status.get_document_state(document_id)
        if not state.exists:
            logger.info(f"{event}_missing", document_id=document_id)
            return False
        if state.is_paused:
            logger.info(f"{event}_paused", document_id=document_id)
            return False
        return True

"""In-process job queue backed by asyncio primitives.

Same semantics as :class:`~src.providers.queue.redis_queue.RedisJobQueue`
(FIFO waiting list, delayed jobs promoted when due, single attempt,
capped completed/failed history) without a Redis server.  Jobs are lost
when the process exits, so this backend is for tests and local runs.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import time
import uuid
from collections import deque
from typing import Any

import structlog

from src.interfaces.job_queue_provider import IJobQueueProvider
from src.models.ingestion import QueuedJob

logger = structlog.get_logger(logger_name=__name__)

_KEEP_COMPLETED = 100
_KEEP_FAILED = 50


class InMemoryJobQueue(IJobQueueProvider):
    """asyncio job queue with delayed-job support."""

    def __init__(self, name: str = "document-ingestion") -> None:
        self._name = name
        self._waiting: deque[QueuedJob] = deque()
        self._delayed: list[tuple[float, int, QueuedJob]] = []
        self._seq = itertools.count()
        self._active: dict[str, QueuedJob] = {}
        self._completed: deque[QueuedJob] = deque(maxlen=_KEEP_COMPLETED)
        self._failed: deque[tuple[QueuedJob, str]] = deque(maxlen=_KEEP_FAILED)
        self._wakeup = asyncio.Event()

    async def add(self, name: str, data: dict[str, Any], delay: float = 0.0) -> str:
        now = time.time()
        job = QueuedJob(id=uuid.uuid4().hex, name=name, data=dict(data), enqueued_at=now)
        if delay > 0:
            heapq.heappush(self._delayed, (now + delay, next(self._seq), job))
        else:
            self._waiting.append(job)
        self._wakeup.set()
        logger.debug("job_added", queue=self._name, job_id=job.id, name=name, delay=delay)
        return job.id

    async def reserve(self, timeout: float = 1.0) -> QueuedJob | None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            self._promote_due()
            if self._waiting:
                job = self._waiting.popleft()
                job = job.model_copy(update={"attempts_made": job.attempts_made + 1})
                self._active[job.id] = job
                return job

            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            if self._delayed:
                remaining = min(remaining, max(0.0, self._delayed[0][0] - time.time()))

            self._wakeup.clear()
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                pass

    async def complete(self, job: QueuedJob) -> None:
        self._active.pop(job.id, None)
        self._completed.append(job)

    async def fail(self, job: QueuedJob, error: str) -> None:
        self._active.pop(job.id, None)
        self._failed.append((job, error))
        logger.debug("job_failed_recorded", queue=self._name, job_id=job.id, error=error)

    async def remove_jobs(self, document_id: str) -> int:
        def _matches(job: QueuedJob) -> bool:
            return job.name == "ingest" and job.data.get("documentId") == document_id

        waiting = [job for job in self._waiting if not _matches(job)]
        delayed = [entry for entry in self._delayed if not _matches(entry[2])]
        removed = len(self._waiting) - len(waiting) + len(self._delayed) - len(delayed)

        self._waiting = deque(waiting)
        heapq.heapify(delayed)
        self._delayed = delayed
        if removed:
            logger.info("jobs_removed", queue=self._name, document_id=document_id, count=removed)
        return removed

    async def close(self) -> None:
        self._wakeup.set()

    def get_provider_name(self) -> str:
        return "memory"

    # ------------------------------------------------------------------
    # Introspection (tests, CLI)
    # ------------------------------------------------------------------

    @property
    def completed(self) -> list[QueuedJob]:
        return list(self._completed)

    @property
    def failed(self) -> list[tuple[QueuedJob, str]]:
        return list(self._failed)

    @property
    def delayed(self) -> list[tuple[float, QueuedJob]]:
        """Delayed jobs as ``(due_timestamp, job)``, soonest first."""
        return [(due, job) for due, _, job in sorted(self._delayed)]

    def waiting_count(self) -> int:
        return len(self._waiting)

    def _promote_due(self) -> None:
        now = time.time()
        while self._delayed and self._delayed[0][0] <= now:
            _, _, job = heapq.heappop(self._delayed)
            self._waiting.append(job)

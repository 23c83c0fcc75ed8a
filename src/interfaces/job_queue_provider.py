"""Abstract base class for the durable ingestion job queue.

Producers (the external API, the CLI, and the worker itself when it
re-arms a recurring crawl) add jobs; worker loops reserve one job at a
time, then mark it completed or failed.  Jobs are attempted exactly once:
a failure is recorded, never retried automatically.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.ingestion import QueuedJob


# Concrete implementations (src/providers/queue/):
#   RedisJobQueue     - redis.asyncio lists + delayed sorted set
#   InMemoryJobQueue  - asyncio, for tests and single-process runs
class IJobQueueProvider(ABC):
    """Contract for the ingestion job queue."""

    @abstractmethod
    async def add(self, name: str, data: dict[str, Any], delay: float = 0.0) -> str:
        """Enqueue a job and return its id.

        Parameters
        ----------
        name:
            Job name, e.g. ``"ingest"`` or ``"delete-vectors"``.
        data:
            JSON-serializable payload (camelCase wire names).
        delay:
            Seconds before the job becomes eligible for :meth:`reserve`.
        """

    @abstractmethod
    async def reserve(self, timeout: float = 1.0) -> QueuedJob | None:
        """Take the next eligible job, waiting up to *timeout* seconds.

        Returns ``None`` when nothing became eligible in time.
        """

    @abstractmethod
    async def complete(self, job: QueuedJob) -> None:
        """Record *job* as successfully processed."""

    @abstractmethod
    async def fail(self, job: QueuedJob, error: str) -> None:
        """Record *job* as failed with *error*.  No retry is scheduled."""

    @abstractmethod
    async def remove_jobs(self, document_id: str) -> int:
        """Drop waiting and delayed ``ingest`` jobs for *document_id*.

        Jobs already reserved by a worker are left alone.  Returns the
        number of jobs removed.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release backend connections."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"redis"``."""

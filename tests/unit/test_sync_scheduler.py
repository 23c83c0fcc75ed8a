"""Unit tests for SyncScheduler - recurring URL re-crawl policy."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.job_queue_provider import IJobQueueProvider
from src.models.ingestion import DocumentJob
from src.services.sync_scheduler import SyncScheduler, frequency_to_delay


def _url_job(**overrides) -> DocumentJob:
    data = {
        "documentId": "doc-1",
        "source": "url",
        "teamId": "team-a",
        "sourceUrl": "https://docs.example.com/",
        "fetchMode": "crawl",
        "crawlDepth": 2,
        "syncFrequency": "daily",
    }
    data.update(overrides)
    return DocumentJob.model_validate(data)


@pytest.fixture
def mock_queue() -> MagicMock:
    queue = MagicMock(spec=IJobQueueProvider)
    queue.add = AsyncMock(return_value="job-2")
    return queue


class TestFrequencyToDelay:
    @pytest.mark.parametrize(
        ("frequency", "expected"),
        [("1hour", 3600), ("6hours", 21600), ("daily", 86400)],
    )
    def test_recurring(self, frequency: str, expected: int) -> None:
        assert frequency_to_delay(frequency) == expected

    @pytest.mark.parametrize("frequency", ["manual", None, "weekly", ""])
    def test_non_recurring(self, frequency) -> None:
        assert frequency_to_delay(frequency) is None


class TestSyncScheduler:
    @pytest.mark.asyncio
    async def test_rearms_existing_document(self, mock_queue, status_provider) -> None:
        status_provider.register("doc-1")
        scheduler = SyncScheduler(queue=mock_queue, status_provider=status_provider)
        job = _url_job()

        assert await scheduler.maybe_rearm(job) is True

        mock_queue.add.assert_awaited_once()
        name, data = mock_queue.add.await_args.args
        assert name == "ingest"
        assert data == job.to_wire()
        assert data["syncFrequency"] == "daily"
        assert mock_queue.add.await_args.kwargs["delay"] == 86400

    @pytest.mark.asyncio
    async def test_missing_document_not_rearmed(self, mock_queue, status_provider) -> None:
        scheduler = SyncScheduler(queue=mock_queue, status_provider=status_provider)

        assert await scheduler.maybe_rearm(_url_job()) is False
        mock_queue.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_paused_document_not_rearmed(self, mock_queue, status_provider) -> None:
        status_provider.register("doc-1", paused=True)
        scheduler = SyncScheduler(queue=mock_queue, status_provider=status_provider)

        assert await scheduler.maybe_rearm(_url_job()) is False
        mock_queue.add.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("frequency", ["manual", None])
    async def test_manual_not_rearmed(self, mock_queue, status_provider, frequency) -> None:
        status_provider.register("doc-1")
        scheduler = SyncScheduler(queue=mock_queue, status_provider=status_provider)

        assert await scheduler.maybe_rearm(_url_job(syncFrequency=frequency)) is False
        mock_queue.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_url_jobs_ignored(self, mock_queue, status_provider) -> None:
        status_provider.register("doc-1")
        scheduler = SyncScheduler(queue=mock_queue, status_provider=status_provider)
        text_job = DocumentJob.model_validate(
            {"documentId": "doc-1", "source": "text", "content": "x", "syncFrequency": "daily"}
        )

        assert await scheduler.maybe_rearm(text_job) is False
        mock_queue.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_jobs_ignored(self, mock_queue, status_provider) -> None:
        status_provider.register("doc-1")
        scheduler = SyncScheduler(queue=mock_queue, status_provider=status_provider)

        assert await scheduler.maybe_rearm(_url_job(jobType="delete-vectors")) is False
        mock_queue.add.assert_not_awaited()


class TestShouldRun:
    @pytest.mark.asyncio
    async def test_live_url_job_runs(self, mock_queue, status_provider) -> None:
        status_provider.register("doc-1")
        scheduler = SyncScheduler(queue=mock_queue, status_provider=status_provider)

        assert await scheduler.should_run(_url_job()) is True

    @pytest.mark.asyncio
    async def test_deleted_document_skipped(self, mock_queue, status_provider) -> None:
        scheduler = SyncScheduler(queue=mock_queue, status_provider=status_provider)

        assert await scheduler.should_run(_url_job()) is False

    @pytest.mark.asyncio
    async def test_paused_document_skipped(self, mock_queue, status_provider) -> None:
        status_provider.register("doc-1", paused=True)
        scheduler = SyncScheduler(queue=mock_queue, status_provider=status_provider)

        assert await scheduler.should_run(_url_job(syncFrequency="manual")) is False

    @pytest.mark.asyncio
    async def test_other_jobs_always_run(self, mock_queue, status_provider) -> None:
        scheduler = SyncScheduler(queue=mock_queue, status_provider=status_provider)
        text_job = DocumentJob.model_validate(
            {"documentId": "doc-1", "source": "text", "content": "x"}
        )

        assert await scheduler.should_run(text_job) is True
        assert await scheduler.should_run(_url_job(jobType="delete-vectors")) is True

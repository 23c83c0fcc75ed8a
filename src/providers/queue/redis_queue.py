"""Redis-backed durable job queue.

# ─── KEY LAYOUT ─────────────────────────────────────────────────────────
#
# For a queue named ``document-ingestion`` every key is prefixed with
# ``document-ingestion:``:
#
#   <q>:id          INCR counter for job ids
#   <q>:job:<id>    HASH  name, data (JSON), attempts_made, enqueued_at,
#                         state, error
#   <q>:waiting     LIST  ids ready to run (LPUSH in, BLMOVE out → FIFO)
#   <q>:delayed     ZSET  ids scored by the unix time they become due
#   <q>:active      LIST  ids reserved by a worker loop
#   <q>:completed   LIST  newest-first history, capped at 100
#   <q>:failed      LIST  newest-first history, capped at 50
#
# Jobs run once.  A failure is recorded in <q>:failed and never retried.
# Due ids move from <q>:delayed to <q>:waiting inside one Lua script.
# Job hashes that fall off the capped history lists are deleted.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
import time
from typing import Any

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from src.interfaces.job_queue_provider import IJobQueueProvider
from src.models.ingestion import QueuedJob
from src.utils.errors import QueueError

logger = structlog.get_logger(logger_name=__name__)

_KEEP_COMPLETED = 100
_KEEP_FAILED = 50

# KEYS[1] delayed zset, KEYS[2] waiting list; ARGV[1] now, ARGV[2] job key prefix.
# Atomic: a due id is always in exactly one of the two structures.
_PROMOTE_DUE_LUA = """
local due = redis.call('ZRANGEBYSCORE', KEYS[1], '-inf', ARGV[1])
for _, job_id in ipairs(due) do
    redis.call('ZREM', KEYS[1], job_id)
    redis.call('HSET', ARGV[2] .. job_id, 'state', 'waiting')
    redis.call('LPUSH', KEYS[2], job_id)
end
return #due
"""


class RedisJobQueue(IJobQueueProvider):
    """Job queue stored in Redis lists, a sorted set and per-job hashes.

    Parameters
    ----------
    redis_url:
        Connection URL, e.g. ``redis://localhost:6379/0``.
    queue_name:
        Key prefix shared by producers and workers.
    client:
        Optional pre-built ``redis.asyncio.Redis`` (must decode responses).
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        queue_name: str = "document-ingestion",
        client: aioredis.Redis | None = None,
    ) -> None:
        self._name = queue_name
        self._redis = client or aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5.0,
        )
        self._promote_script = self._redis.register_script(_PROMOTE_DUE_LUA)

    # ------------------------------------------------------------------
    # IJobQueueProvider implementation
    # ------------------------------------------------------------------

    async def add(self, name: str, data: dict[str, Any], delay: float = 0.0) -> str:
        try:
            job_id = str(await self._redis.incr(self._key("id")))
            now = time.time()
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hset(
                    self._job_key(job_id),
                    mapping={
                        "name": name,
                        "data": json.dumps(data),
                        "attempts_made": 0,
                        "enqueued_at": now,
                        "state": "delayed" if delay > 0 else "waiting",
                    },
                )
                if delay > 0:
                    pipe.zadd(self._key("delayed"), {job_id: now + delay})
                else:
                    pipe.lpush(self._key("waiting"), job_id)
                await pipe.execute()
        except RedisError as exc:
            raise QueueError(message=f"add failed: {exc}", provider_name="redis") from exc

        logger.debug("job_added", queue=self._name, job_id=job_id, name=name, delay=delay)
        return job_id

    async def reserve(self, timeout: float = 1.0) -> QueuedJob | None:
        try:
            await self._promote_due()
            block_for = await self._block_window(timeout)
            job_id = await self._redis.blmove(
                self._key("waiting"),
                self._key("active"),
                block_for,
                src="RIGHT",
                dest="LEFT",
            )
            if job_id is None:
                return None

            job_key = self._job_key(job_id)
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hincrby(job_key, "attempts_made", 1)
                pipe.hset(job_key, "state", "active")
                pipe.hgetall(job_key)
                _, _, fields = await pipe.execute()
        except RedisError as exc:
            raise QueueError(message=f"reserve failed: {exc}", provider_name="redis") from exc

        if not fields:
            # Hash trimmed or deleted underneath us; drop the orphan id.
            logger.warning("job_hash_missing", queue=self._name, job_id=job_id)
            await self._redis.lrem(self._key("active"), 1, job_id)
            return None

        return QueuedJob(
            id=job_id,
            name=fields.get("name", "ingest"),
            data=json.loads(fields.get("data") or "{}"),
            attempts_made=int(fields.get("attempts_made", 1)),
            enqueued_at=float(fields.get("enqueued_at", 0.0)),
        )

    async def complete(self, job: QueuedJob) -> None:
        await self._finish(job, "completed", _KEEP_COMPLETED)

    async def fail(self, job: QueuedJob, error: str) -> None:
        await self._finish(job, "failed", _KEEP_FAILED, error=error)

    async def remove_jobs(self, document_id: str) -> int:
        waiting_key = self._key("waiting")
        delayed_key = self._key("delayed")
        try:
            candidates = [
                *await self._redis.lrange(waiting_key, 0, -1),
                *await self._redis.zrange(delayed_key, 0, -1),
            ]
            if not candidates:
                return 0

            async with self._redis.pipeline(transaction=False) as pipe:
                for job_id in candidates:
                    pipe.hmget(self._job_key(job_id), ["name", "data"])
                rows = await pipe.execute()

            matched = [
                job_id
                for job_id, (name, raw) in zip(candidates, rows)
                if name == "ingest" and raw and json.loads(raw).get("documentId") == document_id
            ]
            if not matched:
                return 0

            async with self._redis.pipeline(transaction=True) as pipe:
                for job_id in matched:
                    pipe.lrem(waiting_key, 0, job_id)
                    pipe.zrem(delayed_key, job_id)
                    pipe.delete(self._job_key(job_id))
                await pipe.execute()
        except RedisError as exc:
            raise QueueError(message=f"remove_jobs failed: {exc}", provider_name="redis") from exc

        logger.info("jobs_removed", queue=self._name, document_id=document_id, count=len(matched))
        return len(matched)

    async def close(self) -> None:
        await self._redis.aclose()

    def get_provider_name(self) -> str:
        return "redis"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _key(self, suffix: str) -> str:
        return f"{self._name}:{suffix}"

    def _job_key(self, job_id: str) -> str:
        return self._key(f"job:{job_id}")

    async def _promote_due(self) -> None:
        """Move delayed jobs whose due time has passed onto the waiting list."""
        promoted = await self._promote_script(
            keys=[self._key("delayed"), self._key("waiting")],
            args=[time.time(), self._key("job:")],
        )
        if promoted:
            logger.debug("delayed_jobs_promoted", queue=self._name, count=promoted)

    async def _block_window(self, timeout: float) -> float:
        """Shorten the blocking pop so a soon-due delayed job is not missed."""
        head = await self._redis.zrange(self._key("delayed"), 0, 0, withscores=True)
        if not head:
            return timeout
        _, due = head[0]
        return max(0.01, min(timeout, due - time.time()))

    async def _finish(self, job: QueuedJob, state: str, keep: int, error: str | None = None) -> None:
        history = self._key(state)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.lrem(self._key("active"), 1, job.id)
                mapping: dict[str, Any] = {"state": state, "finished_at": time.time()}
                if error is not None:
                    mapping["error"] = error
                pipe.hset(self._job_key(job.id), mapping=mapping)
                pipe.lpush(history, job.id)
                pipe.lrange(history, keep, -1)
                pipe.ltrim(history, 0, keep - 1)
                results = await pipe.execute()
            expired = results[3]
            if expired:
                await self._redis.delete(*(self._job_key(old) for old in expired))
        except RedisError as exc:
            raise QueueError(message=f"{state} failed: {exc}", provider_name="redis") from exc

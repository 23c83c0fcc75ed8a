"""Shared concurrency primitives for the ingestion pipelines.

Two patterns are exposed:

1. **batched** -- slices a sequence into fixed-size windows.  The pipelines
   use it to walk chunks 25 at a time so that no more than one window of
   embedding requests is ever in flight for a single job.

2. **throttled_gather** -- a drop-in replacement for ``asyncio.gather``
   that optionally wraps each awaitable in a semaphore acquire/release.
   Within one batch the pipelines fan out every ``embed`` call and join
   them (fan-in) before the batch is upserted.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Sequence
from typing import Awaitable, TypeVar

_T = TypeVar("_T")


def batched(items: Sequence[_T], size: int) -> Iterator[Sequence[_T]]:
    """Yield consecutive slices of *items* holding at most *size* elements.

    Raises
    ------
    ValueError
        If *size* is less than 1.
    """
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    for start in range(0, len(items), size):
        yield items[start : start + size]


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    return_exceptions: bool = False,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with optional semaphore throttling.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional semaphore for concurrency control.  When ``None`` every
        awaitable runs at once (the batch size is the only bound).
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics; the
        pipelines keep the default so the first embedding failure
        propagates.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    if semaphore is None:
        return await asyncio.gather(*coros, return_exceptions=return_exceptions)

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    return await asyncio.gather(
        *(_wrapped(c) for c in coros), return_exceptions=return_exceptions
    )

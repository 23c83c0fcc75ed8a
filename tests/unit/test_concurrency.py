"""Unit tests for the batching and gather helpers."""

from __future__ import annotations

import asyncio

import pytest

from src.utils.concurrency import batched, throttled_gather


class TestBatched:
    def test_even_and_remainder(self) -> None:
        assert list(batched([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]

    def test_empty(self) -> None:
        assert list(batched([], 3)) == []

    def test_invalid_size(self) -> None:
        with pytest.raises(ValueError):
            list(batched([1], 0))


class TestThrottledGather:
    @pytest.mark.asyncio
    async def test_preserves_order(self) -> None:
        async def delayed(value: int, delay: float) -> int:
            await asyncio.sleep(delay)
            return value

        results = await throttled_gather([delayed(1, 0.03), delayed(2, 0.01), delayed(3, 0.0)])
        assert results == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_semaphore_bounds_concurrency(self) -> None:
        in_flight = 0
        peak = 0

        async def work() -> None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1

        await throttled_gather([work() for _ in range(6)], semaphore=asyncio.Semaphore(2))
        assert peak == 2

    @pytest.mark.asyncio
    async def test_first_exception_propagates(self) -> None:
        async def fail() -> None:
            raise RuntimeError("embed failed")

        async def ok() -> int:
            return 1

        with pytest.raises(RuntimeError, match="embed failed"):
            await throttled_gather([ok(), fail()])

    @pytest.mark.asyncio
    async def test_return_exceptions(self) -> None:
        async def fail() -> None:
            raise RuntimeError("x")

        results = await throttled_gather([fail()], return_exceptions=True)
        assert isinstance(results[0], RuntimeError)

"""Tests for the batching request queue."""

import asyncio
import time

import pytest

from decor_search.providers.utils import RequestQueue


class TestRequestQueue:
    async def test_returns_task_result(self):
        queue = RequestQueue(max_concurrent=1, inter_batch_delay=0)

        async def task():
            return "ok"

        assert await queue.enqueue(task) == "ok"
        assert queue.pending == 0

    async def test_task_exception_reaches_caller(self):
        queue = RequestQueue(max_concurrent=1, inter_batch_delay=0)

        async def failing():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await queue.enqueue(failing)

    async def test_failure_does_not_affect_other_entries(self):
        queue = RequestQueue(max_concurrent=2, inter_batch_delay=0)

        async def failing():
            raise RuntimeError("boom")

        async def ok():
            return 1

        results = await asyncio.gather(
            queue.enqueue(failing),
            queue.enqueue(ok),
            queue.enqueue(ok),
            return_exceptions=True,
        )
        assert isinstance(results[0], RuntimeError)
        assert results[1:] == [1, 1]

    async def test_fifo_order_with_single_slot(self, sleep_recorder):
        queue = RequestQueue(max_concurrent=1, inter_batch_delay=2.5, sleep=sleep_recorder)
        started = []

        def make(i):
            async def task():
                started.append(i)
                return i

            return task

        results = await asyncio.gather(*(queue.enqueue(make(i)) for i in range(5)))

        assert results == [0, 1, 2, 3, 4]
        assert started == [0, 1, 2, 3, 4]
        # Sleeps only between batches, never after the last one
        assert sleep_recorder.calls == [2.5, 2.5, 2.5, 2.5]

    async def test_batches_respect_max_concurrent(self, sleep_recorder):
        queue = RequestQueue(max_concurrent=2, inter_batch_delay=1.0, sleep=sleep_recorder)
        in_flight = 0
        peak = 0

        async def task():
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1

        await asyncio.gather(*(queue.enqueue(task) for _ in range(5)))

        assert peak == 2
        # 5 entries in batches of 2, 2, 1
        assert sleep_recorder.calls == [1.0, 1.0]

    async def test_throttling_spreads_calls_over_time(self):
        delay = 0.02
        queue = RequestQueue(max_concurrent=1, inter_batch_delay=delay)

        async def task():
            return None

        start = time.monotonic()
        await asyncio.gather(*(queue.enqueue(task) for _ in range(5)))
        elapsed = time.monotonic() - start

        assert elapsed >= 4 * delay * 0.9

    async def test_queue_restarts_after_draining(self):
        queue = RequestQueue(max_concurrent=1, inter_batch_delay=0)

        async def task():
            return "done"

        assert await queue.enqueue(task) == "done"
        for _ in range(5):
            await asyncio.sleep(0)
        assert await queue.enqueue(task) == "done"

    async def test_is_draining_while_work_is_pending(self):
        queue = RequestQueue(max_concurrent=1, inter_batch_delay=0)
        release = asyncio.Event()

        async def blocked():
            await release.wait()
            return "done"

        assert not queue.is_draining
        pending = asyncio.ensure_future(queue.enqueue(blocked))
        await asyncio.sleep(0)
        assert queue.is_draining

        release.set()
        assert await pending == "done"
        for _ in range(10):
            await asyncio.sleep(0)
        assert not queue.is_draining

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            RequestQueue(max_concurrent=0)
        with pytest.raises(ValueError):
            RequestQueue(inter_batch_delay=-1)

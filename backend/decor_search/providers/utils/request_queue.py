"""Batching request queue for per-provider rate limiting."""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Optional, TypeVar

import structlog


logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class QueueEntry:
    """A pending upstream call and the future its caller is awaiting."""

    task: Callable[[], Awaitable[Any]]
    future: "asyncio.Future[Any]"


class RequestQueue:
    """FIFO queue that runs at most ``max_concurrent`` calls per batch.

    A single drain loop takes up to ``max_concurrent`` entries, runs them
    concurrently, waits for every one of them to settle, then sleeps
    ``inter_batch_delay`` seconds before starting the next batch. Callers
    are never rejected when the upstream is saturated; they just wait.

    Each adapter owns its own queue, so two providers never throttle each
    other.
    """

    def __init__(
        self,
        max_concurrent: int = 1,
        inter_batch_delay: float = 2.5,
        name: str = "",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize request queue.

        Args:
            max_concurrent: Calls started together in one batch
            inter_batch_delay: Seconds to wait between batches
            name: Label used in log events (usually the provider slug)
            sleep: Coroutine used for the inter-batch wait
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if inter_batch_delay < 0:
            raise ValueError("inter_batch_delay cannot be negative")
        self.max_concurrent = max_concurrent
        self.inter_batch_delay = inter_batch_delay
        self.name = name
        self._sleep = sleep
        self._entries: Deque[QueueEntry] = deque()
        self._drain_task: Optional["asyncio.Task[None]"] = None

    @property
    def pending(self) -> int:
        """Number of calls waiting for a batch slot."""
        return len(self._entries)

    @property
    def is_draining(self) -> bool:
        """True while a drain loop is running."""
        return self._drain_task is not None

    async def enqueue(self, task: Callable[[], Awaitable[T]]) -> T:
        """Queue a call and wait for its result.

        Args:
            task: Zero-argument callable returning an awaitable

        Returns:
            Whatever the task returns

        Raises:
            Whatever the task raises
        """
        loop = asyncio.get_running_loop()
        future: "asyncio.Future[T]" = loop.create_future()
        self._entries.append(QueueEntry(task=task, future=future))
        self._start_draining()
        return await future

    def _start_draining(self) -> None:
        """Start the drain loop unless one is already running."""
        if self._drain_task is not None:
            return
        self._drain_task = asyncio.ensure_future(self._drain())

    async def _drain(self) -> None:
        """Run queued calls batch by batch until the queue is empty."""
        try:
            while self._entries:
                batch = [
                    self._entries.popleft()
                    for _ in range(min(self.max_concurrent, len(self._entries)))
                ]
                logger.debug(
                    "request_queue_batch",
                    queue=self.name,
                    batch_size=len(batch),
                    remaining=len(self._entries),
                )

                # return_exceptions: one failed call must not cancel its batch mates
                await asyncio.gather(
                    *(self._run_entry(entry) for entry in batch),
                    return_exceptions=True,
                )

                if self._entries and self.inter_batch_delay > 0:
                    logger.debug(
                        "request_queue_waiting",
                        queue=self.name,
                        delay=self.inter_batch_delay,
                    )
                    await self._sleep(self.inter_batch_delay)
        finally:
            self._drain_task = None

    @staticmethod
    async def _run_entry(entry: QueueEntry) -> None:
        """Run one call and settle its future."""
        try:
            result = await entry.task()
        except asyncio.CancelledError:
            if not entry.future.done():
                entry.future.cancel()
            raise
        except Exception as e:
            if not entry.future.done():
                entry.future.set_exception(e)
        else:
            if not entry.future.done():
                entry.future.set_result(result)

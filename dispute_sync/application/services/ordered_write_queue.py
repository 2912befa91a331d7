"""Ordered write queue for store operations.

Serializes asynchronous operations against one logical store endpoint.

Guarantees:
- Operations start in submission order (FIFO).
- At most one operation runs at any time, so an operation that reads before
  it writes is never interleaved with another queued operation.
- A failing operation fails only its own future; operations queued after it
  still run.
- Nothing is retried. Retrying is a caller decision.

Operations issued outside the queue are not ordered against it. Callers
that need read-after-write consistency queue the read as well.

Usage:
    queue = OrderedWriteQueue(name="store")

    async def write() -> StoreResponse:
        current = await transport.request("GET", path)
        return await transport.request("POST", path, merge(current.body))

    response = await queue.enqueue(write)
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Awaitable, Callable, TypeVar

from structlog import get_logger

logger = get_logger()

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


class OrderedWriteQueue:
    """FIFO serializer for deferred async operations.

    The worker task is started lazily on the running loop when the first
    operation is enqueued and exits once the queue drains.

    Attributes:
        name: Label used in log entries.
    """

    def __init__(self, name: str = "store") -> None:
        self.name = name
        self._pending: deque[tuple[Operation[Any], asyncio.Future[Any]]] = deque()
        self._worker: asyncio.Task[None] | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._sequence = 0

    @property
    def pending(self) -> int:
        """Number of operations waiting to start."""
        return len(self._pending)

    @property
    def is_idle(self) -> bool:
        """True when nothing is queued or running."""
        return self._idle.is_set()

    def enqueue(self, operation: Operation[T]) -> asyncio.Future[T]:
        """Queue an operation and return a future for its result.

        Must be called from a running event loop.

        Args:
            operation: Zero-argument coroutine function. It performs its
                reads, builds its request body and performs its write.

        Returns:
            Future resolved with the operation's result or exception.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()
        self._pending.append((operation, future))
        self._idle.clear()
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._drain(), name=f"{self.name}-queue")
        return future

    async def join(self) -> None:
        """Wait until every queued operation has finished."""
        await self._idle.wait()

    async def _drain(self) -> None:
        while self._pending:
            operation, future = self._pending.popleft()
            self._sequence += 1
            if future.cancelled():
                continue
            try:
                result = await operation()
            except asyncio.CancelledError:
                future.cancel()
                raise
            except Exception as e:
                logger.warning(
                    "queued_operation_failed",
                    queue=self.name,
                    sequence=self._sequence,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                if not future.cancelled():
                    future.set_exception(e)
            else:
                if not future.cancelled():
                    future.set_result(result)
        self._idle.set()

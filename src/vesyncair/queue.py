"""Single-slot request queue serializing all VeSync API traffic.

The VeSync cloud misbehaves when session-related calls interleave, so every
operation of a client (login, discovery, status, command) runs through one
worker task:
- Operations execute strictly one at a time, in arrival order
- An operation keeps the slot through its own pacing, backoff and settling delays
- Nested submissions from inside the slot run inline instead of deadlocking
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_LOGGER = logging.getLogger(__name__)


@dataclass
class QueuedRequest:
    """An operation waiting for the execution slot.

    Attributes:
        name: Operation name for logging (login, devices, status, command).
        execute_fn: Async function to run while holding the slot.
        future: Future resolved with the operation's outcome.
        timestamp: When the operation was queued.
    """

    name: str
    execute_fn: Callable[[], Awaitable[Any]]
    future: asyncio.Future[Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class RequestQueue:
    """FIFO queue with exactly one in-flight operation.

    There is no acquisition timeout and no priority: a queued operation waits
    until every operation ahead of it has finished.

    Example:
        ```python
        queue = RequestQueue()

        # Both calls are submitted concurrently but never overlap
        ok, info = await asyncio.gather(
            queue.run("login", auth.login),
            queue.run("status", fetch_status),
        )
        ```
    """

    def __init__(self) -> None:
        """Initialize the request queue."""
        # Queue and worker are created lazily so they bind to the running event loop
        self._queue: asyncio.Queue[QueuedRequest] | None = None
        self._processor_task: asyncio.Task[None] | None = None
        self._active: str | None = None

    @property
    def pending_count(self) -> int:
        """Get number of operations waiting for the slot."""
        return self._queue.qsize() if self._queue is not None else 0

    @property
    def active(self) -> str | None:
        """Get the name of the operation currently holding the slot."""
        return self._active

    async def run(self, name: str, execute_fn: Callable[[], Awaitable[Any]]) -> Any:
        """Run an operation once the slot is free.

        Args:
            name: Operation name for logging.
            execute_fn: Async function to execute while holding the slot.

        Returns:
            Whatever execute_fn returns.

        Raises:
            Exception: Re-raises any exception raised by execute_fn.
        """
        if self._processor_task is not None and asyncio.current_task() is self._processor_task:
            _LOGGER.debug("Running nested %s operation inside the held slot", name)
            return await execute_fn()

        self._ensure_processor_running()
        assert self._queue is not None

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(QueuedRequest(name=name, execute_fn=execute_fn, future=future))
        _LOGGER.debug("Queued %s operation (%d waiting)", name, self._queue.qsize())

        return await future

    def _ensure_processor_running(self) -> None:
        """Ensure the worker task is running."""
        if self._processor_task is None or self._processor_task.done():
            self._queue = asyncio.Queue()
            self._processor_task = asyncio.create_task(self._process_queue())

    async def _process_queue(self) -> None:
        """Worker task executing queued operations one at a time."""
        _LOGGER.debug("Request queue processor started")
        assert self._queue is not None

        try:
            while True:
                request = await self._queue.get()
                try:
                    if request.future.done():
                        # Caller went away before the slot was granted
                        continue
                    await self._execute_request(request)
                finally:
                    self._queue.task_done()
        except asyncio.CancelledError:
            _LOGGER.debug("Request queue processor cancelled")
            raise
        finally:
            _LOGGER.debug("Request queue processor stopped")

    async def _execute_request(self, request: QueuedRequest) -> None:
        """Execute a single operation and resolve its future."""
        self._active = request.name
        waited = (datetime.now(UTC) - request.timestamp).total_seconds()
        _LOGGER.debug("Executing %s operation after %.3fs in queue", request.name, waited)

        try:
            result = await request.execute_fn()
        except asyncio.CancelledError:
            if not request.future.done():
                request.future.cancel()
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            # Only this operation was cancelled
            _LOGGER.debug("Operation %s was cancelled", request.name)
        except Exception as exc:  # noqa: BLE001 - delivered to the waiting caller
            _LOGGER.debug("Operation %s raised %s", request.name, type(exc).__name__)
            if not request.future.done():
                request.future.set_exception(exc)
        else:
            if not request.future.done():
                request.future.set_result(result)
        finally:
            self._active = None

    async def shutdown(self) -> None:
        """Stop the worker and cancel every operation still waiting."""
        if self._processor_task is not None:
            self._processor_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._processor_task
            self._processor_task = None

        cancelled = 0
        if self._queue is not None:
            while not self._queue.empty():
                request = self._queue.get_nowait()
                if not request.future.done():
                    request.future.cancel()
                    cancelled += 1

        _LOGGER.debug("Request queue shutdown complete (%d pending cancelled)", cancelled)

"""Serialized command execution.

The DreamScreen protocol has no request IDs: a response is simply the next
frame on the notification channel. Responses can only be matched to the
commands that caused them if exactly one command is in flight at a time, so
every write goes through a single FIFO queue that runs one work item at a
time, whether or not the item expects a reply.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ..exceptions import BLETimeoutError
from ..models.responses import ResponseFrame
from .pending import ResponseWaiters

_LOGGER = logging.getLogger(__name__)

WriteFunc = Callable[[bytes], Awaitable[None]]


@dataclass(slots=True)
class WorkItem:
    """One queued command.

    Attributes:
        command: Bytes to write
        expects_response: Wait for the next frame after writing
        future: Settled with the outcome once the item has run
    """

    command: bytes
    expects_response: bool
    future: asyncio.Future[ResponseFrame | None]


class CommandQueue:
    """Runs queued commands one at a time in submission order.

    Nothing runs until :meth:`set_ready` is called, which happens once the
    notification subscription is confirmed. Commands enqueued earlier wait.

    Usage:
        queue = CommandQueue(connection.write_command, waiters)
        done = queue.enqueue(b"#Bw1")
        queue.set_ready()
        await done
    """

    def __init__(
            self,
            write: WriteFunc,
            waiters: ResponseWaiters,
            response_timeout: float | None = None,
    ):
        """Initialize command queue.

        Args:
            write: Coroutine function writing one command to the transport
            waiters: Registry resolved by incoming frames
            response_timeout: Seconds to wait for a reply, or None to wait forever
        """
        self._write = write
        self._waiters = waiters
        self.response_timeout = response_timeout

        self._queue: deque[WorkItem] = deque()
        self._running = False
        self._ready = False
        self._closed_error: Exception | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def ready(self) -> bool:
        """Whether queued commands may run."""
        return self._ready

    @property
    def running(self) -> bool:
        """Whether a command is currently in flight."""
        return self._running

    @property
    def closed(self) -> bool:
        """Whether the queue was closed and accepts no more commands."""
        return self._closed_error is not None

    @property
    def pending(self) -> int:
        """Number of queued commands not yet started."""
        return len(self._queue)

    def enqueue(
            self,
            command: bytes,
            expects_response: bool = False,
    ) -> asyncio.Future[ResponseFrame | None]:
        """Append a command to the queue.

        Args:
            command: Bytes to write
            expects_response: Wait for the next frame once the write completes

        Returns:
            Future resolving to the response frame (or None for plain writes)
            once this command has run

        Raises:
            BLEConnectionError: If the queue was closed by a disconnect
        """
        if self._closed_error is not None:
            raise self._closed_error

        future: asyncio.Future[ResponseFrame | None] = asyncio.get_running_loop().create_future()
        self._queue.append(WorkItem(command, expects_response, future))
        self._drain()
        return future

    def set_ready(self) -> None:
        """Allow queued commands to run."""
        if self._ready or self._closed_error is not None:
            return
        _LOGGER.debug("Command queue ready (%d pending)", len(self._queue))
        self._ready = True
        self._drain()

    def close(self, error: Exception) -> None:
        """Stop the queue and fail all queued and in-flight commands with ``error``."""
        if self._closed_error is not None:
            return
        _LOGGER.debug(
            "Closing command queue (%d pending, running=%s): %s",
            len(self._queue),
            self._running,
            error,
        )
        self._closed_error = error
        self._ready = False

        while self._queue:
            item = self._queue.popleft()
            if not item.future.done():
                item.future.set_exception(error)

        self._waiters.fail_all(error)
        if self._task is not None:
            self._task.cancel()

    def _drain(self) -> None:
        if not self._ready or self._running:
            return

        # Commands whose caller cancelled them while queued are never sent
        while self._queue and self._queue[0].future.done():
            skipped = self._queue.popleft()
            _LOGGER.debug("Skipping cancelled command %r", skipped.command)

        if not self._queue:
            return

        self._running = True
        item = self._queue.popleft()
        self._task = asyncio.get_running_loop().create_task(self._run(item))

    async def _run(self, item: WorkItem) -> None:
        try:
            result = await self._execute(item)
        except asyncio.CancelledError:
            if not item.future.done():
                if self._closed_error is not None:
                    item.future.set_exception(self._closed_error)
                else:
                    item.future.cancel()
            raise
        except Exception as e:
            _LOGGER.debug("Command %r failed: %s", item.command, e)
            if not item.future.done():
                item.future.set_exception(e)
        else:
            if not item.future.done():
                item.future.set_result(result)
        finally:
            self._running = False
            self._task = None
            self._drain()

    async def _execute(self, item: WorkItem) -> ResponseFrame | None:
        _LOGGER.debug("  ---> %r", item.command)
        await self._write(item.command)

        if not item.expects_response:
            return None

        waiter = self._waiters.register()
        if self.response_timeout is None:
            return await waiter

        try:
            return await asyncio.wait_for(waiter, timeout=self.response_timeout)
        except asyncio.TimeoutError as e:
            raise BLETimeoutError(
                f"No response to {item.command!r} within {self.response_timeout}s"
            ) from e

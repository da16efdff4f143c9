"""Waiters for responses from the notification channel."""

from __future__ import annotations

import asyncio
import logging
from collections import deque

from ..models.responses import ResponseFrame

_LOGGER = logging.getLogger(__name__)


class ResponseWaiters:
    """FIFO registry of futures waiting for the next response frame.

    Each incoming frame resolves exactly one waiter, the oldest one still
    pending. Frames arriving while nothing waits are dropped.
    """

    def __init__(self) -> None:
        self._waiters: deque[asyncio.Future[ResponseFrame]] = deque()

    def register(self) -> asyncio.Future[ResponseFrame]:
        """Add a waiter for the next frame and return it without blocking."""
        waiter: asyncio.Future[ResponseFrame] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        return waiter

    def on_frame(self, frame: ResponseFrame) -> bool:
        """Resolve the oldest pending waiter with ``frame``.

        Returns:
            True if a waiter was resolved, False if the frame was dropped
        """
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                # Cancelled by a response timeout
                continue
            waiter.set_result(frame)
            return True

        _LOGGER.debug("No pending waiter, dropping frame %r", frame.payload)
        return False

    def fail_all(self, error: Exception) -> None:
        """Fail every pending waiter with ``error``."""
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(error)

    def __len__(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

"""Explicit observer registration."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

_LOGGER = logging.getLogger(__name__)

_CallbackT = TypeVar("_CallbackT", bound=Callable[..., None])


class CallbackList(Generic[_CallbackT]):
    """Ordered list of callbacks for one kind of event.

    Callbacks are invoked in registration order. An exception raised by one
    callback is logged and does not prevent the others from running.
    """

    def __init__(self, name: str):
        self.name = name
        self._callbacks: list[_CallbackT] = []

    def add(self, callback: _CallbackT) -> Callable[[], None]:
        """Register a callback.

        Returns:
            Function that unregisters the callback again
        """
        self._callbacks.append(callback)

        def _remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _remove

    def notify(self, *args) -> None:
        """Invoke every registered callback with ``args``."""
        # Copy so callbacks may unregister themselves while being notified
        for callback in list(self._callbacks):
            try:
                callback(*args)
            except Exception:
                _LOGGER.exception("Error in %s callback %r", self.name, callback)

    def __len__(self) -> int:
        return len(self._callbacks)

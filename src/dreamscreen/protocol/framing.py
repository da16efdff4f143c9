"""Response framing for the DreamScreen notification channel.

The device terminates every response with a carriage return and the
transport delivers one frame per notification. Frames are therefore cut at
the first terminator and anything after it is discarded; there is no
carry-over buffer for frames split across deliveries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..callbacks import CallbackList
from ..models.responses import ResponseFrame
from .commands import FRAME_TERMINATOR

_LOGGER = logging.getLogger(__name__)

_TERMINATOR = FRAME_TERMINATOR.decode("ascii")


def decode_frame(data: bytes | bytearray, is_notification: bool) -> ResponseFrame:
    """Decode one delivered chunk into a response frame.

    Args:
        data: Raw bytes from the response characteristic
        is_notification: Whether the transport delivered data as a notification

    Returns:
        ResponseFrame with text up to (not including) the first terminator
    """
    text = bytes(data).decode("utf-8", errors="replace")
    end = text.find(_TERMINATOR)
    if end >= 0:
        text = text[:end]
    return ResponseFrame(payload=text, is_unsolicited=is_notification)


class Framer:
    """Turns raw deliveries into frames and fans them out to listeners."""

    def __init__(self) -> None:
        self._listeners: CallbackList[Callable[[ResponseFrame], None]] = CallbackList("frame")

    def add_listener(self, callback: Callable[[ResponseFrame], None]) -> Callable[[], None]:
        """Register a frame listener; returns a function removing it."""
        return self._listeners.add(callback)

    def feed(self, data: bytes | bytearray, is_notification: bool) -> ResponseFrame:
        """Decode ``data`` and publish the frame to every listener."""
        frame = decode_frame(data, is_notification)
        _LOGGER.debug(" <--- %r (notification=%s)", frame.payload, is_notification)
        self._listeners.notify(frame)
        return frame

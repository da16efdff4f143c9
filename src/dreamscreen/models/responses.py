"""Response frame data structures."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ResponseFrame:
    """One complete response frame from the device.

    Attributes:
        payload: Frame text with the terminator stripped
        is_unsolicited: True if the transport delivered the frame as a
            notification rather than as the reply to a direct read
    """

    payload: str
    is_unsolicited: bool


@dataclass(frozen=True, slots=True)
class CommandResponse:
    """Response frame tagged with the command that was sent for it.

    The protocol has no correlation IDs, so the pairing is positional: the
    frame is simply the first one that arrived after ``command`` was written.
    """

    command: bytes
    payload: str
    is_unsolicited: bool

    @classmethod
    def from_frame(cls, command: bytes, frame: ResponseFrame) -> CommandResponse:
        return cls(
            command=command,
            payload=frame.payload,
            is_unsolicited=frame.is_unsolicited,
        )

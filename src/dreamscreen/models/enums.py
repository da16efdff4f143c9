from __future__ import annotations

from enum import IntEnum
from typing import Final


class DisplayMode(IntEnum):
    """Display modes selectable with the mode property.

    The value is the single-digit opcode sent on the wire.
    """
    IDLE = 0
    VIDEO = 1
    MUSIC = 2
    AMBIENT_STATIC = 3
    IDENTIFY = 4
    AMBIENT_SHOW = 5


MODE_NAMES: Final[dict[str, DisplayMode]] = {
    "idle": DisplayMode.IDLE,
    "video": DisplayMode.VIDEO,
    "music": DisplayMode.MUSIC,
    "ambient_static": DisplayMode.AMBIENT_STATIC,
    "identify": DisplayMode.IDENTIFY,
    "ambient_show": DisplayMode.AMBIENT_SHOW,
    # Names used by the DreamScreen apps
    "ambientStatic": DisplayMode.AMBIENT_STATIC,
    "ambientShow": DisplayMode.AMBIENT_SHOW,
}


def get_display_mode(mode: DisplayMode | str) -> DisplayMode | None:
    """Resolve a mode name or enum member, or None if unknown."""
    if isinstance(mode, DisplayMode):
        return mode
    if isinstance(mode, str):
        return MODE_NAMES.get(mode)
    return None

"""Data models for DreamScreen devices."""

from .enums import MODE_NAMES, DisplayMode, get_display_mode
from .responses import CommandResponse, ResponseFrame

__all__ = [
    "CommandResponse",
    "DisplayMode",
    "MODE_NAMES",
    "ResponseFrame",
    "get_display_mode",
]

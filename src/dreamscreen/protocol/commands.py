"""BLE protocol commands for DreamScreen devices."""

from __future__ import annotations

import math
from typing import Final

from ..exceptions import InvalidArgumentError
from ..models.enums import DisplayMode, get_display_mode

# GATT layout
SERVICE_UUID = "0000ff60-0000-1000-8000-00805f9b34fb"
COMMAND_CHAR_UUID = "0000ff61-0000-1000-8000-00805f9b34fb"    # Read/Write
RESPONSE_CHAR_UUID = "0000ff62-0000-1000-8000-00805f9b34fb"   # Read/Write/Notify
NAME_CHAR_UUID = "0000ff63-0000-1000-8000-00805f9b34fb"       # Read/Write

DEFAULT_LOCAL_NAME = "DreamScreen"

# Wire format: #<key><op><value>
COMMAND_PREFIX = "#"
OP_WRITE = "w"
OP_READ = "g"

FRAME_TERMINATOR = b"\r"

MODE_KEY = "B"
BRIGHTNESS_KEY = "C"

BRIGHTNESS_MIN = 0
BRIGHTNESS_MAX = 100

PROPERTY_KEYS: Final[dict[str, str]] = {
    "mode": MODE_KEY,
    "brightness": BRIGHTNESS_KEY,
}


def get_property_key(name: str) -> str:
    """Look up the single-character key for a property name.

    Raises:
        InvalidArgumentError: If the property is unknown
    """
    try:
        return PROPERTY_KEYS[name]
    except (KeyError, TypeError):
        raise InvalidArgumentError(f"Invalid property: {name!r}") from None


def _encode(command: str) -> bytes:
    try:
        return command.encode("ascii")
    except UnicodeEncodeError as e:
        raise InvalidArgumentError(f"Command is not ASCII: {command!r}") from e


def build_write_command(key: str, value: str | int) -> bytes:
    """Build a property write command.

    No type checking or value conversion is done on ``value``.

    Example:
        build_write_command("B", "1") == b"#Bw1"
    """
    return _encode(f"{COMMAND_PREFIX}{key}{OP_WRITE}{value}")


def build_read_command(key: str) -> bytes:
    """Build a property read command, e.g. ``b"#Bg"``."""
    return _encode(f"{COMMAND_PREFIX}{key}{OP_READ}")


def build_mode_command(mode: DisplayMode | str) -> bytes:
    """Build command selecting a display mode.

    Args:
        mode: DisplayMode member or mode name ("video", "ambient_show", ...)

    Raises:
        InvalidArgumentError: If the mode is unknown
    """
    resolved = get_display_mode(mode)
    if resolved is None:
        raise InvalidArgumentError(f"Invalid mode: {mode!r}")
    return build_write_command(MODE_KEY, int(resolved))


def encode_brightness(value: int | float) -> str:
    """Clamp brightness to the supported range and zero-pad to 3 digits.

    Floats are rounded to the nearest integer first.

    Raises:
        InvalidArgumentError: If value is not a real number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(f"Invalid brightness: {value!r}")
    if isinstance(value, float):
        if math.isnan(value):
            raise InvalidArgumentError("Invalid brightness: nan")
        if math.isinf(value):
            value = BRIGHTNESS_MAX if value > 0 else BRIGHTNESS_MIN
        value = round(value)

    clamped = max(BRIGHTNESS_MIN, min(BRIGHTNESS_MAX, value))
    return f"{clamped:03d}"


def build_brightness_command(value: int | float) -> bytes:
    """Build command setting the brightness (0 - 100).

    Out-of-range values are clamped: 150 is sent as "100", -5 as "000".
    """
    return build_write_command(BRIGHTNESS_KEY, encode_brightness(value))

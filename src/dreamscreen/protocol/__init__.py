"""BLE protocol implementation."""

from .commands import (
    BRIGHTNESS_KEY,
    BRIGHTNESS_MAX,
    BRIGHTNESS_MIN,
    COMMAND_CHAR_UUID,
    DEFAULT_LOCAL_NAME,
    FRAME_TERMINATOR,
    MODE_KEY,
    NAME_CHAR_UUID,
    PROPERTY_KEYS,
    RESPONSE_CHAR_UUID,
    SERVICE_UUID,
    build_brightness_command,
    build_mode_command,
    build_read_command,
    build_write_command,
    encode_brightness,
    get_property_key,
)
from .framing import Framer, decode_frame

__all__ = [
    "SERVICE_UUID",
    "COMMAND_CHAR_UUID",
    "RESPONSE_CHAR_UUID",
    "NAME_CHAR_UUID",
    "DEFAULT_LOCAL_NAME",
    "FRAME_TERMINATOR",
    "MODE_KEY",
    "BRIGHTNESS_KEY",
    "BRIGHTNESS_MIN",
    "BRIGHTNESS_MAX",
    "PROPERTY_KEYS",
    "get_property_key",
    "build_write_command",
    "build_read_command",
    "build_mode_command",
    "build_brightness_command",
    "encode_brightness",
    "Framer",
    "decode_frame",
]

"""DreamScreen BLE Protocol Package.

  Pure Python package for controlling DreamScreen devices over BLE.
  """

from .device import DreamScreenDevice
from .exceptions import (
    BLEConnectionError,
    BLETimeoutError,
    CharacteristicNotFoundError,
    DreamScreenError,
    InvalidArgumentError,
    ServiceDiscoveryError,
    TransportWriteError,
)
from .models import MODE_NAMES, CommandResponse, DisplayMode, ResponseFrame
from .protocol import COMMAND_CHAR_UUID, RESPONSE_CHAR_UUID, SERVICE_UUID
from .transport import BLEConnection, discover_devices, find_device

__version__ = "0.1.0"

__all__ = [
    # Main API
    "DreamScreenDevice",
    "BLEConnection",
    "discover_devices",
    "find_device",
    # Exceptions
    "DreamScreenError",
    "InvalidArgumentError",
    "BLEConnectionError",
    "ServiceDiscoveryError",
    "CharacteristicNotFoundError",
    "TransportWriteError",
    "BLETimeoutError",
    # Models
    "CommandResponse",
    "ResponseFrame",
    "DisplayMode",
    "MODE_NAMES",
    # Constants
    "SERVICE_UUID",
    "COMMAND_CHAR_UUID",
    "RESPONSE_CHAR_UUID",
]

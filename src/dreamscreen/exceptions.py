"""Exceptions raised by the DreamScreen BLE library."""


class DreamScreenError(Exception):
    """Base exception for all DreamScreen errors."""


class InvalidArgumentError(DreamScreenError, ValueError):
    """Raised when a command argument fails validation.

    Commands that fail validation are never queued.
    """


class BLEConnectionError(DreamScreenError):
    """Raised when the BLE connection fails or is lost."""


class ServiceDiscoveryError(BLEConnectionError):
    """Raised when the DreamScreen GATT service is missing."""


class CharacteristicNotFoundError(BLEConnectionError):
    """Raised when a required GATT characteristic is missing."""


class TransportWriteError(BLEConnectionError):
    """Raised when writing a command to the device fails."""


class BLETimeoutError(DreamScreenError):
    """Raised when a BLE operation times out."""

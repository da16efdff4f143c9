"""BLE transport and command serialization."""

from .command_queue import CommandQueue, WorkItem
from .connection import BLEConnection
from .discovery import discover_devices, find_device
from .pending import ResponseWaiters

__all__ = [
    "BLEConnection",
    "CommandQueue",
    "ResponseWaiters",
    "WorkItem",
    "discover_devices",
    "find_device",
]

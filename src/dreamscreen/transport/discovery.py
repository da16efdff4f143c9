"""Scanning for DreamScreen devices."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bleak import BleakScanner

from ..exceptions import BLEConnectionError
from ..protocol import DEFAULT_LOCAL_NAME, SERVICE_UUID

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice
    from bleak.backends.scanner import AdvertisementData

_LOGGER = logging.getLogger(__name__)


def _advertises_service(advertisement: AdvertisementData) -> bool:
    return SERVICE_UUID in (uuid.lower() for uuid in advertisement.service_uuids)


async def find_device(
        discover_by_name: bool = False,
        local_name: str = DEFAULT_LOCAL_NAME,
        timeout: float = 10.0,
) -> BLEDevice:
    """Scan until the first DreamScreen is found.

    Args:
        discover_by_name: Match on advertised local name instead of service UUID
        local_name: Name to match when discover_by_name is set
        timeout: Scan timeout in seconds (default: 10)

    Raises:
        BLEConnectionError: If no matching device advertised within timeout
    """
    def _match(device: BLEDevice, advertisement: AdvertisementData) -> bool:
        if discover_by_name:
            return advertisement.local_name == local_name
        return _advertises_service(advertisement)

    _LOGGER.debug(
        "Scanning for DreamScreen (%s)",
        f"name={local_name!r}" if discover_by_name else f"service={SERVICE_UUID}",
    )
    device = await BleakScanner.find_device_by_filter(_match, timeout=timeout)
    if device is None:
        raise BLEConnectionError(f"No DreamScreen found within {timeout}s")

    _LOGGER.debug("Found %s (%s)", device.name, device.address)
    return device


async def discover_devices(timeout: float = 10.0) -> list[BLEDevice]:
    """Return every device advertising the DreamScreen service during the scan."""
    found = await BleakScanner.discover(timeout=timeout, return_adv=True)
    devices = [
        device
        for device, advertisement in found.values()
        if _advertises_service(advertisement)
    ]
    _LOGGER.debug("Discovered %d DreamScreen device(s)", len(devices))
    return devices

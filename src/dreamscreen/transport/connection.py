"""BLE connection management."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from bleak import BleakClient, BleakScanner
from bleak_retry_connector import BleakClientWithServiceCache, establish_connection

from ..callbacks import CallbackList
from ..exceptions import (
    BLEConnectionError,
    BLETimeoutError,
    CharacteristicNotFoundError,
    DreamScreenError,
    ServiceDiscoveryError,
    TransportWriteError,
)
from ..protocol import (
    COMMAND_CHAR_UUID,
    DEFAULT_LOCAL_NAME,
    RESPONSE_CHAR_UUID,
    SERVICE_UUID,
)
from .discovery import find_device

if TYPE_CHECKING:
    from bleak.backends.characteristic import BleakGATTCharacteristic
    from bleak.backends.device import BLEDevice

_LOGGER = logging.getLogger(__name__)

NotificationCallback = Callable[[bytes, bool], None]


class BLEConnection:
    """Manages BLE connection to a DreamScreen device.

    Features:
    - Automatic retry logic with bleak-retry-connector
    - Service caching for faster reconnections
    - Context manager for automatic cleanup
    - Listener registration for response data and disconnects
    """

    def __init__(
            self,
            mac_address: str | None = None,
            ble_device: BLEDevice | None = None,
            timeout: float = 10.0,
            max_attempts: int = 4,
            use_services_cache: bool = True,
            discover_by_name: bool = False,
            local_name: str = DEFAULT_LOCAL_NAME,
    ):
        """Initialize BLE connection manager.

        Args:
            mac_address: Device MAC address (scan for any DreamScreen if omitted)
            ble_device: Optional BLEDevice from Home Assistant bluetooth integration
            timeout: Connection timeout in seconds (default: 10)
            max_attempts: Maximum connection attempts for bleak-retry-connector (default: 4)
            use_services_cache: Enable GATT service caching for faster reconnections (default: True)
            discover_by_name: When scanning, match the advertised name instead of the service UUID
            local_name: Advertised name matched by discover_by_name (default: "DreamScreen")
        """
        self.mac_address = mac_address
        self.ble_device = ble_device
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.use_services_cache = use_services_cache
        self.discover_by_name = discover_by_name
        self.local_name = local_name

        self._client: BleakClient | None = None
        self._command_characteristic: BleakGATTCharacteristic | None = None
        self._response_characteristic: BleakGATTCharacteristic | None = None
        self._notifying = False
        self._connecting = False

        self._notification_listeners: CallbackList[NotificationCallback] = CallbackList("notification")
        self._disconnect_listeners: CallbackList[Callable[[], None]] = CallbackList("disconnect")

    async def __aenter__(self) -> BLEConnection:
        """Connect to device (context manager entry)."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Disconnect from device (context manager exit)."""
        await self.disconnect()

    def add_notification_listener(self, callback: NotificationCallback) -> Callable[[], None]:
        """Register ``callback(data, is_notification)`` for response data.

        Returns:
            Function that removes the listener again
        """
        return self._notification_listeners.add(callback)

    def add_disconnect_listener(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback()`` invoked when the device disconnects."""
        return self._disconnect_listeners.add(callback)

    async def connect(self) -> None:
        """Establish BLE connection and locate the DreamScreen characteristics.

        Either the connection is fully set up or it is torn down again
        before the error propagates.

        Raises:
            BLEConnectionError: If connection fails
            ServiceDiscoveryError: If the DreamScreen service is missing
            CharacteristicNotFoundError: If a required characteristic is missing
            BLETimeoutError: If connection times out
        """
        if self._client and self._client.is_connected:
            return  # Already connected

        self._connecting = True
        try:
            device = await self._resolve_device()

            _LOGGER.debug(
                "Connecting to %s with bleak-retry-connector (max_attempts=%d)",
                device.address,
                self.max_attempts,
            )

            # Establish connection with retry logic
            self._client = await establish_connection(
                client_class=BleakClientWithServiceCache,
                device=device,
                name=device.name or self.local_name,
                disconnected_callback=self._on_disconnected,
                max_attempts=self.max_attempts,
                use_services_cache=self.use_services_cache,
                timeout=self.timeout,
            )
            self.mac_address = device.address

            _LOGGER.debug("Connected to %s", self.mac_address)

            self._resolve_characteristics()

        except DreamScreenError:
            await self._abort()
            raise
        except asyncio.TimeoutError as e:
            await self._abort()
            raise BLETimeoutError(
                f"Connection timeout after {self.timeout}s"
            ) from e
        except Exception as e:
            await self._abort()
            raise BLEConnectionError(
                f"Failed to connect: {e}"
            ) from e
        finally:
            self._connecting = False

    async def disconnect(self) -> None:
        """Disconnect from device."""
        if self._client and self._client.is_connected:
            try:
                _LOGGER.debug("Disconnecting from %s", self.mac_address)
                await self._client.disconnect()
            except Exception as e:
                _LOGGER.warning("Error during disconnect: %s", e)
        self._reset()

    async def _abort(self) -> None:
        """Tear down a partially established connection."""
        await self.disconnect()

    def _reset(self) -> None:
        self._client = None
        self._command_characteristic = None
        self._response_characteristic = None
        self._notifying = False

    async def _resolve_device(self) -> BLEDevice:
        if self.ble_device:
            return self.ble_device

        if self.mac_address:
            device = await BleakScanner.find_device_by_address(
                self.mac_address,
                timeout=self.timeout,
            )
            if device is None:
                raise BLEConnectionError(
                    f"Device {self.mac_address} not found during scan"
                )
            return device

        return await find_device(
            discover_by_name=self.discover_by_name,
            local_name=self.local_name,
            timeout=self.timeout,
        )

    def _resolve_characteristics(self) -> None:
        """Locate command and response characteristics.

        Raises:
            ServiceDiscoveryError: If the service is not found
            CharacteristicNotFoundError: If a characteristic is not found
        """
        if not self._client or not self._client.is_connected:
            raise BLEConnectionError("Not connected")

        service = self._client.services.get_service(SERVICE_UUID)
        if not service:
            raise ServiceDiscoveryError(f"Service {SERVICE_UUID} not found")

        command = service.get_characteristic(COMMAND_CHAR_UUID)
        if not command:
            raise CharacteristicNotFoundError("Command characteristic not found")

        response = service.get_characteristic(RESPONSE_CHAR_UUID)
        if not response:
            raise CharacteristicNotFoundError("Response characteristic not found")

        self._command_characteristic = command
        self._response_characteristic = response

    async def start_notifications(self) -> None:
        """Subscribe to the response characteristic.

        Returns once the device has confirmed the subscription.

        Raises:
            BLEConnectionError: If not connected or subscribing fails
        """
        if not self._client or not self._client.is_connected:
            raise BLEConnectionError("Not connected")
        if self._notifying:
            return

        try:
            await self._client.start_notify(
                self._response_characteristic,
                self._notification_callback,
            )
        except Exception as e:
            raise BLEConnectionError(f"Failed to start notifications: {e}") from e

        self._notifying = True
        _LOGGER.debug("Notifications started")

    def _notification_callback(self, sender, data: bytearray) -> None:
        """Handle incoming BLE notifications.

        Args:
            sender: Characteristic that sent notification
            data: Notification data
        """
        self._notification_listeners.notify(bytes(data), True)

    def _on_disconnected(self, client: BleakClient) -> None:
        _LOGGER.debug("Disconnected from %s", self.mac_address)
        self._reset()
        if self._connecting:
            # Setup failed and is being torn down; connect() raises the cause
            return
        self._disconnect_listeners.notify()

    async def write_command(self, data: bytes) -> None:
        """Write command to device.

        Args:
            data: Command bytes to write

        Raises:
            BLEConnectionError: If not connected
            TransportWriteError: If the write fails
        """
        if not self._client or not self._client.is_connected:
            raise BLEConnectionError("Not connected")

        try:
            await self._client.write_gatt_char(
                self._command_characteristic,
                data,
                response=True,  # Wait for write confirmation
            )
        except Exception as e:
            raise TransportWriteError(f"Write failed: {e}") from e

    async def read_response(self) -> bytes:
        """Read the response characteristic directly.

        The data is also delivered to notification listeners, flagged as
        not being a notification.

        Raises:
            BLEConnectionError: If not connected or the read fails
        """
        if not self._client or not self._client.is_connected:
            raise BLEConnectionError("Not connected")

        try:
            data = bytes(await self._client.read_gatt_char(self._response_characteristic))
        except Exception as e:
            raise BLEConnectionError(f"Read failed: {e}") from e

        self._notification_listeners.notify(data, False)
        return data

    @property
    def is_connected(self) -> bool:
        """Check if currently connected to device."""
        return self._client is not None and self._client.is_connected

"""Main DreamScreen BLE device class."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from .callbacks import CallbackList
from .exceptions import BLEConnectionError, DreamScreenError
from .models.enums import DisplayMode
from .models.responses import CommandResponse, ResponseFrame
from .protocol import (
    DEFAULT_LOCAL_NAME,
    Framer,
    build_brightness_command,
    build_mode_command,
    build_read_command,
    build_write_command,
    decode_frame,
    get_property_key,
)
from .transport import BLEConnection, CommandQueue, ResponseWaiters

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice

_LOGGER = logging.getLogger(__name__)


class DreamScreenDevice:
    """DreamScreen BLE device.

    Every command goes through one queue and runs strictly after the
    previous command has finished, so replies can be matched to requests.
    Command methods enqueue immediately and return an awaitable; invalid
    arguments raise before anything is queued.

    Usage:
        async with DreamScreenDevice("AA:BB:CC:DD:EE:FF") as device:
            await device.set_mode("video")
            await device.set_brightness(80)

        # Scan for the first DreamScreen advertising its service
        async with DreamScreenDevice() as device:
            response = await device.read_property("mode")

    Events:
        on_disconnect(callback)  callback()
        on_read(callback)        callback(frame) for every frame, solicited or not
        on_send(callback)        callback(command) for every command queued
    """

    def __init__(
            self,
            mac_address: str | None = None,
            ble_device: BLEDevice | None = None,
            timeout: float = 10.0,
            response_timeout: float | None = None,
            discover_by_name: bool = False,
            local_name: str = DEFAULT_LOCAL_NAME,
    ):
        """Initialize DreamScreen device.

        Args:
            mac_address: Device MAC address (scan if omitted)
            ble_device: Optional BLEDevice from HA bluetooth integration
            timeout: BLE connection timeout in seconds (default: 10)
            response_timeout: Seconds to wait for a reply, None waits forever (default)
            discover_by_name: Scan by advertised name rather than service UUID
            local_name: Advertised name used with discover_by_name
        """
        self.mac_address = mac_address
        self._connection = BLEConnection(
            mac_address,
            ble_device,
            timeout,
            discover_by_name=discover_by_name,
            local_name=local_name,
        )

        self._framer = Framer()
        self._waiters = ResponseWaiters()
        self._queue = CommandQueue(
            self._write,
            self._waiters,
            response_timeout=response_timeout,
        )

        self._read_callbacks: CallbackList[Callable[[ResponseFrame], None]] = CallbackList("read")
        self._send_callbacks: CallbackList[Callable[[bytes], None]] = CallbackList("send")
        self._disconnect_callbacks: CallbackList[Callable[[], None]] = CallbackList("disconnect")

        # Waiters see each frame before external listeners do
        self._framer.add_listener(self._waiters.on_frame)
        self._framer.add_listener(self._read_callbacks.notify)

        self._unsubscribe: list[Callable[[], None]] = []
        self._disconnected = False

    async def __aenter__(self) -> DreamScreenDevice:
        """Connect and start listening for responses."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Disconnect from device."""
        await self.disconnect()

    @property
    def is_ready(self) -> bool:
        """Whether the response subscription is active and commands can run."""
        return self._queue.ready

    # Events

    def on_read(self, callback: Callable[[ResponseFrame], None]) -> Callable[[], None]:
        """Register a callback for every response frame; returns an unsubscribe function."""
        return self._read_callbacks.add(callback)

    def on_send(self, callback: Callable[[bytes], None]) -> Callable[[], None]:
        """Register a callback for every command queued; returns an unsubscribe function."""
        return self._send_callbacks.add(callback)

    def on_disconnect(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback for disconnection; returns an unsubscribe function."""
        return self._disconnect_callbacks.add(callback)

    # Connection lifecycle

    async def connect(self) -> None:
        """Connect, subscribe to responses and start running queued commands.

        Raises:
            BLEConnectionError: If connecting or subscribing fails
            BLETimeoutError: If connection times out
        """
        if self._queue.closed:
            raise BLEConnectionError(
                "Device was disconnected; create a new DreamScreenDevice to reconnect"
            )

        if not self._unsubscribe:
            self._unsubscribe = [
                self._connection.add_notification_listener(self._framer.feed),
                self._connection.add_disconnect_listener(self._on_disconnected),
            ]

        try:
            await self._connection.connect()
            await self._connection.start_notifications()
        except DreamScreenError as e:
            # A failed setup never counts as a disconnect of a live device
            self._disconnected = True
            self._queue.close(e)
            raise

        self.mac_address = self._connection.mac_address
        _LOGGER.debug("DreamScreen %s ready", self.mac_address)
        self._queue.set_ready()

    async def disconnect(self) -> None:
        """Disconnect from device."""
        await self._connection.disconnect()
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
        self._on_disconnected()

    def _on_disconnected(self) -> None:
        if self._disconnected:
            return
        self._disconnected = True
        _LOGGER.debug("Disconnected")
        self._queue.close(BLEConnectionError("Disconnected"))
        self._disconnect_callbacks.notify()

    async def _write(self, command: bytes) -> None:
        await self._connection.write_command(command)

    # High level interface

    def set_mode(self, mode: DisplayMode | str) -> asyncio.Future[None]:
        """Change the display mode.

        Modes: idle, video, music, ambient_static, identify, ambient_show

        Raises:
            InvalidArgumentError: If the mode is unknown (nothing is queued)
        """
        return self.send_write(build_mode_command(mode))

    def set_brightness(self, value: int | float) -> asyncio.Future[None]:
        """Set the brightness (0 - 100); out-of-range values are clamped.

        Raises:
            InvalidArgumentError: If value is not a number (nothing is queued)
        """
        return self.send_write(build_brightness_command(value))

    # Raw input methods

    def write_property(self, name: str, value: str | int) -> asyncio.Future[None]:
        """Send a raw property write without type checking or value conversion.

        Example:
            write_property("mode", "1")  # same as set_mode("video"), sends b"#Bw1"
        """
        return self.send_write(build_write_command(get_property_key(name), value))

    def read_property(self, name: str) -> asyncio.Future[CommandResponse]:
        """Read a property, e.g. ``read_property("mode")`` sends ``b"#Bg"``."""
        return self.send_read(build_read_command(get_property_key(name)))

    def send_write(self, command: bytes) -> asyncio.Future[None]:
        """Queue a command that expects no reply."""
        return self.send(command)

    def send_read(self, command: bytes) -> asyncio.Future[CommandResponse]:
        """Queue a command and resolve with the next frame tagged with ``command``."""
        frame_future = self.send(command, expects_response=True)
        response_future: asyncio.Future[CommandResponse] = asyncio.get_running_loop().create_future()

        def _tag(done: asyncio.Future[ResponseFrame | None]) -> None:
            if response_future.done():
                return
            if done.cancelled():
                response_future.cancel()
                return
            error = done.exception()
            if error is not None:
                response_future.set_exception(error)
            else:
                response_future.set_result(CommandResponse.from_frame(command, done.result()))

        def _propagate_cancel(done: asyncio.Future[CommandResponse]) -> None:
            if done.cancelled():
                frame_future.cancel()

        frame_future.add_done_callback(_tag)
        response_future.add_done_callback(_propagate_cancel)
        return response_future

    def send(self, command: bytes, expects_response: bool = False) -> asyncio.Future:
        """Queue a command for the device.

        Args:
            command: Raw command bytes
            expects_response: Wait for the next frame after writing

        Returns:
            Future settled once the command has run
        """
        self._send_callbacks.notify(command)
        return self._queue.enqueue(command, expects_response)

    async def poll(self) -> ResponseFrame:
        """Read the response characteristic directly, bypassing the command queue.

        The frame is also delivered to waiters and read listeners.
        """
        data = await self._connection.read_response()
        return decode_frame(data, is_notification=False)

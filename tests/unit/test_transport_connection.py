"""Test BLE connection setup and GATT I/O with a fake bleak client."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

import dreamscreen.transport.connection as connection_module
from dreamscreen import DreamScreenDevice
from dreamscreen.exceptions import (
    BLEConnectionError,
    BLETimeoutError,
    CharacteristicNotFoundError,
    ServiceDiscoveryError,
    TransportWriteError,
)
from dreamscreen.protocol import COMMAND_CHAR_UUID, RESPONSE_CHAR_UUID, SERVICE_UUID
from dreamscreen.transport.connection import BLEConnection

ADDRESS = "AA:BB:CC:DD:EE:FF"


class _FakeService:
    def __init__(self, uuids: list[str]):
        self.characteristics = {uuid: SimpleNamespace(uuid=uuid) for uuid in uuids}

    def get_characteristic(self, uuid: str):
        return self.characteristics.get(uuid)


class _FakeServices:
    def __init__(self, services: dict[str, _FakeService]):
        self._services = services

    def get_service(self, uuid: str):
        return self._services.get(uuid)


class _FakeClient:
    def __init__(self, services: _FakeServices):
        self.services = services
        self.is_connected = True
        self.disconnected_callback = None
        self.disconnect_calls = 0
        self.notify_char = None
        self.notify_callback = None
        self.writes: list[tuple] = []
        self.write_error: Exception | None = None
        self.read_data = b""

    async def start_notify(self, char, callback) -> None:
        self.notify_char = char
        self.notify_callback = callback

    async def write_gatt_char(self, char, data, response) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append((char.uuid, data, response))

    async def read_gatt_char(self, char) -> bytearray:
        return bytearray(self.read_data)

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.is_connected = False
        if self.disconnected_callback is not None:
            self.disconnected_callback(self)


def _dreamscreen_services(*char_uuids: str) -> _FakeServices:
    if not char_uuids:
        char_uuids = (COMMAND_CHAR_UUID, RESPONSE_CHAR_UUID)
    return _FakeServices({SERVICE_UUID: _FakeService(list(char_uuids))})


@pytest.fixture
def ble(monkeypatch):
    """Patch bleak entry points; returns a namespace controlling the fakes."""
    state = SimpleNamespace(
        client=_FakeClient(_dreamscreen_services()),
        device=SimpleNamespace(address=ADDRESS, name="DreamScreen"),
        connect_error=None,
        connect_kwargs=None,
        scanned_addresses=[],
    )

    async def fake_establish_connection(**kwargs):
        state.connect_kwargs = kwargs
        if state.connect_error is not None:
            raise state.connect_error
        state.client.disconnected_callback = kwargs.get("disconnected_callback")
        return state.client

    async def fake_find_device_by_address(address, timeout=10.0):
        state.scanned_addresses.append(address)
        return state.device

    monkeypatch.setattr(connection_module, "establish_connection", fake_establish_connection)
    monkeypatch.setattr(
        connection_module.BleakScanner,
        "find_device_by_address",
        fake_find_device_by_address,
    )
    return state


@pytest.mark.asyncio
async def test_connect_resolves_characteristics(ble) -> None:
    connection = BLEConnection(ADDRESS, timeout=5.0, max_attempts=2)

    await connection.connect()

    assert connection.is_connected
    assert ble.scanned_addresses == [ADDRESS]
    assert ble.connect_kwargs["device"] is ble.device
    assert ble.connect_kwargs["max_attempts"] == 2
    assert ble.connect_kwargs["timeout"] == 5.0
    assert ble.connect_kwargs["use_services_cache"] is True


@pytest.mark.asyncio
async def test_connect_with_ble_device_skips_scan(ble) -> None:
    connection = BLEConnection(ble_device=ble.device)

    await connection.connect()

    assert ble.scanned_addresses == []
    assert connection.mac_address == ADDRESS


@pytest.mark.asyncio
async def test_connect_without_address_scans_for_service(ble, monkeypatch) -> None:
    calls = []

    async def fake_find_device(discover_by_name, local_name, timeout):
        calls.append((discover_by_name, local_name, timeout))
        return ble.device

    monkeypatch.setattr(connection_module, "find_device", fake_find_device)
    connection = BLEConnection(discover_by_name=True, local_name="Living Room", timeout=3.0)

    await connection.connect()

    assert calls == [(True, "Living Room", 3.0)]
    assert connection.mac_address == ADDRESS


@pytest.mark.asyncio
async def test_device_not_found(ble) -> None:
    ble.device = None
    connection = BLEConnection(ADDRESS)

    with pytest.raises(BLEConnectionError, match="not found during scan"):
        await connection.connect()
    assert not connection.is_connected


@pytest.mark.asyncio
async def test_missing_service_is_terminal(ble) -> None:
    ble.client = _FakeClient(_FakeServices({}))
    connection = BLEConnection(ADDRESS)

    with pytest.raises(ServiceDiscoveryError, match="not found"):
        await connection.connect()

    assert ble.client.disconnect_calls == 1
    assert not connection.is_connected


@pytest.mark.asyncio
async def test_missing_response_characteristic_is_terminal(ble) -> None:
    ble.client = _FakeClient(_dreamscreen_services(COMMAND_CHAR_UUID))
    connection = BLEConnection(ADDRESS)

    with pytest.raises(CharacteristicNotFoundError, match="Response characteristic"):
        await connection.connect()

    assert ble.client.disconnect_calls == 1
    assert not connection.is_connected


@pytest.mark.asyncio
async def test_missing_command_characteristic(ble) -> None:
    ble.client = _FakeClient(_dreamscreen_services(RESPONSE_CHAR_UUID))

    with pytest.raises(CharacteristicNotFoundError, match="Command characteristic"):
        await BLEConnection(ADDRESS).connect()


@pytest.mark.asyncio
async def test_connect_timeout(ble) -> None:
    ble.connect_error = asyncio.TimeoutError()
    connection = BLEConnection(ADDRESS, timeout=2.5)

    with pytest.raises(BLETimeoutError, match="2.5s"):
        await connection.connect()


@pytest.mark.asyncio
async def test_connect_error_is_wrapped(ble) -> None:
    ble.connect_error = OSError("adapter off")

    with pytest.raises(BLEConnectionError, match="Failed to connect: adapter off") as exc_info:
        await BLEConnection(ADDRESS).connect()
    assert isinstance(exc_info.value.__cause__, OSError)


@pytest.mark.asyncio
async def test_write_command_uses_command_characteristic(ble) -> None:
    connection = BLEConnection(ADDRESS)
    await connection.connect()

    await connection.write_command(b"#Bw1")

    assert ble.client.writes == [(COMMAND_CHAR_UUID, b"#Bw1", True)]


@pytest.mark.asyncio
async def test_write_failure(ble) -> None:
    connection = BLEConnection(ADDRESS)
    await connection.connect()
    ble.client.write_error = OSError("gatt error")

    with pytest.raises(TransportWriteError, match="Write failed: gatt error"):
        await connection.write_command(b"#Bw1")


@pytest.mark.asyncio
async def test_write_requires_connection() -> None:
    with pytest.raises(BLEConnectionError, match="Not connected"):
        await BLEConnection(ADDRESS).write_command(b"#Bw1")


@pytest.mark.asyncio
async def test_notifications_reach_listeners(ble) -> None:
    connection = BLEConnection(ADDRESS)
    received = []
    connection.add_notification_listener(lambda data, flag: received.append((data, flag)))
    await connection.connect()

    await connection.start_notifications()
    ble.client.notify_callback(ble.client.notify_char, bytearray(b"#Bg1\r"))

    assert ble.client.notify_char.uuid == RESPONSE_CHAR_UUID
    assert received == [(b"#Bg1\r", True)]


@pytest.mark.asyncio
async def test_read_response_is_not_a_notification(ble) -> None:
    connection = BLEConnection(ADDRESS)
    received = []
    connection.add_notification_listener(lambda data, flag: received.append((data, flag)))
    await connection.connect()
    ble.client.read_data = b"#Cg050\r"

    data = await connection.read_response()

    assert data == b"#Cg050\r"
    assert received == [(b"#Cg050\r", False)]


@pytest.mark.asyncio
async def test_start_notifications_requires_connection() -> None:
    with pytest.raises(BLEConnectionError, match="Not connected"):
        await BLEConnection(ADDRESS).start_notifications()


@pytest.mark.asyncio
async def test_disconnect_notifies_listeners(ble) -> None:
    disconnects = []
    async with BLEConnection(ADDRESS) as connection:
        connection.add_disconnect_listener(lambda: disconnects.append(True))
        assert connection.is_connected

    assert disconnects == [True]
    assert not connection.is_connected
    assert ble.client.disconnect_calls == 1


@pytest.mark.asyncio
async def test_unexpected_disconnect(ble) -> None:
    connection = BLEConnection(ADDRESS)
    disconnects = []
    connection.add_disconnect_listener(lambda: disconnects.append(True))
    await connection.connect()

    ble.client.is_connected = False
    ble.client.disconnected_callback(ble.client)

    assert disconnects == [True]
    assert not connection.is_connected
    with pytest.raises(BLEConnectionError, match="Not connected"):
        await connection.write_command(b"#Bw1")


@pytest.mark.asyncio
async def test_failed_setup_does_not_notify_disconnect(ble) -> None:
    ble.client = _FakeClient(_FakeServices({}))
    connection = BLEConnection(ADDRESS)
    disconnects = []
    connection.add_disconnect_listener(lambda: disconnects.append(True))

    with pytest.raises(ServiceDiscoveryError):
        await connection.connect()

    assert ble.client.disconnect_calls == 1
    assert disconnects == []


@pytest.mark.asyncio
async def test_device_setup_failure_reports_cause(ble) -> None:
    """Queued commands fail with the setup error, and no disconnect event fires."""
    ble.client = _FakeClient(_dreamscreen_services(COMMAND_CHAR_UUID))
    device = DreamScreenDevice(ADDRESS)
    disconnects = []
    device.on_disconnect(lambda: disconnects.append(True))
    queued = device.set_mode("video")

    with pytest.raises(CharacteristicNotFoundError):
        await device.connect()
    with pytest.raises(CharacteristicNotFoundError, match="Response characteristic"):
        await queued

    assert ble.client.disconnect_calls == 1
    assert ble.client.writes == []
    assert disconnects == []
    assert not device.is_ready

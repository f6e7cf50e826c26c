"""Fake bleak transport shared by the session tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from types import SimpleNamespace

import pytest

from aiofelicita.const import CHARACTERISTIC_UUID_DATA, SERVICE_UUID


def make_frame(
    weight: bytes = b"0012345",
    unit: bytes = b"g ",
    buzzer: int = 0x22,
    battery: int = 150,
) -> bytearray:
    """Build an 18 byte notification frame."""
    frame = bytearray(18)
    frame[0:2] = b"\x01\x02"
    frame[2:9] = weight
    frame[9:11] = unit
    frame[14] = buzzer
    frame[15] = battery
    return frame


def make_device(name: str | None, address: str) -> SimpleNamespace:
    return SimpleNamespace(name=name, address=address)


class FakeService:
    def __init__(self, characteristic: SimpleNamespace | None) -> None:
        self._characteristic = characteristic

    def get_characteristic(self, uuid: str) -> SimpleNamespace | None:
        if self._characteristic is not None and uuid == self._characteristic.uuid:
            return self._characteristic
        return None


class FakeServices:
    def __init__(self, service: FakeService | None) -> None:
        self._service = service

    def get_service(self, uuid: str) -> FakeService | None:
        return self._service if uuid == SERVICE_UUID else None


class FakeBleakClient:
    """Stands in for BleakClient, driven by the FakeTransport."""

    def __init__(
        self,
        transport: FakeTransport,
        device: SimpleNamespace,
        disconnected_callback: Callable[[FakeBleakClient], None],
    ) -> None:
        self.transport = transport
        self.device = device
        self._disconnected_callback = disconnected_callback
        self.characteristic = SimpleNamespace(uuid=CHARACTERISTIC_UUID_DATA, descriptors=[])
        if transport.missing_service:
            transport.missing_service -= 1
            self.services = FakeServices(None)
        else:
            self.services = FakeServices(FakeService(self.characteristic))
        self.mtu_size = 500
        self.is_connected = False
        self.connect_started = False
        self.disconnect_calls = 0
        self.notify_callback = None
        self.writes: list[bytes] = []

    async def connect(self) -> None:
        self.connect_started = True
        if self.transport.hang_on_connect:
            await asyncio.Event().wait()
        if self.transport.connect_errors:
            raise self.transport.connect_errors.pop(0)
        self.is_connected = True

    async def start_notify(self, characteristic, callback) -> None:
        self.notify_callback = callback

    async def write_gatt_char(self, characteristic, data, response=False) -> None:
        if self.transport.write_delay:
            await asyncio.sleep(self.transport.write_delay)
        self.writes.append(bytes(data))
        if self.transport.on_write is not None:
            self.transport.on_write(self, bytes(data))

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.is_connected = False

    def notify(self, data: bytes | bytearray) -> None:
        self.notify_callback(self.characteristic, bytearray(data))

    def drop_link(self) -> None:
        self.is_connected = False
        self._disconnected_callback(self)


class FakeBleakScanner:
    """Stands in for BleakScanner, reporting the transport's devices."""

    def __init__(self, transport: FakeTransport, detection_callback) -> None:
        self.transport = transport
        self._detection_callback = detection_callback

    async def __aenter__(self) -> FakeBleakScanner:
        self.transport.scans += 1
        if self.transport.scan_errors:
            raise self.transport.scan_errors.pop(0)
        loop = asyncio.get_running_loop()
        for device in self.transport.devices:
            loop.call_soon(
                self._detection_callback, device, SimpleNamespace(local_name=device.name)
            )
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None


class FakeTransport:
    """Simulated radio environment for a scale session."""

    def __init__(self) -> None:
        self.devices: list[SimpleNamespace] = []
        self.clients: list[FakeBleakClient] = []
        self.scans = 0
        self.scan_errors: list[Exception] = []
        self.connect_errors: list[Exception] = []
        self.missing_service = 0
        self.on_write: Callable[[FakeBleakClient, bytes], None] | None = None
        self.write_delay = 0.0
        self.hang_on_connect = False

    @property
    def client(self) -> FakeBleakClient:
        return self.clients[-1]

    def client_factory(self, device, disconnected_callback) -> FakeBleakClient:
        client = FakeBleakClient(self, device, disconnected_callback)
        self.clients.append(client)
        return client

    def scanner_factory(self, detection_callback) -> FakeBleakScanner:
        return FakeBleakScanner(self, detection_callback)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()

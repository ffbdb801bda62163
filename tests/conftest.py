"""Fixtures and fake BLE collaborators for evobot tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from types import SimpleNamespace

import pytest
import pytest_asyncio

from evobot.protocol import (
    DEVICE_INFORMATION_SERVICE_UUID,
    FIRMWARE_REVISION_UUID,
    NOTIFY_CHARACTERISTIC_UUID,
    ROBOT_SERVICE_UUID,
    WRITE_CHARACTERISTIC_UUID,
)
from evobot.session import RobotSession

ROBOT_CHARACTERISTICS = {
    DEVICE_INFORMATION_SERVICE_UUID: {FIRMWARE_REVISION_UUID},
    ROBOT_SERVICE_UUID: {NOTIFY_CHARACTERISTIC_UUID, WRITE_CHARACTERISTIC_UUID},
}


async def _settle(rounds: int = 10) -> None:
    """Let scheduled tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeTransport:
    """GattTransport whose writes stay outstanding until ack() is called."""

    def __init__(
            self,
            characteristics: dict[str, set[str]] | None = None,
            firmware: bytes | Exception = b"Ver2.0",
    ):
        if characteristics is None:
            characteristics = ROBOT_CHARACTERISTICS
        self.characteristics = {uuid: set(chars) for uuid, chars in characteristics.items()}
        self.firmware = firmware
        self.written: list[bytes] = []
        self.notify_callback = None
        self._acks: list[asyncio.Future] = []

    def has_service(self, service_uuid: str) -> bool:
        return service_uuid in self.characteristics

    def has_characteristic(self, service_uuid: str, char_uuid: str) -> bool:
        return char_uuid in self.characteristics.get(service_uuid, ())

    async def read_characteristic(self, char_uuid: str) -> bytes:
        assert char_uuid == FIRMWARE_REVISION_UUID
        if isinstance(self.firmware, Exception):
            raise self.firmware
        return self.firmware

    async def write_characteristic(self, char_uuid: str, data: bytes) -> None:
        assert char_uuid == WRITE_CHARACTERISTIC_UUID
        self.written.append(bytes(data))
        ack = asyncio.get_running_loop().create_future()
        self._acks.append(ack)
        await ack

    async def start_notify(self, char_uuid: str, callback) -> None:
        assert char_uuid == NOTIFY_CHARACTERISTIC_UUID
        self.notify_callback = callback

    @property
    def outstanding(self) -> int:
        return len(self._acks)

    def ack(self, error: Exception | None = None) -> None:
        """Complete the oldest outstanding write."""
        ack = self._acks.pop(0)
        if error is None:
            ack.set_result(None)
        else:
            ack.set_exception(error)

    def notify(self, value: bytes) -> None:
        self.notify_callback(NOTIFY_CHARACTERISTIC_UUID, value)


class FakeConnection(FakeTransport):
    """Stands in for BLEConnection inside the controller."""

    def __init__(
            self,
            ble_device,
            timeout: float,
            max_attempts: int,
            disconnected_callback,
            characteristics: dict[str, set[str]] | None = None,
            connect_error: Exception | None = None,
    ):
        super().__init__(characteristics)
        self.ble_device = ble_device
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.disconnected_callback = disconnected_callback
        self.connect_error = connect_error
        self.connected = False
        self.disconnected = False

    @property
    def address(self) -> str:
        return self.ble_device.address

    @property
    def name(self) -> str | None:
        return self.ble_device.name

    async def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False
        self.disconnected = True

    def lose_connection(self) -> None:
        self.connected = False
        self.disconnected_callback(self)


@dataclass
class ConnectionFactory:
    """Replaces the BLEConnection class used by the controller."""

    characteristics: dict[str, set[str]] | None = None
    connect_error: Exception | None = None
    created: list[FakeConnection] = field(default_factory=list)

    def __call__(self, ble_device, timeout, max_attempts, disconnected_callback) -> FakeConnection:
        connection = FakeConnection(
            ble_device,
            timeout,
            max_attempts,
            disconnected_callback,
            characteristics=self.characteristics,
            connect_error=self.connect_error,
        )
        self.created.append(connection)
        return connection


class FakeAdapter:
    def __init__(self, available: bool = True, powered: bool = True):
        self.available = available
        self.powered = powered
        self.power_on_requested = False
        self._callbacks = []

    async def is_available(self) -> bool:
        return self.available

    async def is_powered(self) -> bool:
        return self.powered

    async def power_on(self) -> None:
        self.power_on_requested = True

    def register_powered_callback(self, callback):
        self._callbacks.append(callback)
        return lambda: self._callbacks.remove(callback)

    def report_powered(self) -> None:
        self.powered = True
        for callback in list(self._callbacks):
            callback()


class FakeScanner:
    def __init__(self, start_error: Exception | None = None):
        self.start_error = start_error
        self.starts = 0
        self.stops = 0
        self._active = False
        self._callbacks = []

    @property
    def is_active(self) -> bool:
        return self._active

    def register_detection_callback(self, callback):
        self._callbacks.append(callback)
        return lambda: self._callbacks.remove(callback)

    async def start(self) -> None:
        self.starts += 1
        if self.start_error is not None:
            raise self.start_error
        self._active = True

    async def stop(self) -> None:
        if self._active:
            self.stops += 1
        self._active = False

    def discover(self, address: str, name: str | None, local_name: str | None = None) -> None:
        device = SimpleNamespace(address=address, name=name)
        advertisement = SimpleNamespace(local_name=local_name)
        for callback in list(self._callbacks):
            callback(device, advertisement)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def session() -> RobotSession:
    """Session whose periodic transmitter never fires on its own."""
    return RobotSession(transmit_interval=3600)


@pytest_asyncio.fixture
async def connected_session(session: RobotSession, transport: FakeTransport):
    """Attached session with the initial transmission already acknowledged."""
    await session.attach(transport)
    await _settle()
    transport.ack()
    await _settle()
    yield session
    await session.detach()


@pytest.fixture
def connection_factory(monkeypatch: pytest.MonkeyPatch) -> ConnectionFactory:
    factory = ConnectionFactory()
    monkeypatch.setattr("evobot.controller.BLEConnection", factory)
    return factory


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def scanner() -> FakeScanner:
    return FakeScanner()


@pytest.fixture
def transport_factory() -> type[FakeTransport]:
    """Build transports with other characteristics or firmware strings."""
    return FakeTransport

"""Test the bleak-backed scanner and adapter."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from bleak.exc import BleakError

from evobot.exceptions import BluetoothUnavailableError, DeviceDiscoveryError
from evobot.transport.scanner import BleakAdapter, BleakDeviceScanner


class _FakeBleakScanner:
    instances: list = []
    start_error: Exception | None = None
    stop_error: Exception | None = None

    def __init__(self, detection_callback=None, scanning_mode="active"):
        self.detection_callback = detection_callback
        self.scanning_mode = scanning_mode
        self.started = False
        self.stopped = False
        _FakeBleakScanner.instances.append(self)

    async def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    async def stop(self):
        if self.stop_error is not None:
            raise self.stop_error
        self.stopped = True


@pytest.fixture
def fake_scanner_class(monkeypatch):
    monkeypatch.setattr(_FakeBleakScanner, "instances", [])
    monkeypatch.setattr(_FakeBleakScanner, "start_error", None)
    monkeypatch.setattr(_FakeBleakScanner, "stop_error", None)
    monkeypatch.setattr("evobot.transport.scanner.BleakScanner", _FakeBleakScanner)
    return _FakeBleakScanner


class TestBleakDeviceScanner:
    """Test BleakDeviceScanner."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, fake_scanner_class):
        scanner = BleakDeviceScanner(scanning_mode="passive")

        await scanner.start()
        assert scanner.is_active
        [bleak_scanner] = fake_scanner_class.instances
        assert bleak_scanner.started
        assert bleak_scanner.scanning_mode == "passive"

        await scanner.stop()
        assert not scanner.is_active
        assert bleak_scanner.stopped

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_scanner(self, fake_scanner_class):
        scanner = BleakDeviceScanner()

        await scanner.start()
        await scanner.start()

        assert len(fake_scanner_class.instances) == 1

    @pytest.mark.asyncio
    async def test_start_failure(self, fake_scanner_class):
        fake_scanner_class.start_error = BleakError("Bluetooth device is turned off")
        scanner = BleakDeviceScanner()

        with pytest.raises(DeviceDiscoveryError, match="turned off"):
            await scanner.start()
        assert not scanner.is_active

    @pytest.mark.asyncio
    async def test_stop_failure_is_logged(self, fake_scanner_class, caplog):
        scanner = BleakDeviceScanner()
        await scanner.start()
        fake_scanner_class.stop_error = BleakError("already stopped")

        await scanner.stop()

        assert not scanner.is_active
        assert "already stopped" in caplog.text

    @pytest.mark.asyncio
    async def test_stop_when_idle(self, fake_scanner_class):
        await BleakDeviceScanner().stop()
        assert fake_scanner_class.instances == []

    @pytest.mark.asyncio
    async def test_detection_callbacks(self, fake_scanner_class):
        scanner = BleakDeviceScanner()
        seen = []
        unsubscribe = scanner.register_detection_callback(
            lambda device, adv: seen.append(device.address)
        )
        await scanner.start()
        [bleak_scanner] = fake_scanner_class.instances
        device = SimpleNamespace(address="AA:BB:CC:DD:EE:FF", name="Evolution-Robot")
        advertisement = SimpleNamespace(local_name="Evolution-Robot")

        bleak_scanner.detection_callback(device, advertisement)
        unsubscribe()
        bleak_scanner.detection_callback(device, advertisement)

        assert seen == ["AA:BB:CC:DD:EE:FF"]


class TestBleakAdapter:
    """Test BleakAdapter."""

    @pytest.mark.asyncio
    async def test_available_when_scanning_works(self, fake_scanner_class):
        adapter = BleakAdapter()

        assert await adapter.is_available() is True
        assert await adapter.is_powered() is True
        # Probed once
        assert len(fake_scanner_class.instances) == 1

    @pytest.mark.asyncio
    async def test_unavailable_when_scanning_fails(self, fake_scanner_class):
        fake_scanner_class.start_error = BleakError("No Bluetooth adapters found.")
        adapter = BleakAdapter()

        assert await adapter.is_available() is False
        assert await adapter.is_powered() is False

    @pytest.mark.asyncio
    async def test_power_on_unsupported(self):
        with pytest.raises(BluetoothUnavailableError, match="not supported"):
            await BleakAdapter().power_on()

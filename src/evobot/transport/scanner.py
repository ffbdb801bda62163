"""BLE device discovery and local adapter access backed by bleak."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from bleak import BleakScanner
from bleak.exc import BleakError

from ..callbacks import register_callback
from ..exceptions import BluetoothUnavailableError, DeviceDiscoveryError
from .base import DetectionCallback

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice
    from bleak.backends.scanner import AdvertisementData

_LOGGER = logging.getLogger(__name__)


class BleakDeviceScanner:
    """Low-energy discovery using a BleakScanner.

    Detection callbacks receive every advertisement; de-duplication is left
    to the consumer.
    """

    def __init__(self, scanning_mode: str = "active"):
        self.scanning_mode = scanning_mode
        self._scanner: BleakScanner | None = None
        self._callbacks: list[DetectionCallback] = []

    @property
    def is_active(self) -> bool:
        return self._scanner is not None

    def register_detection_callback(self, callback: DetectionCallback) -> Callable[[], None]:
        """Register a callback for discovered devices. Returns unsubscribe callable."""
        return register_callback(self._callbacks, callback)

    async def start(self) -> None:
        """Start scanning.

        Raises:
            DeviceDiscoveryError: If the scan cannot be started
        """
        if self._scanner is not None:
            return

        scanner = BleakScanner(
            detection_callback=self._on_detection,
            scanning_mode=self.scanning_mode,
        )
        try:
            await scanner.start()
        except BleakError as e:
            raise DeviceDiscoveryError(f"Could not start scanning: {e}") from e

        self._scanner = scanner
        _LOGGER.debug("Scanning started")

    async def stop(self) -> None:
        """Stop scanning. Safe to call when not scanning."""
        scanner, self._scanner = self._scanner, None
        if scanner is None:
            return
        try:
            await scanner.stop()
        except BleakError as e:
            _LOGGER.warning("Error while stopping scan: %s", e)
        _LOGGER.debug("Scanning stopped")

    def _on_detection(self, device: BLEDevice, advertisement_data: AdvertisementData) -> None:
        for callback in list(self._callbacks):
            callback(device, advertisement_data)


class BleakAdapter:
    """Local adapter as far as bleak can see it.

    bleak has no portable API for adapter power state, so an adapter that
    cannot scan is reported as unavailable and power_on() is unsupported.
    """

    def __init__(self) -> None:
        self._available: bool | None = None
        self._callbacks: list[Callable[[], None]] = []

    async def is_available(self) -> bool:
        if self._available is None:
            self._available = await self._probe()
        return self._available

    async def is_powered(self) -> bool:
        return await self.is_available()

    async def power_on(self) -> None:
        raise BluetoothUnavailableError(
            "Powering on the Bluetooth adapter is not supported by bleak"
        )

    def register_powered_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback for adapter power-on. Returns unsubscribe callable."""
        return register_callback(self._callbacks, callback)

    async def _probe(self) -> bool:
        scanner = BleakScanner()
        try:
            await scanner.start()
            await scanner.stop()
        except BleakError as e:
            _LOGGER.debug("Bluetooth adapter probe failed: %s", e)
            return False
        return True

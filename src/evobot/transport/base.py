"""Interfaces the robot session and controller expect from the BLE stack."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice
    from bleak.backends.scanner import AdvertisementData

NotifyCallback = Callable[[str, bytes], None]
DetectionCallback = Callable[["BLEDevice", "AdvertisementData"], None]


class GattTransport(Protocol):
    """A connected GATT client with services already discovered."""

    def has_service(self, service_uuid: str) -> bool:
        ...

    def has_characteristic(self, service_uuid: str, char_uuid: str) -> bool:
        ...

    async def read_characteristic(self, char_uuid: str) -> bytes:
        ...

    async def write_characteristic(self, char_uuid: str, data: bytes) -> None:
        """Write with response; returning means the robot acknowledged."""
        ...

    async def start_notify(self, char_uuid: str, callback: NotifyCallback) -> None:
        """Enable notifications (client configuration descriptor 01 00)."""
        ...


class BluetoothAdapter(Protocol):
    """The local Bluetooth controller."""

    async def is_available(self) -> bool:
        ...

    async def is_powered(self) -> bool:
        ...

    async def power_on(self) -> None:
        """Request power-on; completion is reported through the powered callback."""
        ...

    def register_powered_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        ...


class DeviceScanner(Protocol):
    """Low-energy device discovery."""

    @property
    def is_active(self) -> bool:
        ...

    def register_detection_callback(self, callback: DetectionCallback) -> Callable[[], None]:
        ...

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...

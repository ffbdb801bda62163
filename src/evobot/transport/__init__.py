"""BLE transport layer."""

from .base import BluetoothAdapter, DeviceScanner, GattTransport
from .connection import BLEConnection
from .scanner import BleakAdapter, BleakDeviceScanner

__all__ = [
    "BLEConnection",
    "BleakAdapter",
    "BleakDeviceScanner",
    "BluetoothAdapter",
    "DeviceScanner",
    "GattTransport",
]

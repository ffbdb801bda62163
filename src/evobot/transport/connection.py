"""BLE connection management."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from bleak import BleakClient
from bleak.exc import BleakError
from bleak_retry_connector import BleakClientWithServiceCache, establish_connection

from ..exceptions import BLEConnectionError, BLETimeoutError
from .base import NotifyCallback

if TYPE_CHECKING:
    from bleak.backends.characteristic import BleakGATTCharacteristic
    from bleak.backends.device import BLEDevice

_LOGGER = logging.getLogger(__name__)


class BLEConnection:
    """Manages the GATT connection to an Evolution robot.

    Features:
    - Automatic retry logic with bleak-retry-connector
    - Service caching for faster reconnections
    - Context manager for automatic cleanup
    - Reports unexpected link loss through a callback

    Implements the GattTransport interface consumed by RobotSession.
    """

    def __init__(
            self,
            ble_device: BLEDevice,
            timeout: float = 10.0,
            max_attempts: int = 4,
            use_services_cache: bool = True,
            disconnected_callback: Callable[[BLEConnection], None] | None = None,
    ):
        """Initialize BLE connection manager.

        Args:
            ble_device: Device found during discovery
            timeout: Connection timeout in seconds (default: 10)
            max_attempts: Maximum connection attempts for bleak-retry-connector (default: 4)
            use_services_cache: Enable GATT service caching for faster reconnections (default: True)
            disconnected_callback: Called when the link drops without disconnect() being called
        """
        self.ble_device = ble_device
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.use_services_cache = use_services_cache

        self._disconnected_callback = disconnected_callback
        self._client: BleakClient | None = None
        self._closing = False

    async def __aenter__(self) -> BLEConnection:
        """Connect to device (context manager entry)."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Disconnect from device (context manager exit)."""
        await self.disconnect()

    @property
    def address(self) -> str:
        return self.ble_device.address

    @property
    def name(self) -> str | None:
        return self.ble_device.name

    @property
    def is_connected(self) -> bool:
        """Check if currently connected to device."""
        return self._client is not None and self._client.is_connected

    async def connect(self) -> None:
        """Establish the connection and discover GATT services.

        Raises:
            BLEConnectionError: If connection fails
            BLETimeoutError: If connection times out
        """
        if self.is_connected:
            return

        self._closing = False
        try:
            _LOGGER.debug(
                "Connecting to %s with bleak-retry-connector (max_attempts=%d)",
                self.address,
                self.max_attempts,
            )
            self._client = await establish_connection(
                client_class=BleakClientWithServiceCache,
                device=self.ble_device,
                name=self.name or self.address,
                disconnected_callback=self._on_disconnected,
                max_attempts=self.max_attempts,
                use_services_cache=self.use_services_cache,
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise BLETimeoutError(
                f"Connection timeout after {self.timeout}s"
            ) from e
        except BleakError as e:
            raise BLEConnectionError(f"Failed to connect: {e}") from e

        _LOGGER.debug("Connected to %s", self.address)

    async def disconnect(self) -> None:
        """Disconnect from device."""
        self._closing = True
        if self._client and self._client.is_connected:
            try:
                _LOGGER.debug("Disconnecting from %s", self.address)
                await self._client.disconnect()
            except BleakError as e:
                _LOGGER.warning("Error during disconnect: %s", e)
        self._client = None

    def _on_disconnected(self, client: BleakClient) -> None:
        if self._closing:
            return
        _LOGGER.warning("Lost connection to %s", self.address)
        if self._disconnected_callback:
            self._disconnected_callback(self)

    def _require_client(self) -> BleakClient:
        if not self.is_connected:
            raise BLEConnectionError("Not connected")
        return self._client

    def has_service(self, service_uuid: str) -> bool:
        """Check whether the discovered services include service_uuid."""
        if not self.is_connected:
            return False
        return self._client.services.get_service(service_uuid) is not None

    def has_characteristic(self, service_uuid: str, char_uuid: str) -> bool:
        """Check whether service_uuid exposes char_uuid."""
        if not self.is_connected:
            return False
        service = self._client.services.get_service(service_uuid)
        return service is not None and service.get_characteristic(char_uuid) is not None

    async def read_characteristic(self, char_uuid: str) -> bytes:
        """Read a characteristic value.

        Raises:
            BLEConnectionError: If not connected or the read fails
        """
        client = self._require_client()
        try:
            return bytes(await client.read_gatt_char(char_uuid))
        except BleakError as e:
            raise BLEConnectionError(f"Read of {char_uuid} failed: {e}") from e

    async def write_characteristic(self, char_uuid: str, data: bytes) -> None:
        """Write to a characteristic and wait for the acknowledgment.

        Raises:
            BLEConnectionError: If not connected or write fails
        """
        client = self._require_client()
        try:
            await client.write_gatt_char(
                char_uuid,
                data,
                response=True,  # Wait for write confirmation
            )
        except BleakError as e:
            raise BLEConnectionError(f"Write failed: {e}") from e

    async def start_notify(self, char_uuid: str, callback: NotifyCallback) -> None:
        """Subscribe to value changes of a characteristic.

        Args:
            char_uuid: Characteristic to subscribe to
            callback: Called with (char_uuid, value) for every notification

        Raises:
            BLEConnectionError: If not connected or subscribing fails
        """
        client = self._require_client()

        def _forward(sender: BleakGATTCharacteristic, data: bytearray) -> None:
            callback(char_uuid, bytes(data))

        try:
            await client.start_notify(char_uuid, _forward)
        except BleakError as e:
            raise BLEConnectionError(
                f"Could not enable notifications on {char_uuid}: {e}"
            ) from e

        _LOGGER.debug("Notifications started on %s", char_uuid)

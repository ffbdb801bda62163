"""Discovery and connection lifecycle of an Evolution robot."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from .callbacks import register_callback
from .exceptions import (
    BLEConnectionError,
    BluetoothUnavailableError,
    DeviceDiscoveryError,
    RequiredServicesMissingError,
)
from .models.enums import ControllerError, ControllerState, SessionState
from .protocol import ROBOT_NAME
from .session import RobotSession
from .transport.base import BluetoothAdapter, DeviceScanner
from .transport.connection import BLEConnection
from .transport.scanner import BleakAdapter, BleakDeviceScanner

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice
    from bleak.backends.scanner import AdvertisementData

_LOGGER = logging.getLogger(__name__)

# Seconds of scanning before discovery gives up
DISCOVERY_TIMEOUT = 40.0

StateCallback = Callable[[ControllerState, ControllerState], None]
ErrorCallback = Callable[[ControllerError, str], None]


class Controller:
    """Finds an Evolution robot, connects to it and hands it to a RobotSession.

    The controller folds its own progress (discovery, connection), the state
    of the robot session and any transport error into one ControllerState.
    Errors are terminal: once raised the state stays ERROR.

    Usage:
        controller = Controller()
        controller.register_state_callback(on_state_changed)
        await controller.start()
        ...
        controller.robot_session.start_action("F")
        ...
        await controller.stop()
    """

    def __init__(
            self,
            adapter: BluetoothAdapter | None = None,
            scanner: DeviceScanner | None = None,
            session: RobotSession | None = None,
            robot_name: str = ROBOT_NAME,
            timeout: float = 10.0,
            max_attempts: int = 4,
            discovery_timeout: float | None = DISCOVERY_TIMEOUT,
    ):
        """Initialize controller. Nothing is started before start().

        Args:
            adapter: Local Bluetooth adapter (default: BleakAdapter)
            scanner: Device scanner (default: BleakDeviceScanner)
            session: Robot session to attach (default: new RobotSession)
            robot_name: Advertised name of the robot (default: "Evolution-Robot")
            timeout: Connection timeout in seconds (default: 10)
            max_attempts: Maximum connection attempts (default: 4)
            discovery_timeout: Seconds to scan before giving up, None to scan
                until the robot is found (default: 40)
        """
        self.robot_name = robot_name
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.discovery_timeout = discovery_timeout

        self._adapter = adapter or BleakAdapter()
        self._scanner = scanner or BleakDeviceScanner()
        self._session = session or RobotSession()

        self._error = ControllerError.NO_ERROR
        self._error_string = ""
        self._old_state = ControllerState.UNINITIALIZED

        self._known_devices: set[str] = set()
        self._connection: BLEConnection | None = None
        self._discovery_timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribers: list[Callable[[], None]] = []

        self._state_callbacks: list[StateCallback] = []
        self._error_callbacks: list[ErrorCallback] = []

    @property
    def error(self) -> ControllerError:
        return self._error

    @property
    def error_string(self) -> str:
        return self._error_string

    @property
    def robot_session(self) -> RobotSession:
        return self._session

    @property
    def state(self) -> ControllerState:
        """Unified state; an error outranks everything else."""
        if self._error != ControllerError.NO_ERROR:
            return ControllerState.ERROR

        session_state = self._session.state
        if session_state == SessionState.CONNECTED:
            return ControllerState.CONNECTED
        if session_state == SessionState.CONNECTING:
            return ControllerState.CONNECTING
        if self._connection is not None:
            return ControllerState.SERVICE_DISCOVERY
        if self._scanner.is_active:
            return ControllerState.DEVICE_DISCOVERY

        return ControllerState.UNINITIALIZED

    def register_state_callback(self, callback: StateCallback) -> Callable[[], None]:
        """Register a callback for state changes (new_state, old_state). Returns unsubscribe callable."""
        return register_callback(self._state_callbacks, callback)

    def register_error_callback(self, callback: ErrorCallback) -> Callable[[], None]:
        """Register a callback for errors (error, error_string). Returns unsubscribe callable."""
        return register_callback(self._error_callbacks, callback)

    async def start(self) -> None:
        """Check the Bluetooth adapter and start looking for the robot.

        A missing adapter ends in the ERROR state. A powered-off adapter is
        asked to power on; discovery starts once it reports being powered.
        """
        self._unsubscribers = [
            self._scanner.register_detection_callback(self._on_device_discovered),
            self._adapter.register_powered_callback(self._on_adapter_powered),
            self._session.register_state_callback(self._on_session_state_changed),
        ]

        if not await self._adapter.is_available():
            self._raise_error(
                ControllerError.BLUETOOTH_MISSING, "No Bluetooth controller available"
            )
            return

        if await self._adapter.is_powered():
            await self._start_discovery()
            return

        _LOGGER.info("Activating Bluetooth controller")
        try:
            await self._adapter.power_on()
        except BluetoothUnavailableError as err:
            self._raise_error(ControllerError.BLUETOOTH_MISSING, str(err))

    async def stop(self) -> None:
        """Stop discovery and release the robot without raising an error."""
        tasks = [task for task in self._tasks if task is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        with self._state_guard():
            await self._stop_discovery()
            await self._reset_connection()

        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    @contextmanager
    def _state_guard(self) -> Iterator[None]:
        try:
            yield
        finally:
            self._check_state()

    def _check_state(self) -> None:
        new_state = self.state
        if new_state == self._old_state:
            return

        old_state, self._old_state = self._old_state, new_state
        _LOGGER.info("state changed: %s => %s", old_state.name, new_state.name)
        for callback in list(self._state_callbacks):
            callback(new_state, old_state)

    def _raise_error(self, error: ControllerError, error_string: str) -> None:
        with self._state_guard():
            self._error = error
            self._error_string = error_string
            _LOGGER.error("%s", error_string)
            for callback in list(self._error_callbacks):
                callback(error, error_string)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # Adapter

    def _on_adapter_powered(self) -> None:
        _LOGGER.info("Bluetooth controller is powered")
        if self._error != ControllerError.NO_ERROR or self._connection is not None:
            return
        self._spawn(self._start_discovery())

    # Discovery

    async def _start_discovery(self) -> None:
        # Forget devices seen by earlier scans
        self._known_devices.clear()

        with self._state_guard():
            try:
                await self._scanner.start()
            except DeviceDiscoveryError as err:
                self._raise_error(
                    ControllerError.DEVICE_DISCOVERY, f"Device discovery failed: {err}"
                )
                return

            if self.discovery_timeout is not None:
                self._discovery_timer = asyncio.get_running_loop().call_later(
                    self.discovery_timeout, self._on_discovery_timeout
                )

    async def _stop_discovery(self) -> None:
        if self._discovery_timer is not None:
            self._discovery_timer.cancel()
            self._discovery_timer = None

        with self._state_guard():
            await self._scanner.stop()

    def _on_discovery_timeout(self) -> None:
        self._discovery_timer = None
        self._spawn(self._finish_discovery())

    async def _finish_discovery(self) -> None:
        await self._stop_discovery()
        _LOGGER.info("Device discovery has finished")

    def _on_device_discovered(self, device: BLEDevice, advertisement_data: AdvertisementData) -> None:
        name = advertisement_data.local_name or device.name
        # Devices are recorded once their name is known; the scan response may come later
        if not name or device.address in self._known_devices:
            return

        self._known_devices.add(device.address)
        _LOGGER.debug("Bluetooth device `%s' (%s) discovered", name, device.address)

        if name != self.robot_name or self._connection is not None:
            return
        if self._error != ControllerError.NO_ERROR:
            return

        with self._state_guard():
            _LOGGER.info("Connecting to `%s' (%s)", name, device.address)
            self._connection = BLEConnection(
                device,
                timeout=self.timeout,
                max_attempts=self.max_attempts,
                disconnected_callback=self._on_connection_lost,
            )
            self._spawn(self._connect(self._connection))

    # Connection

    async def _connect(self, connection: BLEConnection) -> None:
        await self._stop_discovery()

        try:
            await connection.connect()
        except BLEConnectionError as err:
            if connection is self._connection:
                self._raise_error(
                    ControllerError.DEVICE_ERROR, f"Device communication failed ({err})"
                )
                await self._reset_connection()
            return

        if connection is not self._connection:
            await connection.disconnect()
            return

        _LOGGER.info("Connected to `%s' (%s)", connection.name, connection.address)
        await self._on_service_discovery_finished(connection)

    async def _on_service_discovery_finished(self, connection: BLEConnection) -> None:
        with self._state_guard():
            _LOGGER.info("Service discovery has finished")
            try:
                await self._session.attach(connection)
            except RequiredServicesMissingError:
                _LOGGER.warning(
                    "Could not find Evolution Robot service at `%s' (%s)",
                    connection.name,
                    connection.address,
                )
                await self._reset_connection()

    def _on_connection_lost(self, connection: BLEConnection) -> None:
        if connection is not self._connection:
            return
        self._raise_error(
            ControllerError.DEVICE_ERROR, "Device communication failed (connection lost)"
        )
        self._spawn(self._reset_connection())

    async def _reset_connection(self) -> None:
        connection, self._connection = self._connection, None

        with self._state_guard():
            await self._session.detach()
            if connection is not None:
                await connection.disconnect()

    def _on_session_state_changed(self, new_state: SessionState, old_state: SessionState) -> None:
        self._check_state()

"""Robot session: control message, transmission and sound notifications."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from .callbacks import register_callback
from .exceptions import (
    ActionError,
    ActionNotActiveError,
    BLEConnectionError,
    RequiredServicesMissingError,
    UnknownFirmwareRevisionError,
)
from .models.enums import FirmwareRevision, SessionState, SoundEventType
from .models.message import (
    AUXILIARY_OFFSET,
    SOUND_OFFSET,
    ControlMessage,
    MessageFragment,
)
from .protocol import (
    DEVICE_INFORMATION_SERVICE_UUID,
    FIRMWARE_REVISION_UUID,
    NOTIFY_CHARACTERISTIC_UUID,
    ROBOT_SERVICE_UUID,
    TRANSMIT_INTERVAL,
    WRITE_CHARACTERISTIC_UUID,
    Action,
    encode_action,
    parse_firmware_revision,
    parse_sound_notification,
)
from .transport.base import GattTransport

_LOGGER = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, SessionState], None]
MessageCallback = Callable[[bytes], None]
SoundCallback = Callable[[int], None]


class RobotSession:
    """Keeps an Evolution robot in sync with a local control message.

    The session owns the 6-byte control message. Actions started or stopped
    by the caller change single channel bytes of it; every change is written
    to the robot. The write characteristic allows only one outstanding write,
    so at most one write is in flight at any time: changes made while a write
    is pending are picked up by the periodic transmitter, which resends the
    current message whenever no write is pending.

    Usage:
        session = RobotSession()
        session.register_state_callback(on_state_changed)
        await session.attach(connection)
        session.start_action("F", 2)   # forward, speed 2
        session.stop_action("F", 2)
    """

    def __init__(self, transmit_interval: float = TRANSMIT_INTERVAL):
        """Initialize robot session.

        Args:
            transmit_interval: Seconds between retransmissions (default: 0.1)
        """
        self.transmit_interval = transmit_interval

        self._transport: GattTransport | None = None
        self._device_information: str | None = None
        self._robot_control: str | None = None
        self._write_characteristic: str | None = None
        self._old_state = SessionState.DISCONNECTED

        self._firmware_revision = FirmwareRevision.UNKNOWN
        self._current_sound = 0
        self._audio_loop = False

        self._message = ControlMessage()
        self._pending_writes = 0
        self._transmitter: asyncio.Task | None = None
        self._write_tasks: set[asyncio.Task] = set()

        self._state_callbacks: list[StateCallback] = []
        self._message_callbacks: list[MessageCallback] = []
        self._sound_callbacks: list[SoundCallback] = []

    @property
    def state(self) -> SessionState:
        """Session state derived from the resolved GATT handles."""
        if self._write_characteristic is not None:
            return SessionState.CONNECTED
        if self._device_information is not None and self._robot_control is not None:
            return SessionState.CONNECTING
        return SessionState.DISCONNECTED

    @property
    def current_message(self) -> bytes:
        return bytes(self._message)

    @property
    def current_sound(self) -> int:
        """Index of the playing sound, or its negation once it has finished."""
        return self._current_sound

    @property
    def firmware_revision(self) -> FirmwareRevision:
        return self._firmware_revision

    @property
    def pending_writes(self) -> int:
        return self._pending_writes

    @property
    def audio_loop(self) -> bool:
        return self._audio_loop

    def register_state_callback(self, callback: StateCallback) -> Callable[[], None]:
        """Register a callback for state changes (new_state, old_state). Returns unsubscribe callable."""
        return register_callback(self._state_callbacks, callback)

    def register_message_callback(self, callback: MessageCallback) -> Callable[[], None]:
        """Register a callback for control message changes. Returns unsubscribe callable."""
        return register_callback(self._message_callbacks, callback)

    def register_sound_callback(self, callback: SoundCallback) -> Callable[[], None]:
        """Register a callback for current sound changes. Returns unsubscribe callable."""
        return register_callback(self._sound_callbacks, callback)

    async def attach(self, transport: GattTransport) -> None:
        """Attach to a connected robot and start transmitting.

        Resolves the Device Information and robot control services, reads the
        firmware revision, enables sound notifications and starts the
        transmitter. An unknown firmware revision is logged but not fatal.

        Args:
            transport: Connected GATT transport with services discovered

        Raises:
            RequiredServicesMissingError: If either service is missing
            RuntimeError: If the session is connected already
        """
        if self.state == SessionState.CONNECTED:
            raise RuntimeError("Robot session is connected already")

        missing = [
            uuid
            for uuid in (DEVICE_INFORMATION_SERVICE_UUID, ROBOT_SERVICE_UUID)
            if not transport.has_service(uuid)
        ]
        if missing:
            _LOGGER.warning("Could not resolve required services: %s", ", ".join(missing))
            raise RequiredServicesMissingError(
                f"Required services not available: {', '.join(missing)}"
            )

        self._transport = transport
        self._device_information = DEVICE_INFORMATION_SERVICE_UUID
        self._robot_control = ROBOT_SERVICE_UUID
        self._check_state()

        await self._read_firmware_revision(transport)

        if self._transport is not transport:
            return  # Detached while reading
        if await self._start_notification(transport) and self._transport is transport:
            self._start_transmission(transport)

    async def detach(self) -> None:
        """Stop transmitting and release the transport.

        No write is attempted on the released transport afterwards. The
        firmware revision and sound state are forgotten; the control message
        is kept.
        """
        tasks = list(self._write_tasks)
        transmitter, self._transmitter = self._transmitter, None
        if transmitter is not None:
            tasks.append(transmitter)
        for task in tasks:
            task.cancel()

        self._transport = None
        self._write_characteristic = None
        self._device_information = None
        self._robot_control = None
        self._pending_writes = 0
        self._firmware_revision = FirmwareRevision.UNKNOWN
        self._audio_loop = False
        self._current_sound = 0
        self._check_state()

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def set_current_message(self, message: bytes | Sequence[int]) -> bool:
        """Replace the whole control message.

        Returns:
            True if the message changed; False for values that are not six
            bytes, messages with a different sync byte, or messages equal to
            the current one
        """
        try:
            data = bytes(message)
        except (TypeError, ValueError) as err:
            _LOGGER.warning("Ignoring invalid control message %r: %s", message, err)
            return False
        if not self._message.replace(data):
            return False
        self._on_message_changed()
        return True

    def start_action(self, action: Action | str, index: int = 0) -> bool:
        """Start an action.

        Args:
            action: Action identifier, see Action
            index: Speed, sound or function index (clamped to the action's range)

        Returns:
            True on success, False for unknown actions
        """
        if action == Action.STOP:
            _LOGGER.info("Pausing the robot")
            if self._message.reset():
                self._on_message_changed()
            return True

        try:
            fragment = encode_action(action, index, self._firmware_revision)
        except ActionError as err:
            _LOGGER.warning("Could not start action: %s", err)
            return False

        _LOGGER.info("Starting %s action (index=%d)", Action(action).value, index)

        if fragment.offset == SOUND_OFFSET:
            self._audio_loop = action == Action.LOOP

        if self._message.apply(fragment):
            self._on_message_changed()
        return True

    def stop_action(self, action: Action | str, index: int = 0) -> bool:
        """Stop a running action, restoring its channel to the paused baseline.

        Returns:
            True on success; False for unknown actions and for actions that
            are not currently running
        """
        try:
            fragment = self._active_fragment(action, index)
        except ActionError as err:
            _LOGGER.warning("Could not stop action: %s", err)
            return False

        _LOGGER.info("Stopping %s action (index=%d)", Action(action).value, index)
        if self._message.clear(fragment.offset):
            self._on_message_changed()
        return True

    def play_sound(self, index: int) -> bool:
        """Play sound index once."""
        return self.start_action(Action.SOUND, index)

    def play_loop(self, index: int) -> bool:
        """Play sound index repeatedly until another sound is started."""
        return self.start_action(Action.LOOP, index)

    def pause(self) -> bool:
        """Stop everything."""
        return self.start_action(Action.STOP)

    def _active_fragment(self, action: Action | str, index: int) -> MessageFragment:
        fragment = encode_action(action, index, self._firmware_revision)
        if not self._message.is_active(fragment):
            raise ActionNotActiveError(
                f"Action {Action(action).value!r} (index={index}) is not active",
                Action(action).value,
                index,
            )
        return fragment

    def _on_message_changed(self) -> None:
        message = bytes(self._message)
        for callback in list(self._message_callbacks):
            callback(message)
        self._transmit_message()

    def _check_state(self) -> None:
        new_state = self.state
        if new_state == self._old_state:
            return

        old_state, self._old_state = self._old_state, new_state
        _LOGGER.info("state changed: %s => %s", old_state.name, new_state.name)
        for callback in list(self._state_callbacks):
            callback(new_state, old_state)

    async def _read_firmware_revision(self, transport: GattTransport) -> bool:
        try:
            if not transport.has_characteristic(
                DEVICE_INFORMATION_SERVICE_UUID, FIRMWARE_REVISION_UUID
            ):
                raise UnknownFirmwareRevisionError("Firmware revision characteristic not found")
            value = await transport.read_characteristic(FIRMWARE_REVISION_UUID)
            self._firmware_revision = parse_firmware_revision(value)
        except (UnknownFirmwareRevisionError, BLEConnectionError) as err:
            _LOGGER.warning("Could not identify firmware revision: %s", err)
            return False

        _LOGGER.info("Firmware revision: %s", self._firmware_revision.name)
        return True

    async def _start_notification(self, transport: GattTransport) -> bool:
        if transport.has_characteristic(ROBOT_SERVICE_UUID, NOTIFY_CHARACTERISTIC_UUID):
            try:
                await transport.start_notify(
                    NOTIFY_CHARACTERISTIC_UUID, self._on_characteristic_changed
                )
                return True
            except BLEConnectionError as err:
                _LOGGER.warning("Could not setup notification characteristic: %s", err)
                return False

        _LOGGER.warning("Could not setup notification characteristic")
        return False

    def _start_transmission(self, transport: GattTransport) -> bool:
        if not transport.has_characteristic(ROBOT_SERVICE_UUID, WRITE_CHARACTERISTIC_UUID):
            _LOGGER.warning("Could not setup write characteristic")
            return False

        self._write_characteristic = WRITE_CHARACTERISTIC_UUID
        self._check_state()

        self._transmitter = asyncio.get_running_loop().create_task(self._run_transmitter())
        self._on_transmit_tick()
        return True

    def _transmit_message(self) -> bool:
        # One write in flight at most; later changes go out with the next tick
        if self._write_characteristic is None or self._pending_writes:
            return False

        payload = bytes(self._message)
        self._pending_writes += 1
        _LOGGER.debug("Transmitting %s", payload.hex())

        task = asyncio.get_running_loop().create_task(
            self._write_message(self._transport, payload)
        )
        self._write_tasks.add(task)
        task.add_done_callback(self._on_write_done)
        return True

    async def _write_message(self, transport: GattTransport, payload: bytes) -> None:
        written = False
        try:
            await transport.write_characteristic(WRITE_CHARACTERISTIC_UUID, payload)
            written = True
        except BLEConnectionError as err:
            _LOGGER.warning("Could not transmit %s: %s", payload.hex(), err)
        finally:
            # A released transport no longer owns the counter
            if transport is self._transport:
                self._pending_writes = max(0, self._pending_writes - 1)

        if written and transport is self._transport:
            self._on_message_written(payload)

    def _on_write_done(self, task: asyncio.Task) -> None:
        self._write_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            _LOGGER.error("Transmission failed", exc_info=task.exception())

    def _on_message_written(self, payload: bytes) -> None:
        _LOGGER.debug(
            "Value of characteristic %s has been written: %s",
            WRITE_CHARACTERISTIC_UUID,
            payload.hex(),
        )
        # The auxiliary function is a single pulse
        if self._message.clear(AUXILIARY_OFFSET):
            self._on_message_changed()

    async def _run_transmitter(self) -> None:
        while True:
            await asyncio.sleep(self.transmit_interval)
            self._on_transmit_tick()

    def _on_transmit_tick(self) -> None:
        if self._pending_writes == 0:
            self._transmit_message()

    def _on_characteristic_changed(self, char_uuid: str, value: bytes) -> None:
        _LOGGER.debug("Value of characteristic %s has changed: %s", char_uuid, value.hex())

        if char_uuid != NOTIFY_CHARACTERISTIC_UUID:
            return

        event = parse_sound_notification(value)
        if event is None:
            _LOGGER.info("Ignoring unrecognized notification: %r", value)
            return

        self._current_sound = event.index

        if event.type == SoundEventType.PLAY:
            if not self._audio_loop:
                self.stop_action(Action.SOUND, event.index)
        elif self._audio_loop:
            self.start_action(Action.LOOP, event.index)
            self._transmit_message()  # Re-arm even if the byte did not change
        else:
            self._current_sound = -event.index
            self.stop_action(Action.SOUND, event.index)

        for callback in list(self._sound_callbacks):
            callback(self._current_sound)

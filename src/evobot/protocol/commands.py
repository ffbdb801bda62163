"""Action encoding for the Evolution robot control message."""

from __future__ import annotations

from enum import Enum
from typing import Final

from ..exceptions import UnknownActionError
from ..models.enums import FirmwareRevision
from ..models.message import (
    AUXILIARY_OFFSET,
    GRIPPER_OFFSET,
    LIFT_OFFSET,
    MOVEMENT_OFFSET,
    SOUND_OFFSET,
    MessageFragment,
)


class Action(str, Enum):
    """Action identifiers understood by the robot."""

    FORWARD = "F"
    BACKWARD = "B"
    LEFT = "L"
    RIGHT = "R"
    GRIPPER_OPEN = "O"
    GRIPPER_CLOSE = "C"
    LIFT_UP = "U"
    LIFT_DOWN = "D"
    SOUND = "V"
    LOOP = "M"
    FUNCTION = "E"
    STOP = "S"  # Reserved: resets the whole message


# GATT identifiers
DEVICE_INFORMATION_SERVICE_UUID: Final = "0000180a-0000-1000-8000-00805f9b34fb"
FIRMWARE_REVISION_UUID: Final = "00002a26-0000-1000-8000-00805f9b34fb"
ROBOT_SERVICE_UUID: Final = "0000fff3-0000-1000-8000-00805f9b34fb"
NOTIFY_CHARACTERISTIC_UUID: Final = "0000fff4-0000-1000-8000-00805f9b34fb"
WRITE_CHARACTERISTIC_UUID: Final = "0000fff5-0000-1000-8000-00805f9b34fb"

ROBOT_NAME: Final = "Evolution-Robot"

# Seconds between retransmissions while connected
TRANSMIT_INTERVAL: Final = 0.1

# Index ranges
MAX_SPEED: Final = 3
MAX_SOUND: Final = 0xFF - 21
MAX_FUNCTION: Final = 63

_MOVEMENT_BASE: Final[dict[Action, int]] = {
    Action.FORWARD: 1,
    Action.BACKWARD: 5,
    Action.LEFT: 9,
    Action.RIGHT: 13,
}

_FIXED_FRAGMENTS: Final[dict[Action, MessageFragment]] = {
    Action.GRIPPER_OPEN: MessageFragment(GRIPPER_OFFSET, 0x3C),
    Action.GRIPPER_CLOSE: MessageFragment(GRIPPER_OFFSET, 0x3D),
    Action.LIFT_UP: MessageFragment(LIFT_OFFSET, 0x3E),
    Action.LIFT_DOWN: MessageFragment(LIFT_OFFSET, 0x3F),
}

SOUND_BASE: Final = 21
FUNCTION_OFF: Final = 0x3B
FUNCTION_BASE_REVISION_1: Final = 0x35
FUNCTION_BASE_REVISION_2: Final = 0x47


def _clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(value, upper))


def encode_action(
        action: Action | str,
        index: int = 0,
        revision: FirmwareRevision = FirmwareRevision.UNKNOWN,
) -> MessageFragment:
    """Encode an action into the channel byte it occupies.

    Args:
        action: Action identifier ('F', 'B', 'L', 'R', 'O', 'C', 'U', 'D', 'V', 'M', 'E')
        index: Speed, sound or function index; clamped into the action's range
        revision: Negotiated firmware revision (only affects 'E')

    Returns:
        MessageFragment with channel offset and byte value

    Raises:
        UnknownActionError: If the action has no encoding (including the
            reserved stop-all action 'S')

    Encoding of 'E' with a non-zero index:
        revision 1:           clamp(index, 1, 63) + 0x35
        revision 2 / unknown: clamp(index, 1, 63) + 0x47
    """
    try:
        action = Action(action)
    except ValueError:
        raise UnknownActionError(
            f"Unknown action {action!r} (index={index})", str(action), index
        ) from None

    if action in _MOVEMENT_BASE:
        return MessageFragment(
            MOVEMENT_OFFSET, _MOVEMENT_BASE[action] + _clamp(index, 0, MAX_SPEED)
        )

    if action in _FIXED_FRAGMENTS:
        return _FIXED_FRAGMENTS[action]

    if action in (Action.SOUND, Action.LOOP):
        return MessageFragment(SOUND_OFFSET, SOUND_BASE + _clamp(index, 0, MAX_SOUND))

    if action == Action.FUNCTION:
        if not index:
            return MessageFragment(AUXILIARY_OFFSET, FUNCTION_OFF)
        base = (
            FUNCTION_BASE_REVISION_1
            if revision == FirmwareRevision.REVISION_1
            else FUNCTION_BASE_REVISION_2
        )
        return MessageFragment(AUXILIARY_OFFSET, base + _clamp(index, 1, MAX_FUNCTION))

    raise UnknownActionError(
        f"Action {action.value!r} has no channel encoding", action.value, index
    )

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Final


class FirmwareRevision(IntEnum):
    """Robot firmware revisions.

    Only the auxiliary function action encodes differently between them.
    """
    UNKNOWN = 0
    REVISION_1 = 1
    REVISION_2 = 2


class SessionState(IntEnum):
    """Lifecycle of a robot session, derived from the resolved GATT handles."""
    DISCONNECTED = 0
    CONNECTING = 1
    CONNECTED = 2


class ControllerState(IntEnum):
    """Unified lifecycle of the connection controller."""
    UNINITIALIZED = 0
    DEVICE_DISCOVERY = 1
    SERVICE_DISCOVERY = 2
    CONNECTING = 3
    CONNECTED = 4
    ERROR = 5


class ControllerError(IntEnum):
    """Terminal error codes reported by the connection controller."""
    NO_ERROR = 0
    BLUETOOTH_MISSING = 1
    DEVICE_DISCOVERY = 2
    DEVICE_ERROR = 3


class SoundEventType(Enum):
    """Kinds of sound notifications sent by the robot."""
    PLAY = "Play"
    END = "End"


SESSION_STATE_NAMES: Final[dict[SessionState, str]] = {
    SessionState.DISCONNECTED: "Disconnected",
    SessionState.CONNECTING: "Connecting",
    SessionState.CONNECTED: "Connected",
}

# Kept apart from SESSION_STATE_NAMES: IntEnum members of both classes hash alike.
CONTROLLER_STATE_NAMES: Final[dict[ControllerState, str]] = {
    ControllerState.UNINITIALIZED: "Uninitialized",
    ControllerState.DEVICE_DISCOVERY: "Device discovery",
    ControllerState.SERVICE_DISCOVERY: "Service discovery",
    ControllerState.CONNECTING: "Connecting",
    ControllerState.CONNECTED: "Connected",
    ControllerState.ERROR: "Error",
}


def get_state_name(state: SessionState | ControllerState) -> str:
    """Get the display name of a session or controller state."""
    if isinstance(state, ControllerState):
        return CONTROLLER_STATE_NAMES[state]
    return SESSION_STATE_NAMES[SessionState(state)]

"""Data models for Evolution robots."""

from .enums import (
    CONTROLLER_STATE_NAMES,
    SESSION_STATE_NAMES,
    ControllerError,
    ControllerState,
    FirmwareRevision,
    SessionState,
    SoundEventType,
    get_state_name,
)
from .message import (
    MESSAGE_LENGTH,
    PAUSE_MESSAGE,
    ControlMessage,
    MessageFragment,
)
from .sound import SoundEvent

__all__ = [
    "CONTROLLER_STATE_NAMES",
    "SESSION_STATE_NAMES",
    "ControllerError",
    "ControllerState",
    "FirmwareRevision",
    "SessionState",
    "SoundEventType",
    "get_state_name",
    "MESSAGE_LENGTH",
    "PAUSE_MESSAGE",
    "ControlMessage",
    "MessageFragment",
    "SoundEvent",
]

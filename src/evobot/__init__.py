"""Evolution Robot BLE Remote Control Package.

  Pure Python package for driving Evolution toy robots over Bluetooth LE.
  """

from .controller import Controller
from .exceptions import (
    ActionError,
    ActionNotActiveError,
    BLEConnectionError,
    BLETimeoutError,
    BluetoothUnavailableError,
    DeviceDiscoveryError,
    EvoBotError,
    ProtocolError,
    RequiredServicesMissingError,
    UnknownActionError,
    UnknownFirmwareRevisionError,
)
from .models.enums import (
    ControllerError,
    ControllerState,
    FirmwareRevision,
    SessionState,
    SoundEventType,
    get_state_name,
)
from .models.message import PAUSE_MESSAGE, ControlMessage, MessageFragment
from .models.sound import SoundEvent
from .protocol import ROBOT_NAME, Action, encode_action
from .session import RobotSession

__version__ = "0.1.0"

__all__ = [
    # Main API
    "Controller",
    "RobotSession",
    # Exceptions
    "EvoBotError",
    "BluetoothUnavailableError",
    "DeviceDiscoveryError",
    "BLEConnectionError",
    "BLETimeoutError",
    "RequiredServicesMissingError",
    "ProtocolError",
    "UnknownFirmwareRevisionError",
    "ActionError",
    "UnknownActionError",
    "ActionNotActiveError",
    # Models
    "ControlMessage",
    "MessageFragment",
    "SoundEvent",
    # Enums
    "Action",
    "ControllerError",
    "ControllerState",
    "FirmwareRevision",
    "SessionState",
    "SoundEventType",
    "get_state_name",
    # Utilities
    "encode_action",
    # Constants
    "PAUSE_MESSAGE",
    "ROBOT_NAME",
]

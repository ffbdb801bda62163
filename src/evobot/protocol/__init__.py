"""BLE protocol implementation."""

from .commands import (
    DEVICE_INFORMATION_SERVICE_UUID,
    FIRMWARE_REVISION_UUID,
    NOTIFY_CHARACTERISTIC_UUID,
    ROBOT_NAME,
    ROBOT_SERVICE_UUID,
    TRANSMIT_INTERVAL,
    WRITE_CHARACTERISTIC_UUID,
    Action,
    encode_action,
)
from .responses import parse_firmware_revision, parse_sound_notification

__all__ = [
    "Action",
    "DEVICE_INFORMATION_SERVICE_UUID",
    "FIRMWARE_REVISION_UUID",
    "ROBOT_SERVICE_UUID",
    "NOTIFY_CHARACTERISTIC_UUID",
    "WRITE_CHARACTERISTIC_UUID",
    "ROBOT_NAME",
    "TRANSMIT_INTERVAL",
    "encode_action",
    "parse_firmware_revision",
    "parse_sound_notification",
]

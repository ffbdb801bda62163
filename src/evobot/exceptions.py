"""Exceptions raised by the evobot package."""

from __future__ import annotations


class EvoBotError(Exception):
    """Base exception for all evobot errors."""


class BluetoothUnavailableError(EvoBotError):
    """No usable local Bluetooth adapter."""


class DeviceDiscoveryError(EvoBotError):
    """Scanning for BLE devices failed."""


class BLEConnectionError(EvoBotError):
    """Connecting to or talking with the robot failed."""


class BLETimeoutError(BLEConnectionError):
    """A BLE operation did not complete in time."""


class RequiredServicesMissingError(EvoBotError):
    """The connected device lacks the GATT services of an Evolution robot."""


class ProtocolError(EvoBotError):
    """Robot protocol violation or unsupported value."""


class UnknownFirmwareRevisionError(ProtocolError):
    """The firmware revision string is not one we know how to speak to."""


class ActionError(ProtocolError):
    """An action could not be applied to the control message."""

    def __init__(self, message: str, action: str, index: int):
        super().__init__(message)
        self.action = action
        self.index = index


class UnknownActionError(ActionError):
    """The action identifier has no encoding."""


class ActionNotActiveError(ActionError):
    """A stop was requested for an action that is not currently running."""

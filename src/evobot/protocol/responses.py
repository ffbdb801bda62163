"""Parsing of values read from and notified by the robot."""

from __future__ import annotations

import re

from ..exceptions import UnknownFirmwareRevisionError
from ..models.enums import FirmwareRevision, SoundEventType
from ..models.sound import SoundEvent

_FIRMWARE_REVISIONS = {
    b"Ver1.0": FirmwareRevision.REVISION_1,
    b"Ver2.0": FirmwareRevision.REVISION_2,
}

# Only ASCII digits are captured, so int() on a capture cannot fail.
_PLAY_PATTERN = re.compile(rb"V([0-9]+)Play")
_END_PATTERN = re.compile(rb"V([0-9]+)End")


def parse_firmware_revision(data: bytes) -> FirmwareRevision:
    """Parse the Device Information "Firmware Revision String".

    Args:
        data: Raw characteristic value, e.g. b"Ver2.0"

    Returns:
        The matching FirmwareRevision

    Raises:
        UnknownFirmwareRevisionError: If the string is not a known revision
    """
    try:
        return _FIRMWARE_REVISIONS[bytes(data)]
    except KeyError:
        raise UnknownFirmwareRevisionError(
            f"Unknown firmware revision: {bytes(data)!r}"
        ) from None


def parse_sound_notification(data: bytes) -> SoundEvent | None:
    """Parse a sound playback notification.

    The robot notifies short ASCII texts; "V<n>Play" when sound n starts and
    "V<n>End" when it finishes. The pattern may appear anywhere in the payload.

    Args:
        data: Raw notification value

    Returns:
        SoundEvent, or None if the payload is not a sound notification
    """
    if match := _PLAY_PATTERN.search(data):
        return SoundEvent(SoundEventType.PLAY, int(match.group(1)))
    if match := _END_PATTERN.search(data):
        return SoundEvent(SoundEventType.END, int(match.group(1)))
    return None

"""Robot control message model."""

from __future__ import annotations

from dataclasses import dataclass

MESSAGE_LENGTH = 6

# Channel offsets
SYNC_OFFSET = 0
MOVEMENT_OFFSET = 1
GRIPPER_OFFSET = 2
LIFT_OFFSET = 3
SOUND_OFFSET = 4
AUXILIARY_OFFSET = 5

PAUSE_MESSAGE = b"X\x11\x40\x40\x00\x00"


@dataclass(frozen=True, slots=True)
class MessageFragment:
    """One channel byte of the control message."""

    offset: int
    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.offset < MESSAGE_LENGTH:
            raise ValueError(
                f"offset out of range: {self.offset} (must be 0-{MESSAGE_LENGTH - 1})"
            )
        if not 0 <= self.value <= 0xFF:
            raise ValueError(f"value out of range: {self.value} (must be 0-255)")


class ControlMessage:
    """The 6-byte command buffer transmitted to the robot.

    Layout:
    - [0]: Sync byte ('X'), never changed
    - [1]: Movement direction and speed
    - [2]: Gripper
    - [3]: Lift
    - [4]: Sound or loop selector
    - [5]: Auxiliary function, cleared after every acknowledged write

    Every byte not held by a running action equals the paused baseline.
    """

    def __init__(self, data: bytes = PAUSE_MESSAGE):
        if len(data) != MESSAGE_LENGTH:
            raise ValueError(
                f"Control message must be exactly {MESSAGE_LENGTH} bytes, got {len(data)}"
            )
        self._data = bytearray(data)

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def __len__(self) -> int:
        return MESSAGE_LENGTH

    def __getitem__(self, offset: int) -> int:
        return self._data[offset]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ControlMessage):
            return self._data == other._data
        if isinstance(other, (bytes, bytearray)):
            return self._data == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"ControlMessage({self._data.hex(' ')})"

    def set_byte(self, offset: int, value: int) -> bool:
        """Replace one channel byte.

        Returns:
            True if the message changed
        """
        if offset == SYNC_OFFSET:
            raise ValueError("The sync byte cannot be changed")
        if self._data[offset] == value:
            return False
        self._data[offset] = value
        return True

    def apply(self, fragment: MessageFragment) -> bool:
        """Write a fragment into its channel. Returns True if the message changed."""
        return self.set_byte(fragment.offset, fragment.value)

    def is_active(self, fragment: MessageFragment) -> bool:
        """Check whether the fragment's byte is currently held by its channel."""
        return self._data[fragment.offset] == fragment.value

    def clear(self, offset: int) -> bool:
        """Restore one channel to its paused baseline. Returns True if it changed."""
        return self.set_byte(offset, PAUSE_MESSAGE[offset])

    def replace(self, data: bytes) -> bool:
        """Replace the whole message.

        Messages of the wrong length, with a different sync byte or with
        identical content are ignored.

        Returns:
            True if the message changed
        """
        if len(data) != MESSAGE_LENGTH or self._data == data:
            return False
        if data[SYNC_OFFSET] != PAUSE_MESSAGE[SYNC_OFFSET]:
            return False
        self._data[:] = data
        return True

    def reset(self) -> bool:
        """Restore the paused baseline. Returns True if the message changed."""
        return self.replace(PAUSE_MESSAGE)

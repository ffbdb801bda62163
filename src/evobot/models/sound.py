"""Sound playback notification model."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import SoundEventType


@dataclass(frozen=True, slots=True)
class SoundEvent:
    """A parsed sound notification ("V3Play", "V3End")."""

    type: SoundEventType
    index: int

"""Centralized scenario enums and constants.

This module contains the enums shared across the sequencing engine and the
scenario components, providing a single source of truth.
"""

from enum import Enum, auto


class TriggerMode(Enum):
    """Class of external event that can start a package."""
    MANUAL = "manual"                              # Only via trigger()
    ON_SESSION_START = "on_session_start"          # Once, when the session starts
    KEY_POLL = "key_poll"                          # On a key-became-pressed transition
    COLLISION_EVENT = "collision_event"            # Solid contact with the owner
    TRIGGER_VOLUME_EVENT = "trigger_volume_event"  # Entry into the owner's volume

    @classmethod
    def from_string(cls, value: str) -> "TriggerMode":
        """Parse a mode name, accepting enum names or values in any case."""
        normalized = value.strip().lower()
        for mode in cls:
            if normalized in (mode.value, mode.name.lower()):
                return mode
        raise ValueError(f"Unknown trigger mode: {value!r}")


class ContactKind(Enum):
    """Kinds of physics contact reported by the host."""
    COLLISION = auto()
    TRIGGER_VOLUME = auto()

    @property
    def trigger_mode(self) -> TriggerMode:
        """Trigger mode that listens for this contact kind."""
        if self is ContactKind.COLLISION:
            return TriggerMode.COLLISION_EVENT
        return TriggerMode.TRIGGER_VOLUME_EVENT


class LifecycleState(Enum):
    """States a package run moves through."""
    STARTED = auto()
    DELAYING = auto()
    EXECUTING = auto()
    REVERT_PENDING = auto()
    COMPLETED = auto()
    FINISHED = auto()
    CANCELLED = auto()


class RevertTiming(Enum):
    """How the object and collider revert timers relate to each other."""
    CONCURRENT = "concurrent"  # Both measured from execution time
    SEQUENTIAL = "sequential"  # Collider wait starts after the object revert


class TimerStyle(Enum):
    """Visual style of the countdown display."""
    NORMAL = auto()
    DANGER = auto()

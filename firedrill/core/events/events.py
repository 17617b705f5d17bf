"""Session events and context.

This module defines the events that components publish and subscribe to.

Event Design Principles:
- Events are immutable dataclasses with rich object payloads
- All events include a timeline_time stamp from the session timeline
- Events use proper enums instead of magic strings
- Keep event types focused and avoid over-granular events
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING
from abc import ABC
from enum import Enum, auto

from ..data import ContactKind

if TYPE_CHECKING:
    from ..entities.scene import SceneEntity


class EventType(Enum):
    """Types of session events that components can subscribe to."""
    # Host input
    SESSION_STARTED = auto()
    KEYS_PRESSED = auto()
    CONTACT_OCCURRED = auto()

    # Package lifecycle
    PACKAGE_TRIGGERED = auto()
    PACKAGE_STARTED = auto()
    PACKAGE_EXECUTED = auto()
    PACKAGE_REVERTED = auto()
    PACKAGE_COMPLETED = auto()
    PACKAGE_STOPPED = auto()

    # Scenario
    ALARM_STARTED = auto()
    ALARM_CANCELLED = auto()
    SCENARIO_FAILED = auto()
    FIRE_EXTINGUISHED = auto()
    DIALOGUE_SHOWN = auto()
    RESTART_REQUESTED = auto()

    # Logging
    LOG_MESSAGE = auto()
    DEBUG_MESSAGE = auto()
    LOG_SAVE_REQUESTED = auto()


@dataclass(frozen=True)
class SessionEvent(ABC):
    """Base class for all session events."""
    timeline_time: float
    event_type: EventType = field(init=False)


@dataclass(frozen=True)
class SessionStarted(SessionEvent):
    """Event emitted once when the host session initializes."""

    def __post_init__(self):
        # Set event_type since dataclass frozen=True prevents normal assignment
        object.__setattr__(self, 'event_type', EventType.SESSION_STARTED)


@dataclass(frozen=True)
class KeysPressed(SessionEvent):
    """Event emitted for keys that became pressed during a tick."""
    keys: frozenset[str]

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.KEYS_PRESSED)


@dataclass(frozen=True)
class ContactOccurred(SessionEvent):
    """Event emitted when the host reports a physics contact."""
    kind: ContactKind
    other: Optional["SceneEntity"]

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.CONTACT_OCCURRED)


@dataclass(frozen=True)
class PackageEvent(SessionEvent):
    """Base for package lifecycle events."""
    package_id: int
    package_name: str


@dataclass(frozen=True)
class PackageTriggered(PackageEvent):
    """Event emitted when a trigger attempt starts a new run."""

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.PACKAGE_TRIGGERED)


@dataclass(frozen=True)
class PackageStarted(PackageEvent):
    """Event emitted after a run's started hooks."""

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.PACKAGE_STARTED)


@dataclass(frozen=True)
class PackageExecuted(PackageEvent):
    """Event emitted after a package's actions were applied."""
    cycle: int = 1

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.PACKAGE_EXECUTED)


@dataclass(frozen=True)
class PackageReverted(PackageEvent):
    """Event emitted when an auto-revert group was undone."""
    group: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.PACKAGE_REVERTED)


@dataclass(frozen=True)
class PackageCompleted(PackageEvent):
    """Event emitted at the end of each cycle."""
    cycle: int = 1

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.PACKAGE_COMPLETED)


@dataclass(frozen=True)
class PackageStopped(PackageEvent):
    """Event emitted when an active run was cancelled."""

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.PACKAGE_STOPPED)


@dataclass(frozen=True)
class AlarmStarted(SessionEvent):
    """Event emitted when the evacuation countdown begins."""
    total_seconds: float

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ALARM_STARTED)


@dataclass(frozen=True)
class AlarmCancelled(SessionEvent):
    """Event emitted when the countdown is cancelled before running out."""
    remaining_seconds: float

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ALARM_CANCELLED)


@dataclass(frozen=True)
class ScenarioFailed(SessionEvent):
    """Event emitted when the trainee fails the scenario."""
    reason: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.SCENARIO_FAILED)


@dataclass(frozen=True)
class FireExtinguished(SessionEvent):
    """Event emitted when a fire zone is put out."""
    zone_name: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.FIRE_EXTINGUISHED)


@dataclass(frozen=True)
class DialogueShown(SessionEvent):
    """Event emitted when the dialogue panel shows a message."""
    text: str
    duration: float

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.DIALOGUE_SHOWN)


@dataclass(frozen=True)
class RestartRequested(SessionEvent):
    """Event emitted when a component asks the host to reload the session."""
    source: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.RESTART_REQUESTED)


@dataclass(frozen=True)
class LogMessage(SessionEvent):
    """Event emitted when a log message is created."""
    message: str
    category: str
    source: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_MESSAGE)


@dataclass(frozen=True)
class DebugMessage(SessionEvent):
    """Event emitted for debug-specific messages."""
    message: str
    source: str
    context: Optional[dict] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.DEBUG_MESSAGE)


@dataclass(frozen=True)
class LogSaveRequested(SessionEvent):
    """Event emitted to request the log be written to disk."""
    file_path: str = "session_log.txt"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_SAVE_REQUESTED)

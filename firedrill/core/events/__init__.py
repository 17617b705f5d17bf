"""Event system for publisher-subscriber communication.

This package contains the complete event-driven architecture:
- event_manager.py: Publisher-subscriber event routing and coordination
- events.py: Event definitions for inter-component communication
"""

from .event_manager import EventManager, EventPriority, QueuedEvent, SubscriberError
from .events import (
    SessionEvent,
    EventType,
    SessionStarted,
    KeysPressed,
    ContactOccurred,
    PackageEvent,
    PackageTriggered,
    PackageStarted,
    PackageExecuted,
    PackageReverted,
    PackageCompleted,
    PackageStopped,
    AlarmStarted,
    AlarmCancelled,
    ScenarioFailed,
    FireExtinguished,
    DialogueShown,
    RestartRequested,
    LogMessage,
    DebugMessage,
    LogSaveRequested,
)

__all__ = [
    "EventManager",
    "EventPriority",
    "QueuedEvent",
    "SubscriberError",
    "SessionEvent",
    "EventType",
    "SessionStarted",
    "KeysPressed",
    "ContactOccurred",
    "PackageEvent",
    "PackageTriggered",
    "PackageStarted",
    "PackageExecuted",
    "PackageReverted",
    "PackageCompleted",
    "PackageStopped",
    "AlarmStarted",
    "AlarmCancelled",
    "ScenarioFailed",
    "FireExtinguished",
    "DialogueShown",
    "RestartRequested",
    "LogMessage",
    "DebugMessage",
    "LogSaveRequested",
]

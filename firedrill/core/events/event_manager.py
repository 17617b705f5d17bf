"""
Event bus shared by the sequencing engine and the scenario components.

Publishers queue events; the session drains the queue once per host call
with process_events(). Ordering is by priority, then by publish order, so a
replay of the same inputs always delivers events in the same order. Events
published by a subscriber while the queue is being drained are delivered in
the same call.

A subscriber that raises is isolated: the remaining subscribers still get the
event, the failure is counted and recorded, and an optional error callback is
told about it (the LogManager uses this to report it as an ERROR entry).
"""

from collections import defaultdict, deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .events import SessionEvent, EventType


class EventPriority(Enum):
    """Event processing priorities; higher values are delivered first."""
    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4


@dataclass
class QueuedEvent:
    """An event waiting in the queue."""
    event: "SessionEvent"
    sequence: int
    priority: EventPriority = EventPriority.NORMAL
    source: str = "unknown"

    @property
    def sort_key(self) -> tuple[int, int]:
        return (-self.priority.value, self.sequence)


EventSubscriber = Callable[["SessionEvent"], None]


@dataclass
class Subscription:
    """A registered callback and the name it reports errors under."""
    callback: EventSubscriber
    name: str


@dataclass(frozen=True)
class SubscriberError:
    """One exception raised by a subscriber."""
    subscriber_name: str
    event_name: str
    timeline_time: float
    message: str


ErrorCallback = Callable[[SubscriberError], None]


def _display_name(subscriber: EventSubscriber, name: Optional[str]) -> str:
    return name or getattr(subscriber, "__qualname__", None) or getattr(subscriber, "__name__", "anonymous")


class EventManager:
    """Queued publish/subscribe bus for one training session."""

    # Bound on subscriber-published follow-up rounds within one drain
    max_cascade_rounds = 32

    def __init__(self, enable_debug_logging: bool = False, history_size: int = 500):
        """Initialize the event manager.

        Args:
            enable_debug_logging: Whether to report bus traffic to the debug callback
            history_size: Number of delivered events kept for inspection
        """
        self.enable_debug_logging = enable_debug_logging

        self._subscribers: dict["EventType", list[Subscription]] = defaultdict(list)
        self._universal_subscribers: list[Subscription] = []
        self._event_queue: list[QueuedEvent] = []
        self._sequence = 0

        self._events_published = 0
        self._events_processed = 0
        self._event_history: deque[QueuedEvent] = deque(maxlen=history_size)
        self._errors: deque[SubscriberError] = deque(maxlen=100)
        self._subscriber_errors = 0

        self._debug_callback: Optional[Callable[[str], None]] = None
        self._error_callback: Optional[ErrorCallback] = None
        self._reporting_error = False

    def set_debug_callback(self, callback: Optional[Callable[[str], None]]) -> None:
        self._debug_callback = callback

    def set_error_callback(self, callback: Optional[ErrorCallback]) -> None:
        """Register a callback told about every subscriber exception."""
        self._error_callback = callback

    def _debug_log(self, message: str) -> None:
        if self.enable_debug_logging and self._debug_callback:
            self._debug_callback(f"[EVENT] {message}")

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(
        self,
        event_type: "EventType",
        subscriber: EventSubscriber,
        subscriber_name: Optional[str] = None
    ) -> None:
        """Subscribe to events of one type.

        Args:
            event_type: The type of events to receive
            subscriber: Callback taking the event
            subscriber_name: Name used in debug output and error reports
        """
        subscription = Subscription(subscriber, _display_name(subscriber, subscriber_name))
        self._subscribers[event_type].append(subscription)
        self._debug_log(f"Subscribed {subscription.name} to {event_type.name}")

    def subscribe_all(self, subscriber: EventSubscriber, subscriber_name: Optional[str] = None) -> None:
        """Subscribe to every event."""
        subscription = Subscription(subscriber, _display_name(subscriber, subscriber_name))
        self._universal_subscribers.append(subscription)
        self._debug_log(f"Subscribed {subscription.name} to ALL events")

    def unsubscribe(self, event_type: "EventType", subscriber: EventSubscriber) -> bool:
        """Remove a typed subscription.

        Returns:
            True if the subscriber was found and removed
        """
        return self._remove(self._subscribers.get(event_type, []), subscriber)

    def unsubscribe_all(self, subscriber: EventSubscriber) -> bool:
        """Remove a universal subscription."""
        return self._remove(self._universal_subscribers, subscriber)

    @staticmethod
    def _remove(subscriptions: list[Subscription], subscriber: EventSubscriber) -> bool:
        for index, subscription in enumerate(subscriptions):
            if subscription.callback == subscriber:
                del subscriptions[index]
                return True
        return False

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def publish(
        self,
        event: "SessionEvent",
        priority: EventPriority = EventPriority.NORMAL,
        source: Optional[str] = None
    ) -> None:
        """Queue an event for the next process_events() call."""
        queued = self._enqueue_record(event, priority, source or "unknown")
        self._event_queue.append(queued)
        self._debug_log(f"Published {type(event).__name__} ({priority.name}) from {queued.source}")

    def publish_immediate(self, event: "SessionEvent", source: Optional[str] = None) -> None:
        """Deliver an event right away, bypassing the queue."""
        self._deliver(self._enqueue_record(event, EventPriority.CRITICAL, source or "immediate"))

    def _enqueue_record(self, event: "SessionEvent", priority: EventPriority, source: str) -> QueuedEvent:
        self._sequence += 1
        self._events_published += 1
        return QueuedEvent(event=event, sequence=self._sequence, priority=priority, source=source)

    def process_events(self, max_events: Optional[int] = None) -> int:
        """Deliver queued events, including those published while delivering.

        Args:
            max_events: Maximum number of events to deliver (None for all)

        Returns:
            Number of events delivered
        """
        processed = 0
        rounds = 0

        while self._event_queue and rounds < self.max_cascade_rounds:
            rounds += 1
            batch = sorted(self._event_queue, key=lambda queued: queued.sort_key)
            self._event_queue = []

            for index, queued in enumerate(batch):
                if max_events is not None and processed >= max_events:
                    self._event_queue = batch[index:] + self._event_queue
                    return processed
                self._deliver(queued)
                processed += 1

        if self._event_queue:
            self._debug_log(f"Stopped after {rounds} rounds with {len(self._event_queue)} events queued")
        return processed

    def _deliver(self, queued: QueuedEvent) -> None:
        event = queued.event
        self._event_history.append(queued)
        self._events_processed += 1

        self._debug_log(f"Delivering {type(event).__name__} from {queued.source} (t={event.timeline_time:.2f})")

        for subscription in list(self._subscribers.get(event.event_type, [])):
            self._notify(subscription, event)
        for subscription in list(self._universal_subscribers):
            self._notify(subscription, event)

    def _notify(self, subscription: Subscription, event: "SessionEvent") -> None:
        try:
            subscription.callback(event)
        except Exception as e:
            self._subscriber_errors += 1
            error = SubscriberError(subscription.name, type(event).__name__, event.timeline_time, str(e))
            self._errors.append(error)
            self._debug_log(f"Error in subscriber {subscription.name}: {e}")
            self._report(error)

    def _report(self, error: SubscriberError) -> None:
        # A failing error callback must not recurse into itself
        if self._error_callback is None or self._reporting_error:
            return
        self._reporting_error = True
        try:
            self._error_callback(error)
        except Exception as e:
            self._debug_log(f"Error callback failed: {e}")
        finally:
            self._reporting_error = False

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def has_queued_events(self) -> bool:
        return bool(self._event_queue)

    def clear_queue(self) -> int:
        """Drop every queued event.

        Returns:
            Number of events dropped
        """
        count = len(self._event_queue)
        self._event_queue = []
        return count

    def get_subscriber_errors(self) -> list[SubscriberError]:
        return list(self._errors)

    def get_statistics(self) -> dict[str, Any]:
        return {
            'events_published': self._events_published,
            'events_processed': self._events_processed,
            'events_queued': len(self._event_queue),
            'subscriber_errors': self._subscriber_errors,
            'subscribers_count': sum(len(subs) for subs in self._subscribers.values()),
            'universal_subscribers_count': len(self._universal_subscribers),
            'event_history_size': len(self._event_history),
        }

    def get_recent_events(self, count: int = 10) -> list[dict[str, Any]]:
        """Describe the most recently delivered events."""
        return [
            {
                'event_type': type(queued.event).__name__,
                'timeline_time': queued.event.timeline_time,
                'priority': queued.priority.name,
                'source': queued.source,
                'sequence': queued.sequence,
            }
            for queued in list(self._event_history)[-count:]
        ]

    def shutdown(self) -> None:
        """Drop every subscription, queued event and history entry."""
        self._subscribers.clear()
        self._universal_subscribers.clear()
        self._event_queue = []
        self._event_history.clear()
        self._errors.clear()
        self._error_callback = None
        self._debug_log("Event manager shut down")

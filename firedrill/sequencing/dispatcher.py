"""Routing of external events to package triggers.

The host pushes four kinds of input into the dispatcher: the session-start
signal, per-tick key state, physics contacts, and manual trigger calls (which
go straight to the scheduler). For each event the dispatcher walks the
catalog in order and triggers every enabled package listening for it.
"""

from typing import Iterable, Optional, TYPE_CHECKING

from ..core.data import ContactKind, TriggerMode
from ..core.events import ContactOccurred, KeysPressed, SessionStarted
from .filters import ContactCandidate, FilterMatcher
from .scheduler import PackageScheduler

if TYPE_CHECKING:
    from ..core.events import EventManager


class TriggerDispatcher:
    """Matches incoming events against package trigger modes."""

    def __init__(self, scheduler: PackageScheduler,
                 event_manager: Optional["EventManager"] = None):
        self.scheduler = scheduler
        self.catalog = scheduler.catalog
        self.timeline = scheduler.timeline
        self.event_manager = event_manager

        self._session_started = False
        self._held_keys: frozenset[str] = frozenset()

    @property
    def session_started(self) -> bool:
        return self._session_started

    def start_session(self) -> list[int]:
        """Fire ON_SESSION_START packages; only the first call has effect.

        Returns:
            Ids of the packages that started a run
        """
        if self._session_started:
            return []
        self._session_started = True
        self._publish(SessionStarted(self.timeline.current_time))
        return self._dispatch(self.catalog.with_mode(TriggerMode.ON_SESSION_START))

    def tick(self, elapsed: float, active_keys: Iterable[str] = ()) -> list[int]:
        """Advance the session by one host frame.

        Keys that are in ``active_keys`` but were not held on the previous
        tick count as pressed this tick. Pressed keys are dispatched before
        the timeline advances by ``elapsed``.

        Returns:
            Ids of the packages started by key presses
        """
        self._ensure_started()
        self.scheduler.resume_deferred()

        keys = _normalize_keys(active_keys)
        pressed = keys - self._held_keys
        self._held_keys = keys

        started = self.keys_pressed(pressed) if pressed else []
        self.timeline.advance(elapsed)
        return started

    def keys_pressed(self, pressed: Iterable[str]) -> list[int]:
        """Dispatch keys that transitioned to pressed."""
        self._ensure_started()
        pressed = _normalize_keys(pressed)
        if not pressed:
            return []
        self._publish(KeysPressed(self.timeline.current_time, pressed))
        matches = [
            package for package in self.catalog.with_mode(TriggerMode.KEY_POLL)
            if package.key and package.key.upper() in pressed
        ]
        return self._dispatch(matches)

    def contact(self, kind: ContactKind, other: Optional[ContactCandidate]) -> list[int]:
        """Dispatch a physics contact with the other party ``other``."""
        self._ensure_started()
        self._publish(ContactOccurred(self.timeline.current_time, kind, other))
        matches = [
            package for package in self.catalog.with_mode(kind.trigger_mode)
            if FilterMatcher.matches(package.filter, other)
        ]
        return self._dispatch(matches)

    def collision_enter(self, other: Optional[ContactCandidate]) -> list[int]:
        return self.contact(ContactKind.COLLISION, other)

    def trigger_enter(self, other: Optional[ContactCandidate]) -> list[int]:
        return self.contact(ContactKind.TRIGGER_VOLUME, other)

    def _ensure_started(self) -> None:
        # Session-start packages always get the first dispatch pass.
        if not self._session_started:
            self.start_session()

    def _dispatch(self, packages) -> list[int]:
        started = []
        with self.scheduler.dispatch_pass():
            for package in packages:
                if self.scheduler.trigger(package.id):
                    started.append(package.id)
        return started

    def _publish(self, event) -> None:
        if self.event_manager is not None:
            self.event_manager.publish(event, source="TriggerDispatcher")


def _normalize_keys(keys: Iterable[str]) -> frozenset[str]:
    return frozenset(str(key).strip().upper() for key in keys if key)

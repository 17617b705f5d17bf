"""Base class for scenario components that live on the session timeline."""

from typing import Optional, TYPE_CHECKING

from ..core.events import LogMessage

if TYPE_CHECKING:
    from ..core.engine import Timeline
    from ..core.events import EventManager, SessionEvent


class SessionComponent:
    """Gives a component the session clock and a way to publish events."""

    # Prefix of the timeline owner ids this component schedules under
    owner_prefix = "component"

    def __init__(self, timeline: "Timeline", event_manager: Optional["EventManager"] = None):
        self.timeline = timeline
        self.event_manager = event_manager
        self._owner_counter = 0

    @property
    def now(self) -> float:
        return self.timeline.current_time

    def _new_owner_id(self) -> str:
        self._owner_counter += 1
        return f"{self.owner_prefix}-{id(self)}-{self._owner_counter}"

    def _publish(self, event: "SessionEvent") -> None:
        if self.event_manager is not None:
            self.event_manager.publish(event, source=type(self).__name__)

    def _log(self, message: str, category: str = "SCENARIO") -> None:
        self._publish(LogMessage(self.now, message, category, source=type(self).__name__))

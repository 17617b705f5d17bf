"""Debounced visibility for gesture-driven objects.

Hand tracking reports a gesture lost for a frame or two while the hand is
still making it. The stabilizer shows its target as soon as the gesture is
found and only hides it once the gesture has stayed lost for ``loss_delay``
seconds.
"""

from typing import Optional, TYPE_CHECKING

from .components import SessionComponent

if TYPE_CHECKING:
    from ..core.engine import Timeline
    from ..core.entities import SceneEntity
    from ..core.events import EventManager


class GestureStabilizer(SessionComponent):
    """Shows a target while a gesture is held, hiding it after a grace delay."""

    owner_prefix = "gesture"

    def __init__(
        self,
        timeline: "Timeline",
        target: Optional["SceneEntity"],
        loss_delay: float = 1.0,
        host: Optional["SceneEntity"] = None,
        name: str = "Gesture",
        event_manager: Optional["EventManager"] = None,
    ):
        """Initialize the stabilizer.

        Args:
            timeline: Session timeline the hide is scheduled on
            target: Entity shown while the gesture is held
            loss_delay: Seconds the gesture must stay lost before hiding
            host: Entity the stabilizer lives on; while it is inactive in the
                hierarchy a lost gesture schedules nothing
            name: Name used in log messages
            event_manager: Optional bus for log events
        """
        super().__init__(timeline, event_manager)
        if loss_delay < 0:
            raise ValueError(f"Gesture stabilizer '{name}' has a negative loss delay")
        self.target = target
        self.loss_delay = loss_delay
        self.host = host
        self.name = name
        self._owner = self._new_owner_id()

    @property
    def is_hide_pending(self) -> bool:
        return self.timeline.has_entries_for(self._owner)

    def on_gesture_found(self) -> None:
        self.timeline.remove_entry(self._owner)
        if self.target is not None:
            self.target.set_active(True)

    def on_gesture_lost(self) -> bool:
        """Start the countdown to hiding the target.

        A countdown already running is restarted.

        Returns:
            True if a hide was scheduled
        """
        if self.host is not None and not self.host.active_in_hierarchy:
            return False

        self.timeline.remove_entry(self._owner)
        self.timeline.schedule(self.loss_delay, self._hide, self._owner,
                               description=f"hide {self.name} target")
        return True

    def _hide(self) -> None:
        if self.target is not None:
            self.target.set_active(False)
        self._log(f"{self.name} lost", category="INPUT")

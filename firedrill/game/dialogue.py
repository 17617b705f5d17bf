"""Timed dialogue popups for step-by-step guidance."""

from dataclasses import dataclass
from typing import Optional, Sequence, TYPE_CHECKING

from ..core.events import DialogueShown
from .components import SessionComponent

if TYPE_CHECKING:
    from ..core.engine import Timeline
    from ..core.entities import SceneEntity
    from ..core.events import EventManager


MIN_STEP_DURATION = 0.1


@dataclass(frozen=True)
class StepMessage:
    """One scripted guidance message."""
    text: str = "Step text..."
    duration: float = 3.0

    def __post_init__(self):
        if self.duration < MIN_STEP_DURATION:
            object.__setattr__(self, "duration", MIN_STEP_DURATION)


class StepDialogue(SessionComponent):
    """Shows one message at a time on a dialogue panel.

    A message stays up for its duration and then the panel hides. With
    ``interrupt_current`` a new message replaces the one on screen and its
    pending hide is cancelled; without it, the earlier hide still fires and
    may cut the newer message short.
    """

    owner_prefix = "dialogue"

    def __init__(
        self,
        timeline: "Timeline",
        steps: Sequence[StepMessage] = (),
        panel: Optional["SceneEntity"] = None,
        hide_on_start: bool = True,
        interrupt_current: bool = True,
        event_manager: Optional["EventManager"] = None,
    ):
        super().__init__(timeline, event_manager)
        self.steps = list(steps)
        self.panel = panel
        self.interrupt_current = interrupt_current
        self.text = ""
        self._current_owner: Optional[str] = None

        if hide_on_start and panel is not None:
            panel.set_active(False)

    @property
    def is_showing(self) -> bool:
        return self._current_owner is not None

    def show_step(self, step_index: int) -> bool:
        """Show a scripted step; out-of-range indices are ignored."""
        if not 0 <= step_index < len(self.steps):
            return False
        step = self.steps[step_index]
        self.show_custom(step.text, step.duration)
        return True

    def show_custom(self, text: str, seconds: float) -> None:
        """Show arbitrary text for a number of seconds."""
        if self.interrupt_current and self._current_owner is not None:
            self.timeline.remove_entry(self._current_owner)

        owner = self._new_owner_id()
        self._current_owner = owner

        if self.panel is not None:
            self.panel.set_active(True)
        self.text = text
        self._publish(DialogueShown(self.now, text, seconds))
        self._log(f"Dialogue: {text}", category="UI")

        self.timeline.schedule(seconds, lambda: self._expire(owner), owner,
                               description="hide dialogue")

    def hide_now(self) -> None:
        if self._current_owner is not None:
            self.timeline.remove_entry(self._current_owner)
        self._current_owner = None
        if self.panel is not None:
            self.panel.set_active(False)

    def _expire(self, owner: str) -> None:
        if self.panel is not None:
            self.panel.set_active(False)
        if self._current_owner == owner:
            self._current_owner = None

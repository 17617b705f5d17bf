"""Guidance prompts that show dialogue when the trainee needs a hint."""

from typing import Optional, TYPE_CHECKING

from ..core.data import Vector3
from .components import SessionComponent

if TYPE_CHECKING:
    from ..core.engine import Timeline
    from ..core.entities import ParticleEmitterHandle, SceneEntity
    from ..core.events import EventManager
    from .alarm_countdown import AlarmCountdown
    from .dialogue import StepDialogue


DEFAULT_FIRE_WAIT = 3.0


class FireStartPrompt(SessionComponent):
    """Tells the trainee to raise the alarm once the fire is fully visible.

    The prompt is skipped if the scenario has already failed or the alarm is
    already running by then.
    """

    owner_prefix = "fire-start-prompt"

    def __init__(
        self,
        timeline: "Timeline",
        dialogue: Optional["StepDialogue"] = None,
        alarm: Optional["AlarmCountdown"] = None,
        failed_window: Optional["SceneEntity"] = None,
        fire_emitter: Optional["ParticleEmitterHandle"] = None,
        buffer_time: float = 1.0,
        message: str = "Press the Fire Alarm Button!",
        show_duration: float = 4.0,
        event_manager: Optional["EventManager"] = None,
    ):
        super().__init__(timeline, event_manager)
        self.dialogue = dialogue
        self.alarm = alarm
        self.failed_window = failed_window
        self.fire_emitter = fire_emitter
        self.buffer_time = buffer_time
        self.message = message
        self.show_duration = show_duration
        self.shown = False

    def calculate_wait_time(self) -> float:
        """Seconds until the fire reaches its steady state, plus a buffer."""
        if self.fire_emitter is None:
            return DEFAULT_FIRE_WAIT
        return self.fire_emitter.start_delay + self.fire_emitter.start_lifetime + self.buffer_time

    def start(self) -> None:
        self.timeline.schedule(self.calculate_wait_time(), self._check_and_show,
                               self._new_owner_id(), description="fire start prompt")

    def _check_and_show(self) -> None:
        if self.failed_window is not None and self.failed_window.active_in_hierarchy:
            return
        if self.alarm is not None and self.alarm.is_running():
            return
        if self.dialogue is not None:
            self.dialogue.show_custom(self.message, self.show_duration)
            self.shown = True


class ProximityGuidancePrompt:
    """Shows a hint when the player's head comes near a point of interest."""

    def __init__(
        self,
        position: Vector3,
        dialogue: Optional["StepDialogue"] = None,
        player_head: Optional["SceneEntity"] = None,
        message: str = "Do something here...",
        show_for_seconds: float = 2.5,
        trigger_distance: float = 1.5,
        show_only_once: bool = True,
        cooldown_seconds: float = 2.0,
    ):
        self.position = position
        self.dialogue = dialogue
        self.player_head = player_head
        self.message = message
        self.show_for_seconds = max(0.1, show_for_seconds)
        self.trigger_distance = max(0.1, trigger_distance)
        self.show_only_once = show_only_once
        self.cooldown_seconds = max(0.0, cooldown_seconds)

        self.has_shown = False
        self._cooldown = 0.0

    def update(self, elapsed: float) -> bool:
        """Check the distance for one frame.

        Returns:
            True if the message was shown this frame
        """
        if self.dialogue is None or self.player_head is None:
            return False

        if self._cooldown > 0:
            self._cooldown -= elapsed
            return False

        if self.show_only_once and self.has_shown:
            return False

        if self.player_head.position.distance_to(self.position) <= self.trigger_distance:
            self.dialogue.show_custom(self.message, self.show_for_seconds)
            self.has_shown = True
            self._cooldown = self.cooldown_seconds
            return True
        return False


class ExtinguisherTutorial:
    """Explains how to use the extinguisher the first time it is picked up."""

    def __init__(
        self,
        dialogue: Optional["StepDialogue"] = None,
        message: str = "Aim at the base of the fire and press the TRIGGER to spray!",
        message_duration: float = 6.0,
    ):
        self.dialogue = dialogue
        self.message = message
        self.message_duration = message_duration
        self.has_picked_up = False

    def on_picked_up(self) -> bool:
        if self.has_picked_up:
            return False
        self.has_picked_up = True
        if self.dialogue is not None:
            self.dialogue.show_custom(self.message, self.message_duration)
        return True

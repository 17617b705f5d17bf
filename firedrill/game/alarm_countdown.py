"""Evacuation countdown started by the fire alarm.

Once the alarm is raised the trainee has a fixed amount of time to carry
out the safety steps. The countdown ticks on the session timeline, turns to
danger styling near the end, and fails the scenario when it runs out unless
it is cancelled first.
"""

import math
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from ..core.data import TimerStyle, lerp
from ..core.events import AlarmCancelled, AlarmStarted, RestartRequested, ScenarioFailed
from .components import SessionComponent

if TYPE_CHECKING:
    from ..core.engine import Timeline
    from ..core.entities import SceneEntity
    from ..core.events import EventManager


DEFAULT_TIMEOUT_MESSAGE = "TIME OUT!\nYou did not trigger the correct safety steps in time."
DEFAULT_CENTER_MESSAGE = "YOU FAILED TO CONTROL THE FIRE."


def format_countdown(seconds: float) -> str:
    """Format remaining seconds as MM:SS, rounding partial seconds up."""
    total = max(0, math.ceil(seconds))
    minutes, remaining = divmod(total, 60)
    return f"{minutes:02d}:{remaining:02d}"


@dataclass
class AlarmSettings:
    """Tunable countdown behaviour."""
    total_seconds: float = 60.0
    ui_tick_interval: float = 1.0
    red_in_last_seconds: float = 10.0

    pulse_in_danger: bool = True
    pulse_speed: float = 3.0
    pulse_min_scale: float = 0.92

    hide_timer_until_start: bool = True
    show_failure_window_on_end: bool = True
    hide_timer_on_failure: bool = True

    timeout_failure_message: str = DEFAULT_TIMEOUT_MESSAGE
    center_failure_message: str = DEFAULT_CENTER_MESSAGE
    # 0 keeps the center message up; otherwise hide it and request a restart
    center_message_duration: float = 0.0

    def __post_init__(self):
        self.total_seconds = max(1.0, self.total_seconds)
        self.ui_tick_interval = max(0.05, self.ui_tick_interval)
        self.red_in_last_seconds = max(0.0, self.red_in_last_seconds)
        self.pulse_speed = max(0.1, self.pulse_speed)
        self.pulse_min_scale = min(1.0, max(0.7, self.pulse_min_scale))


@dataclass
class TimerDisplay:
    """What the countdown UI should currently show."""
    text: str = "00:00"
    visible: bool = True
    style: TimerStyle = TimerStyle.NORMAL
    scale: float = 1.0
    center_message: str = ""
    center_visible: bool = False
    failure_reason: str = ""


class AlarmCountdown(SessionComponent):
    """Countdown with danger styling and timeout failure."""

    owner_prefix = "alarm"

    def __init__(
        self,
        timeline: "Timeline",
        settings: Optional[AlarmSettings] = None,
        failed_window: Optional["SceneEntity"] = None,
        event_manager: Optional["EventManager"] = None,
    ):
        super().__init__(timeline, event_manager)
        self.settings = settings or AlarmSettings()
        self.failed_window = failed_window
        self.display = TimerDisplay()

        self.remaining = self.settings.total_seconds
        self._running = False
        self._owner: Optional[str] = None

        if self.failed_window is not None:
            self.failed_window.set_active(False)
        self.display.visible = not self.settings.hide_timer_until_start
        self._update_text(self.settings.total_seconds)

    def is_running(self) -> bool:
        return self._running

    def start(self) -> bool:
        """Begin the countdown; ignored while one is already running."""
        if self._running:
            return False

        self._running = True
        self.remaining = self.settings.total_seconds
        self._owner = self._new_owner_id()

        if self.settings.hide_timer_until_start:
            self.display.visible = True
        self._apply_normal_style()
        self._update_text(self.remaining)

        self._publish(AlarmStarted(self.now, self.settings.total_seconds))
        self._log(f"Alarm countdown started ({format_countdown(self.remaining)})")
        self._step()
        return True

    def cancel(self) -> bool:
        """Stop the countdown because the trainee succeeded in time."""
        if not self._running:
            return False

        self._running = False
        if self._owner is not None:
            self.timeline.remove_entry(self._owner)
        self._owner = None

        if self.settings.hide_timer_until_start:
            self.display.visible = False
        self._apply_normal_style()

        self._publish(AlarmCancelled(self.now, self.remaining))
        self._log("Alarm countdown cancelled")
        return True

    def trigger_failure(self, reason: Optional[str] = None) -> None:
        """Show the failure UI; also callable by other components."""
        if reason is None or not reason.strip():
            reason = self.settings.timeout_failure_message

        if self.failed_window is not None:
            self.failed_window.set_active(True)
        self.display.failure_reason = reason

        if self.settings.hide_timer_on_failure:
            self.display.visible = False

        self.display.center_message = self.settings.center_failure_message
        self.display.center_visible = True
        if self.settings.center_message_duration > 0:
            self.timeline.schedule(
                self.settings.center_message_duration,
                self._hide_center_message,
                self._new_owner_id(),
                description="hide failure message",
            )

        self._publish(ScenarioFailed(self.now, reason))
        self._log(f"Scenario failed: {reason}")

    def _step(self) -> None:
        if not self._running:
            return

        if self.remaining <= 0:
            self._running = False
            self._owner = None
            if self.settings.show_failure_window_on_end:
                self.trigger_failure(self.settings.timeout_failure_message)
            return

        self.remaining = max(0.0, self.remaining - self.settings.ui_tick_interval)
        self._update_text(self.remaining)

        if self.remaining <= self.settings.red_in_last_seconds:
            self._apply_danger_style()
        else:
            self._apply_normal_style()

        self.timeline.schedule(self.settings.ui_tick_interval, self._step, self._owner,
                               description="countdown tick")

    def _hide_center_message(self) -> None:
        self.display.center_visible = False
        self._publish(RestartRequested(self.now, source=type(self).__name__))

    def _update_text(self, seconds: float) -> None:
        self.display.text = format_countdown(seconds)

    def _apply_normal_style(self) -> None:
        self.display.style = TimerStyle.NORMAL
        self.display.scale = 1.0

    def _apply_danger_style(self) -> None:
        self.display.style = TimerStyle.DANGER
        if not self.settings.pulse_in_danger:
            return
        t = abs(math.sin(self.now * self.settings.pulse_speed))
        self.display.scale = lerp(self.settings.pulse_min_scale, 1.0, t)

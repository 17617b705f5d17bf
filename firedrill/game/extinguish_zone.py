"""Fire zone that reacts to extinguisher fumes.

Spraying the correct agent into the zone builds up progress; once enough
has accumulated the fire goes out. Spraying the wrong agent makes the fire
worse and ends the scenario.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, TYPE_CHECKING

from ..core.data import Vector3, smooth_step
from ..core.events import FireExtinguished, ScenarioFailed
from .components import SessionComponent

if TYPE_CHECKING:
    from ..core.engine import Timeline
    from ..core.entities import AudioSourceHandle, ParticleEmitterHandle, SceneEntity
    from ..core.events import EventManager


PROGRESS_DECAY_RATE = 0.5
WRONG_FUMES_REASON = "WRONG EXTINGUISHER!\nFire Intensified."


@dataclass
class FireZoneSettings:
    """Tunable fire zone behaviour."""
    correct_fumes_tag: str = "FumesClassD"
    wrong_fumes_tag: str = "FumesWater"
    seconds_to_extinguish: float = 2.0
    success_appear_duration: float = 1.5
    fire_boost_multiplier: float = 1.5
    warning_duration: float = 3.0
    disable_root_delay: float = 2.0


@dataclass
class FireZoneActuators:
    """Scene objects the zone drives; any of them may be missing."""
    success_object: Optional["SceneEntity"] = None
    turn_on_when_extinguished: Sequence[Optional["SceneEntity"]] = ()
    turn_off_when_extinguished: Sequence[Optional["SceneEntity"]] = ()
    wrong_fumes_warning: Optional["SceneEntity"] = None
    failure_audio: Optional["AudioSourceHandle"] = None
    fire_particles: Sequence[Optional["ParticleEmitterHandle"]] = ()
    fire_root: Optional["SceneEntity"] = None
    failed_window: Optional["SceneEntity"] = None
    locomotion: Optional["SceneEntity"] = None


@dataclass
class _EmitterBaseline:
    start_size: float
    emission_rate: float


@dataclass
class _SuccessAnimation:
    elapsed: float = 0.0
    target_scale: Vector3 = field(default_factory=Vector3.one)


class FireExtinguishZone(SessionComponent):
    """Progress, success and failure logic of one fire."""

    owner_prefix = "fire-zone"

    def __init__(
        self,
        zone: "SceneEntity",
        timeline: "Timeline",
        settings: Optional[FireZoneSettings] = None,
        actuators: Optional[FireZoneActuators] = None,
        event_manager: Optional["EventManager"] = None,
    ):
        super().__init__(timeline, event_manager)
        self.zone = zone
        self.settings = settings or FireZoneSettings()
        self.actuators = actuators or FireZoneActuators()

        self.progress = 0.0
        self.extinguished = False
        self.boosted = False
        self.warning_active = False
        self.is_game_over = False
        self.failure_reason = ""
        self._correct_fumes_inside = 0
        self._owner = self._new_owner_id()
        self._animation: Optional[_SuccessAnimation] = None

        # Originals for reset_simulation()
        self._zone_scale = zone.scale
        success = self.actuators.success_object
        self._success_scale = success.scale if success is not None else Vector3.one()
        self._baselines = {
            id(ps): _EmitterBaseline(ps.start_size, ps.emission_rate)
            for ps in self.actuators.fire_particles if ps is not None
        }

        if success is not None:
            success.set_active(False)
        if self.actuators.wrong_fumes_warning is not None:
            self.actuators.wrong_fumes_warning.set_active(False)

    @property
    def name(self) -> str:
        return self.zone.name

    @property
    def correct_fumes_inside(self) -> int:
        return self._correct_fumes_inside

    # ------------------------------------------------------------------
    # Host input
    # ------------------------------------------------------------------

    def update(self, elapsed: float) -> None:
        """Advance progress (or the success animation) by one frame."""
        if self.extinguished:
            self._animate_success(elapsed)
            return

        if self._correct_fumes_inside > 0:
            self.progress += elapsed
            if self.progress >= self.settings.seconds_to_extinguish:
                self._extinguish()
        else:
            self.progress = max(0.0, self.progress - PROGRESS_DECAY_RATE * elapsed)

    def on_trigger_enter(self, other: "SceneEntity") -> None:
        if self.is_game_over or self.extinguished:
            return

        if other.compare_tag(self.settings.wrong_fumes_tag):
            if not self.warning_active:
                self._show_wrong_warning()
            if not self.boosted:
                self._boost_fire()
        elif other.compare_tag(self.settings.correct_fumes_tag):
            self._correct_fumes_inside += 1

    def on_trigger_exit(self, other: "SceneEntity") -> None:
        if other.compare_tag(self.settings.correct_fumes_tag):
            self._correct_fumes_inside = max(0, self._correct_fumes_inside - 1)

    # ------------------------------------------------------------------
    # Outcomes
    # ------------------------------------------------------------------

    def _boost_fire(self) -> None:
        self.boosted = True
        self.is_game_over = True
        multiplier = self.settings.fire_boost_multiplier
        acts = self.actuators

        if acts.failure_audio is not None:
            acts.failure_audio.play()

        self.zone.scale = self._zone_scale * multiplier

        for ps in acts.fire_particles:
            if ps is None:
                continue
            ps.start_size *= multiplier
            ps.emission_rate *= multiplier

        if acts.failed_window is not None:
            acts.failed_window.set_active(True)
            self.failure_reason = WRONG_FUMES_REASON

        # Keeps the trainee in place looking at the failure message
        if acts.locomotion is not None:
            acts.locomotion.set_active(False)

        self._publish(ScenarioFailed(self.now, WRONG_FUMES_REASON))
        self._log(f"Wrong extinguisher used on {self.name}; fire boosted")

    def _show_wrong_warning(self) -> None:
        self.warning_active = True
        warning = self.actuators.wrong_fumes_warning
        if warning is not None:
            warning.set_active(True)

        def hide() -> None:
            if warning is not None:
                warning.set_active(False)
            self.warning_active = False

        self.timeline.schedule(self.settings.warning_duration, hide, self._owner,
                               description="hide wrong fumes warning")

    def _extinguish(self) -> None:
        self.extinguished = True
        acts = self.actuators

        for ps in acts.fire_particles:
            if ps is not None:
                ps.stop()

        for obj in acts.turn_on_when_extinguished:
            if obj is not None:
                obj.set_active(True)
        for obj in acts.turn_off_when_extinguished:
            if obj is not None:
                obj.set_active(False)

        self._publish(FireExtinguished(self.now, self.name))
        self._log(f"Fire {self.name} extinguished")

        success = acts.success_object
        if success is not None:
            success.set_active(True)
            success.scale = Vector3.zero()
            self._animation = _SuccessAnimation(target_scale=self._success_scale)
            if self.settings.success_appear_duration <= 0:
                self._animate_success(0.0)
        else:
            self._schedule_root_disable()

    def _animate_success(self, elapsed: float) -> None:
        animation = self._animation
        success = self.actuators.success_object
        if animation is None or success is None:
            return

        animation.elapsed += elapsed
        duration = self.settings.success_appear_duration
        if duration <= 0 or animation.elapsed >= duration:
            success.scale = animation.target_scale
            self._animation = None
            self._schedule_root_disable()
            return

        factor = smooth_step(0.0, 1.0, animation.elapsed / duration)
        success.scale = animation.target_scale * factor

    def _schedule_root_disable(self) -> None:
        def disable_root() -> None:
            if self.actuators.fire_root is not None:
                self.actuators.fire_root.set_active(False)

        self.timeline.schedule(self.settings.disable_root_delay, disable_root, self._owner,
                               description="disable fire root")

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset_simulation(self) -> None:
        """Restore the fire and every actuator to the starting state."""
        self.timeline.remove_entry(self._owner)
        self._animation = None

        self.is_game_over = False
        self.extinguished = False
        self.boosted = False
        self.progress = 0.0
        self._correct_fumes_inside = 0
        self.warning_active = False
        self.failure_reason = ""

        acts = self.actuators
        if acts.locomotion is not None:
            acts.locomotion.set_active(True)
        if acts.failed_window is not None:
            acts.failed_window.set_active(False)
        if acts.fire_root is not None:
            acts.fire_root.set_active(True)
        self.zone.scale = self._zone_scale

        for ps in acts.fire_particles:
            if ps is None:
                continue
            baseline = self._baselines.get(id(ps))
            if baseline is not None:
                ps.start_size = baseline.start_size
                ps.emission_rate = baseline.emission_rate
            ps.play()

        if acts.success_object is not None:
            acts.success_object.set_active(False)
            acts.success_object.scale = self._success_scale
        if acts.wrong_fumes_warning is not None:
            acts.wrong_fumes_warning.set_active(False)

        for obj in acts.turn_on_when_extinguished:
            if obj is not None:
                obj.set_active(False)
        for obj in acts.turn_off_when_extinguished:
            if obj is not None:
                obj.set_active(True)

        self._log(f"Fire {self.name} reset")

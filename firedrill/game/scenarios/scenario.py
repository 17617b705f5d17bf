"""Scenario container tying the package catalog to the scene and its components.

A ScenarioDefinition is everything needed to build a TrainingSession: the
scene registry, the package catalog, and the settings of each optional
scenario component. Component sections are None when the scenario file does
not configure that component.
"""

from dataclasses import dataclass, field
from typing import Optional

from ...core.data import RevertTiming, Vector3
from ...core.entities import SceneRegistry
from ...sequencing import PackageCatalog
from ..alarm_countdown import AlarmSettings
from ..dialogue import StepMessage
from ..extinguish_zone import FireZoneSettings


@dataclass
class DialogueConfig:
    steps: list[StepMessage] = field(default_factory=list)
    panel: Optional[str] = None
    hide_on_start: bool = True
    interrupt_current: bool = True
    show_first_step_on_start: bool = True


@dataclass
class AlarmConfig:
    settings: AlarmSettings = field(default_factory=AlarmSettings)
    failed_window: Optional[str] = None


@dataclass
class LightPulserConfig:
    lights: list[str] = field(default_factory=list)
    min_intensity: float = 0.0
    max_intensity: float = 5.0
    pulse_speed: float = 2.0
    force_color: bool = True


@dataclass
class FireStartPromptConfig:
    message: str = "Press the Fire Alarm Button!"
    show_duration: float = 4.0
    buffer_time: float = 1.0
    fire_emitter: Optional[str] = None
    failed_window: Optional[str] = None


@dataclass
class ProximityPromptConfig:
    position: Vector3
    message: str = "Do something here..."
    show_for_seconds: float = 2.5
    trigger_distance: float = 1.5
    show_only_once: bool = True
    cooldown_seconds: float = 2.0
    player_head: Optional[str] = None


@dataclass
class TutorialConfig:
    message: str = "Aim at the base of the fire and press the TRIGGER to spray!"
    message_duration: float = 6.0


@dataclass
class GestureStabilizerConfig:
    name: str
    target: Optional[str] = None
    loss_delay: float = 1.0
    host: Optional[str] = None


@dataclass
class FireZoneConfig:
    zone: str
    settings: FireZoneSettings = field(default_factory=FireZoneSettings)
    success_object: Optional[str] = None
    turn_on_when_extinguished: list[str] = field(default_factory=list)
    turn_off_when_extinguished: list[str] = field(default_factory=list)
    wrong_fumes_warning: Optional[str] = None
    failure_audio: Optional[str] = None
    fire_particles: list[str] = field(default_factory=list)
    fire_root: Optional[str] = None
    failed_window: Optional[str] = None
    locomotion: Optional[str] = None


@dataclass
class ScenarioDefinition:
    """Container for all scenario data."""

    name: str
    description: str = ""
    author: str = "Unknown"

    registry: SceneRegistry = field(default_factory=SceneRegistry)
    catalog: PackageCatalog = field(default_factory=PackageCatalog)
    revert_timing: RevertTiming = RevertTiming.CONCURRENT

    # Package id -> phase ("started"/"executed"/"completed") -> hook commands
    hook_commands: dict[int, dict[str, list[str]]] = field(default_factory=dict)

    dialogue: Optional[DialogueConfig] = None
    alarm: Optional[AlarmConfig] = None
    light_pulser: Optional[LightPulserConfig] = None
    fire_start_prompt: Optional[FireStartPromptConfig] = None
    proximity_prompts: list[ProximityPromptConfig] = field(default_factory=list)
    tutorial: Optional[TutorialConfig] = None
    fire_zones: list[FireZoneConfig] = field(default_factory=list)
    gesture_stabilizers: list[GestureStabilizerConfig] = field(default_factory=list)

    # File the scenario was loaded from, used to reload on restart
    source_path: Optional[str] = None

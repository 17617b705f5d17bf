"""
Training session orchestration.

This module wires a loaded scenario into a runnable session: the timeline,
the event bus, logging, the package sequencing engine and the scenario
components. The host drives it frame by frame through tick() and forwards
contacts and interactions; everything else happens on the session timeline.
"""

import random
import shlex
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from ..core.data import ContactKind
from ..core.engine import Timeline
from ..core.entities import SceneEntity
from ..core.events import EventManager, EventType, LogMessage, LogSaveRequested
from ..sequencing import ActionExecutor, Package, PackageScheduler, TriggerDispatcher
from ..sequencing.catalog import PackageRef
from ..sequencing.filters import ContactCandidate
from .alarm_countdown import AlarmCountdown
from .dialogue import StepDialogue
from .extinguish_zone import FireExtinguishZone, FireZoneActuators
from .gesture_stabilizer import GestureStabilizer
from .light_pulser import AlarmLightPulser
from .managers.log_manager import LogManager
from .prompts import ExtinguisherTutorial, FireStartPrompt, ProximityGuidancePrompt
from .scenarios.scenario import FireZoneConfig, ScenarioDefinition
from .scenarios.scenario_loader import ScenarioLoader


HookCommand = Callable[[Package], None]


class TrainingSession:
    """Runs one scenario from session start until restart or shutdown."""

    def __init__(
        self,
        definition: ScenarioDefinition,
        rng: Optional[random.Random] = None,
        enable_debug_logging: bool = False,
    ):
        """Initialize the session.

        Args:
            definition: Loaded scenario
            rng: Random source for one-shot clip selection
            enable_debug_logging: Whether the event bus logs its traffic

        Raises:
            ValueError: If a hook command or component reference is invalid
        """
        self.definition = definition
        self.registry = definition.registry
        self.rng = rng

        # Hook commands are bound to this copy, never to the shared definition
        self.catalog = definition.catalog.with_own_hooks()

        self.timeline = Timeline()
        self.event_manager = EventManager(enable_debug_logging=enable_debug_logging)
        self.log_manager = LogManager(self.event_manager)

        self.scheduler = PackageScheduler(
            self.catalog,
            self.timeline,
            event_manager=self.event_manager,
            executor=ActionExecutor(rng),
            revert_timing=definition.revert_timing,
        )
        self.dispatcher = TriggerDispatcher(self.scheduler, self.event_manager)

        self.failed = False
        self.failure_reason = ""
        self.restart_requested = False
        self.extinguished_zones: list[str] = []
        self._pulsing = False

        self._build_components()
        self._setup_event_subscriptions()
        self._bind_hook_commands()

    @classmethod
    def from_file(cls, file_path: Union[str, Path], **kwargs) -> "TrainingSession":
        """Load a scenario file and build a session for it."""
        return cls(ScenarioLoader.load_from_file(file_path), **kwargs)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _build_components(self) -> None:
        definition = self.definition
        registry = self.registry

        self.dialogue: Optional[StepDialogue] = None
        if definition.dialogue is not None:
            cfg = definition.dialogue
            self.dialogue = StepDialogue(
                self.timeline,
                steps=cfg.steps,
                panel=registry.entity(cfg.panel),
                hide_on_start=cfg.hide_on_start,
                interrupt_current=cfg.interrupt_current,
                event_manager=self.event_manager,
            )

        self.alarm: Optional[AlarmCountdown] = None
        if definition.alarm is not None:
            self.alarm = AlarmCountdown(
                self.timeline,
                settings=definition.alarm.settings,
                failed_window=registry.entity(definition.alarm.failed_window),
                event_manager=self.event_manager,
            )

        self.light_pulser: Optional[AlarmLightPulser] = None
        if definition.light_pulser is not None:
            cfg = definition.light_pulser
            lights = [registry.light(name) for name in cfg.lights]
            self.light_pulser = AlarmLightPulser(
                [light for light in lights if light is not None],
                min_intensity=cfg.min_intensity,
                max_intensity=cfg.max_intensity,
                pulse_speed=cfg.pulse_speed,
                force_color=cfg.force_color,
            )

        self.fire_start_prompt: Optional[FireStartPrompt] = None
        if definition.fire_start_prompt is not None:
            cfg = definition.fire_start_prompt
            self.fire_start_prompt = FireStartPrompt(
                self.timeline,
                dialogue=self.dialogue,
                alarm=self.alarm,
                failed_window=registry.entity(cfg.failed_window),
                fire_emitter=registry.emitter(cfg.fire_emitter),
                buffer_time=cfg.buffer_time,
                message=cfg.message,
                show_duration=cfg.show_duration,
                event_manager=self.event_manager,
            )

        self.proximity_prompts = [
            ProximityGuidancePrompt(
                cfg.position,
                dialogue=self.dialogue,
                player_head=registry.entity(cfg.player_head),
                message=cfg.message,
                show_for_seconds=cfg.show_for_seconds,
                trigger_distance=cfg.trigger_distance,
                show_only_once=cfg.show_only_once,
                cooldown_seconds=cfg.cooldown_seconds,
            )
            for cfg in definition.proximity_prompts
        ]

        self.tutorial: Optional[ExtinguisherTutorial] = None
        if definition.tutorial is not None:
            self.tutorial = ExtinguisherTutorial(
                dialogue=self.dialogue,
                message=definition.tutorial.message,
                message_duration=definition.tutorial.message_duration,
            )

        self.fire_zones: dict[str, FireExtinguishZone] = {}
        for cfg in definition.fire_zones:
            zone = self._build_fire_zone(cfg)
            self.fire_zones[zone.name] = zone

        self.gesture_stabilizers: dict[str, GestureStabilizer] = {}
        for cfg in definition.gesture_stabilizers:
            target = registry.entity(cfg.target)
            if cfg.target and target is None:
                raise ValueError(f"Gesture target '{cfg.target}' is not in the scene")
            self.gesture_stabilizers[cfg.name] = GestureStabilizer(
                self.timeline,
                target,
                loss_delay=cfg.loss_delay,
                host=registry.entity(cfg.host),
                name=cfg.name,
                event_manager=self.event_manager,
            )

    def _build_fire_zone(self, cfg: FireZoneConfig) -> FireExtinguishZone:
        registry = self.registry
        zone_entity = registry.entity(cfg.zone)
        if zone_entity is None:
            raise ValueError(f"Fire zone entity '{cfg.zone}' is not in the scene")

        actuators = FireZoneActuators(
            success_object=registry.entity(cfg.success_object),
            turn_on_when_extinguished=[registry.entity(n) for n in cfg.turn_on_when_extinguished],
            turn_off_when_extinguished=[registry.entity(n) for n in cfg.turn_off_when_extinguished],
            wrong_fumes_warning=registry.entity(cfg.wrong_fumes_warning),
            failure_audio=registry.audio_source(cfg.failure_audio),
            fire_particles=[registry.emitter(n) for n in cfg.fire_particles],
            fire_root=registry.entity(cfg.fire_root),
            failed_window=registry.entity(cfg.failed_window),
            locomotion=registry.entity(cfg.locomotion),
        )
        return FireExtinguishZone(zone_entity, self.timeline, cfg.settings, actuators,
                                  event_manager=self.event_manager)

    def _setup_event_subscriptions(self) -> None:
        self.event_manager.subscribe(
            EventType.ALARM_STARTED,
            lambda event: self.start_pulser(),
            subscriber_name="TrainingSession.alarm_started",
        )
        self.event_manager.subscribe(
            EventType.SCENARIO_FAILED,
            self._handle_scenario_failed,
            subscriber_name="TrainingSession.scenario_failed",
        )
        self.event_manager.subscribe(
            EventType.FIRE_EXTINGUISHED,
            self._handle_fire_extinguished,
            subscriber_name="TrainingSession.fire_extinguished",
        )
        self.event_manager.subscribe(
            EventType.RESTART_REQUESTED,
            self._handle_restart_requested,
            subscriber_name="TrainingSession.restart_requested",
        )

    def _bind_hook_commands(self) -> None:
        """Attach the scenario's hook commands to the package hook lists."""
        catalog = self.catalog
        for package_id, phases in self.definition.hook_commands.items():
            package = catalog.get(package_id)
            if package is None:
                raise ValueError(f"Hook commands given for unknown package id {package_id}")
            hook_lists = {
                "started": package.hooks.started,
                "executed": package.hooks.executed,
                "completed": package.hooks.completed,
            }
            for phase, commands in phases.items():
                for command in commands:
                    hook_lists[phase].append(self._compile_command(command))

    def _compile_command(self, command: str) -> HookCommand:
        """Turn a hook command string into a package hook.

        Supported commands::

            alarm.start | alarm.cancel | alarm.fail [reason]
            dialogue.step <index> | dialogue.hide
            package.trigger <name> | package.stop <name>
            pulser.start
            zone.reset <name>
            tutorial.show
        """
        parts = shlex.split(command)
        if not parts:
            raise ValueError("Empty hook command")
        verb, args = parts[0].lower(), parts[1:]
        argument = " ".join(args)

        if verb.startswith("alarm."):
            alarm = self._require(self.alarm, "alarm", command)
            if verb == "alarm.start":
                return lambda package: alarm.start()
            if verb == "alarm.cancel":
                return lambda package: alarm.cancel()
            if verb == "alarm.fail":
                return lambda package: alarm.trigger_failure(argument or None)

        elif verb.startswith("dialogue."):
            dialogue = self._require(self.dialogue, "dialogue", command)
            if verb == "dialogue.step":
                try:
                    index = int(argument)
                except ValueError:
                    raise ValueError(f"Hook command '{command}' needs a step index")
                return lambda package: dialogue.show_step(index)
            if verb == "dialogue.hide":
                return lambda package: dialogue.hide_now()

        elif verb in ("package.trigger", "package.stop"):
            if self.catalog.find_by_name(argument) is None:
                raise ValueError(f"Hook command '{command}' names an unknown package")
            if verb == "package.trigger":
                return lambda package: self.scheduler.trigger(argument)
            return lambda package: self.scheduler.stop(argument)

        elif verb == "pulser.start":
            self._require(self.light_pulser, "light_pulser", command)
            return lambda package: self.start_pulser()

        elif verb == "zone.reset":
            zone = self.fire_zones.get(argument)
            if zone is None:
                raise ValueError(f"Hook command '{command}' names an unknown fire zone")
            return lambda package: zone.reset_simulation()

        elif verb == "tutorial.show":
            tutorial = self._require(self.tutorial, "tutorial", command)
            return lambda package: tutorial.on_picked_up()

        raise ValueError(f"Unknown hook command: '{command}'")

    @staticmethod
    def _require(component, section: str, command: str):
        if component is None:
            raise ValueError(f"Hook command '{command}' needs a '{section}' section")
        return component

    # ------------------------------------------------------------------
    # Host API
    # ------------------------------------------------------------------

    def start(self) -> list[int]:
        """Signal session start; fires ON_SESSION_START packages once.

        Returns:
            Ids of the packages that started a run
        """
        if self.dispatcher.session_started:
            return []

        self._log(f"Session started: {self.definition.name}", category="SYSTEM")
        if self.dialogue is not None and self.definition.dialogue is not None:
            if self.definition.dialogue.show_first_step_on_start:
                self.dialogue.show_step(0)
        if self.fire_start_prompt is not None:
            self.fire_start_prompt.start()

        started = self.dispatcher.start_session()
        self.event_manager.process_events()
        return started

    def tick(self, elapsed: float, active_keys: Iterable[str] = ()) -> list[int]:
        """Advance the session by one host frame.

        Args:
            elapsed: Seconds since the previous tick
            active_keys: Keys held down during this frame

        Returns:
            Ids of the packages started by key presses
        """
        self._ensure_started()
        started = self.dispatcher.tick(elapsed, active_keys)

        for zone in self.fire_zones.values():
            zone.update(elapsed)
        for prompt in self.proximity_prompts:
            prompt.update(elapsed)
        if self._pulsing and self.light_pulser is not None:
            self.light_pulser.update(self.timeline.current_time)

        self.event_manager.process_events()
        return started

    def trigger(self, ref: PackageRef) -> bool:
        """Manually trigger a package by id or name."""
        started = self.scheduler.trigger(ref)
        self.event_manager.process_events()
        return started

    def stop(self, ref: PackageRef) -> bool:
        stopped = self.scheduler.stop(ref)
        self.event_manager.process_events()
        return stopped

    def stop_all(self) -> int:
        stopped = self.scheduler.stop_all()
        self.event_manager.process_events()
        return stopped

    def contact(self, kind: ContactKind, other: Optional[ContactCandidate]) -> list[int]:
        """Forward a physics contact to the package dispatcher.

        Returns:
            Ids of the packages that started a run
        """
        self._ensure_started()
        started = self.dispatcher.contact(kind, other)
        self.event_manager.process_events()
        return started

    def collision_enter(self, other: Optional[ContactCandidate]) -> list[int]:
        return self.contact(ContactKind.COLLISION, other)

    def trigger_enter(self, other: Optional[ContactCandidate]) -> list[int]:
        return self.contact(ContactKind.TRIGGER_VOLUME, other)

    def fumes_enter(self, zone_name: str, other: SceneEntity) -> None:
        """Extinguisher fumes entered a fire zone."""
        self._zone(zone_name).on_trigger_enter(other)
        self.event_manager.process_events()

    def fumes_exit(self, zone_name: str, other: SceneEntity) -> None:
        self._zone(zone_name).on_trigger_exit(other)
        self.event_manager.process_events()

    def gesture_found(self, name: str) -> None:
        """Hand tracking recognised a gesture again."""
        self._gesture(name).on_gesture_found()
        self.event_manager.process_events()

    def gesture_lost(self, name: str) -> bool:
        """Hand tracking lost a gesture; its target hides after the grace delay.

        Returns:
            True if a hide was scheduled
        """
        scheduled = self._gesture(name).on_gesture_lost()
        self.event_manager.process_events()
        return scheduled

    def pick_up_extinguisher(self) -> bool:
        """The trainee grabbed the extinguisher.

        Returns:
            True if the tutorial message was shown
        """
        if self.tutorial is None:
            return False
        shown = self.tutorial.on_picked_up()
        self.event_manager.process_events()
        return shown

    def start_pulser(self) -> None:
        if self.light_pulser is None or self._pulsing:
            return
        self._pulsing = True
        self.light_pulser.start()
        self.light_pulser.update(self.timeline.current_time)

    def save_log(self, file_path: str = "session_log.txt") -> None:
        self.event_manager.publish(LogSaveRequested(self.timeline.current_time, file_path),
                                   source="TrainingSession")
        self.event_manager.process_events()

    def restart(self) -> "TrainingSession":
        """Build a fresh session from the scenario file this one came from.

        Raises:
            ValueError: If the scenario was not loaded from a file
        """
        source_path = self.definition.source_path
        if source_path is None:
            raise ValueError("Cannot restart a session that was not loaded from a file")
        self.scheduler.stop_all()
        self.event_manager.shutdown()
        return TrainingSession.from_file(source_path, rng=self.rng,
                                         enable_debug_logging=self.event_manager.enable_debug_logging)

    @property
    def is_game_over(self) -> bool:
        return self.failed or any(zone.is_game_over for zone in self.fire_zones.values())

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _handle_scenario_failed(self, event) -> None:
        self.failed = True
        self.failure_reason = event.reason

    def _handle_fire_extinguished(self, event) -> None:
        self.extinguished_zones.append(event.zone_name)

    def _handle_restart_requested(self, event) -> None:
        self.restart_requested = True
        self._log(f"Restart requested by {event.source}", category="SYSTEM")

    def _ensure_started(self) -> None:
        # Session components start together with the ON_SESSION_START pass.
        if not self.dispatcher.session_started:
            self.start()

    def _zone(self, zone_name: str) -> FireExtinguishZone:
        zone = self.fire_zones.get(zone_name)
        if zone is None:
            raise KeyError(f"Unknown fire zone: {zone_name}")
        return zone

    def _gesture(self, name: str) -> GestureStabilizer:
        stabilizer = self.gesture_stabilizers.get(name)
        if stabilizer is None:
            raise KeyError(f"Unknown gesture stabilizer: {name}")
        return stabilizer

    def _log(self, message: str, category: str = "SCENARIO") -> None:
        self.event_manager.publish(
            LogMessage(self.timeline.current_time, message, category, source="TrainingSession"),
            source="TrainingSession",
        )

from dataclasses import fields
from pathlib import Path
from typing import Any, Optional, TypeVar, Union

import yaml

from ...core.data import Vector3
from ...core.entities import (
    AudioClip,
    AudioSourceHandle,
    ColliderHandle,
    LightHandle,
    ParticleEmitterHandle,
    SceneEntity,
    SceneRegistry,
)
from ...sequencing import PackageCatalogLoader
from ..alarm_countdown import AlarmSettings
from ..dialogue import StepMessage
from ..extinguish_zone import FireZoneSettings
from .scenario import (
    AlarmConfig,
    DialogueConfig,
    FireStartPromptConfig,
    FireZoneConfig,
    GestureStabilizerConfig,
    LightPulserConfig,
    ProximityPromptConfig,
    ScenarioDefinition,
    TutorialConfig,
)


T = TypeVar("T")

HOOK_PHASES = ("started", "executed", "completed")


class ScenarioLoader:
    """Handles loading scenarios from YAML files."""

    @staticmethod
    def load_from_file(file_path: Union[str, Path]) -> ScenarioDefinition:
        """Load a scenario from a YAML file."""
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Scenario file not found: {file_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML scenario: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Scenario file must contain a mapping: {file_path}")

        scenario = ScenarioLoader.parse_scenario(data)
        scenario.source_path = str(file_path)
        return scenario

    @staticmethod
    def parse_scenario(data: dict[str, Any]) -> ScenarioDefinition:
        """Parse scenario data from a dictionary."""
        registry = ScenarioLoader.parse_scene(data.get("scene") or {})

        scenario = ScenarioDefinition(
            name=data.get("name", "Unnamed Scenario"),
            description=data.get("description", ""),
            author=data.get("author", "Unknown"),
            registry=registry,
            catalog=PackageCatalogLoader.parse_catalog(data, registry),
            revert_timing=PackageCatalogLoader.parse_revert_timing(data),
            hook_commands=ScenarioLoader._parse_hook_commands(data.get("packages") or []),
        )

        if "dialogue" in data:
            dialogue_data = dict(data["dialogue"] or {})
            steps = [
                StepMessage(text=step.get("text", "Step text..."),
                            duration=float(step.get("duration", 3.0)))
                for step in dialogue_data.pop("steps", [])
            ]
            scenario.dialogue = _build(DialogueConfig, dialogue_data, "dialogue", steps=steps)

        if "alarm" in data:
            alarm_data = dict(data["alarm"] or {})
            failed_window = alarm_data.pop("failed_window", None)
            scenario.alarm = AlarmConfig(
                settings=_build(AlarmSettings, alarm_data, "alarm"),
                failed_window=failed_window,
            )

        if "light_pulser" in data:
            scenario.light_pulser = _build(LightPulserConfig, data["light_pulser"] or {}, "light_pulser")

        if "fire_start_prompt" in data:
            scenario.fire_start_prompt = _build(
                FireStartPromptConfig, data["fire_start_prompt"] or {}, "fire_start_prompt"
            )

        for prompt_data in data.get("proximity_prompts", []):
            prompt_data = dict(prompt_data)
            if "position" not in prompt_data:
                raise ValueError("Proximity prompts need a 'position'")
            position = Vector3.from_list(prompt_data.pop("position"))
            scenario.proximity_prompts.append(
                _build(ProximityPromptConfig, prompt_data, "proximity_prompts", position=position)
            )

        if "tutorial" in data:
            scenario.tutorial = _build(TutorialConfig, data["tutorial"] or {}, "tutorial")

        for zone_data in data.get("fire_zones", []):
            zone_data = dict(zone_data)
            if "zone" not in zone_data:
                raise ValueError("Fire zones need a 'zone' entity")
            settings = _build(FireZoneSettings, zone_data.pop("settings", None) or {}, "fire_zones.settings")
            scenario.fire_zones.append(
                _build(FireZoneConfig, zone_data, "fire_zones", settings=settings)
            )

        for stabilizer_data in data.get("gesture_stabilizers", []):
            if "name" not in stabilizer_data:
                raise ValueError("Gesture stabilizers need a 'name'")
            scenario.gesture_stabilizers.append(
                _build(GestureStabilizerConfig, stabilizer_data, "gesture_stabilizers")
            )

        return scenario

    @staticmethod
    def parse_scene(data: dict[str, Any]) -> SceneRegistry:
        """Create the scene registry from the ``scene`` section.

        Entities may name a parent defined anywhere in the list.
        """
        registry = SceneRegistry()

        parents: dict[str, str] = {}
        for entity_data in data.get("entities", []):
            name = entity_data["name"]
            entity = SceneEntity(
                name=name,
                tag=entity_data.get("tag", "Untagged"),
                layer=int(entity_data.get("layer", 0)),
                active=bool(entity_data.get("active", True)),
                position=Vector3.from_list(entity_data["position"]) if "position" in entity_data else None,
                scale=Vector3.from_list(entity_data["scale"]) if "scale" in entity_data else None,
            )
            registry.register(entity)
            if entity_data.get("parent"):
                parents[name] = entity_data["parent"]

        for child_name, parent_name in parents.items():
            parent = registry.entity(parent_name)
            if parent is None:
                raise ValueError(f"Entity '{child_name}' has unknown parent '{parent_name}'")
            registry.entities[child_name].parent = parent

        for collider_data in data.get("colliders", []):
            owner = registry.entity(collider_data.get("entity"))
            if owner is None:
                raise ValueError(f"Collider '{collider_data.get('name')}' needs a known 'entity'")
            registry.register(ColliderHandle(
                name=collider_data["name"],
                entity=owner,
                enabled=bool(collider_data.get("enabled", True)),
            ))

        for clip_data in data.get("clips", []):
            registry.register(AudioClip(clip_data["name"], float(clip_data.get("length", 0.0))))

        for source_data in data.get("audio_sources", []):
            registry.register(AudioSourceHandle(
                name=source_data["name"],
                clip=registry.clip(source_data.get("clip")),
            ))

        for light_data in data.get("lights", []):
            registry.register(LightHandle(
                name=light_data["name"],
                intensity=float(light_data.get("intensity", 1.0)),
            ))

        for emitter_data in data.get("emitters", []):
            registry.register(ParticleEmitterHandle(
                name=emitter_data["name"],
                start_size=float(emitter_data.get("start_size", 1.0)),
                emission_rate=float(emitter_data.get("emission_rate", 10.0)),
                start_delay=float(emitter_data.get("start_delay", 0.0)),
                start_lifetime=float(emitter_data.get("start_lifetime", 1.0)),
                is_playing=bool(emitter_data.get("playing", True)),
            ))

        return registry

    @staticmethod
    def _parse_hook_commands(packages_data: list[dict[str, Any]]) -> dict[int, dict[str, list[str]]]:
        commands: dict[int, dict[str, list[str]]] = {}
        for index, package_data in enumerate(packages_data):
            hooks_data = package_data.get("hooks") or {}
            unknown = set(hooks_data) - set(HOOK_PHASES)
            if unknown:
                raise ValueError(
                    f"Package '{package_data.get('name')}' has unknown hook phases: {sorted(unknown)}"
                )
            phases = {phase: [str(cmd) for cmd in hooks_data.get(phase, [])] for phase in HOOK_PHASES}
            if any(phases.values()):
                commands[index] = phases
        return commands


def _build(cls: type[T], data: dict[str, Any], section: str, **extra: Any) -> T:
    """Instantiate a config dataclass, rejecting keys it does not define."""
    known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown keys in '{section}': {sorted(unknown)}")
    return cls(**data, **extra)


def find_scenario(name: str, search_dir: Optional[Union[str, Path]] = None) -> Path:
    """Locate a bundled scenario file by stem name."""
    base = Path(search_dir) if search_dir else Path(__file__).parent.parent.parent.parent / "assets" / "scenarios"
    path = base / f"{name}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")
    return path

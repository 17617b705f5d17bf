"""Loading package catalogs from YAML.

Example::

    packages:
      - name: Alarm Bell
        trigger: on_session_start
        delay: 1.5
        sounds:
          source: AlarmSpeaker
          start_looping: true
      - name: Open Cabinet
        trigger: trigger_volume_event
        filter:
          tag: Player
          layers: [0, 3]
          root: XR Origin
        objects:
          turn_on: [CabinetDoorOpen]
          turn_off: [CabinetDoorClosed]
          auto_revert: true
          revert_delay: 5

Actuator names are resolved through a SceneRegistry. Names the registry does
not know become absent references, which the executor skips.
"""

from pathlib import Path
from typing import Any, Optional, Union

import yaml

from ..core.data import RevertTiming, TriggerMode
from ..core.entities import SceneRegistry
from .catalog import PackageCatalog
from .filters import FilterMatcher
from .package import ActionSet, ColliderSet, ObjectSet, Package, SoundSet, TriggerFilter


class PackageCatalogLoader:
    """Builds PackageCatalogs from YAML documents."""

    @staticmethod
    def load_from_file(file_path: Union[str, Path], registry: SceneRegistry) -> PackageCatalog:
        """Load a catalog from a YAML file with a top-level ``packages`` list."""
        data = PackageCatalogLoader._read_yaml(file_path)
        return PackageCatalogLoader.parse_catalog(data, registry)

    @staticmethod
    def _read_yaml(file_path: Union[str, Path]) -> dict[str, Any]:
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Package file not found: {file_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML package file: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Package file must contain a mapping: {file_path}")
        return data

    @staticmethod
    def parse_catalog(data: dict[str, Any], registry: SceneRegistry) -> PackageCatalog:
        """Parse the ``packages`` list of an already loaded document."""
        packages_data = data.get("packages") or []
        if not isinstance(packages_data, list):
            raise ValueError("'packages' must be a list")
        return PackageCatalog(
            PackageCatalogLoader.parse_package(entry, registry) for entry in packages_data
        )

    @staticmethod
    def parse_revert_timing(data: dict[str, Any]) -> RevertTiming:
        """Read ``settings.revert_timing`` (defaults to concurrent)."""
        settings = data.get("settings") or {}
        value = settings.get("revert_timing", RevertTiming.CONCURRENT.value)
        try:
            return RevertTiming(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown revert timing: {value!r}")

    @staticmethod
    def parse_package(data: dict[str, Any], registry: SceneRegistry) -> Package:
        """Create a Package from one YAML entry."""
        if "name" not in data:
            raise ValueError("Every package needs a 'name'")

        trigger_data = data.get("trigger", TriggerMode.MANUAL.value)
        key = data.get("key")
        if isinstance(trigger_data, dict):
            mode = TriggerMode.from_string(trigger_data.get("mode", TriggerMode.MANUAL.value))
            key = trigger_data.get("key", key)
        else:
            mode = TriggerMode.from_string(str(trigger_data))

        if key is not None:
            key = str(key).strip().upper() or None
            if key == "NONE":
                key = None

        return Package(
            name=data["name"],
            enabled=bool(data.get("enabled", True)),
            trigger_mode=mode,
            key=key,
            filter=PackageCatalogLoader._parse_filter(data.get("filter") or {}, registry),
            delay_seconds=float(data.get("delay", 0.0)),
            run_once=bool(data.get("run_once", True)),
            repeat=bool(data.get("repeat", False)),
            actions=ActionSet(
                sounds=PackageCatalogLoader._parse_sounds(data.get("sounds") or {}, registry),
                colliders=PackageCatalogLoader._parse_colliders(data.get("colliders") or {}, registry),
                objects=PackageCatalogLoader._parse_objects(data.get("objects") or {}, registry),
            ),
        )

    @staticmethod
    def _parse_filter(data: dict[str, Any], registry: SceneRegistry) -> TriggerFilter:
        layers: Optional[frozenset[int]] = None
        if "layers" in data:
            layers = frozenset(int(layer) for layer in data["layers"])
        elif "layer_mask" in data:
            layers = FilterMatcher.layers_from_mask(int(data["layer_mask"]))

        root_name = data.get("root")
        root = registry.entity(root_name)
        if root_name and root is None:
            raise ValueError(f"Filter root '{root_name}' is not in the scene")

        return TriggerFilter(
            required_tag=data.get("tag"),
            required_layers=layers,
            required_root=root,
        )

    @staticmethod
    def _parse_objects(data: dict[str, Any], registry: SceneRegistry) -> ObjectSet:
        return ObjectSet(
            turn_on=tuple(registry.entity(name) for name in data.get("turn_on", [])),
            turn_off=tuple(registry.entity(name) for name in data.get("turn_off", [])),
            toggle=tuple(registry.entity(name) for name in data.get("toggle", [])),
            auto_revert=bool(data.get("auto_revert", False)),
            revert_delay_seconds=float(data.get("revert_delay", 0.0)),
        )

    @staticmethod
    def _parse_colliders(data: dict[str, Any], registry: SceneRegistry) -> ColliderSet:
        return ColliderSet(
            enable=tuple(registry.collider(name) for name in data.get("enable", [])),
            disable=tuple(registry.collider(name) for name in data.get("disable", [])),
            auto_revert=bool(data.get("auto_revert", False)),
            revert_delay_seconds=float(data.get("revert_delay", 0.0)),
        )

    @staticmethod
    def _parse_sounds(data: dict[str, Any], registry: SceneRegistry) -> SoundSet:
        volume = float(data.get("volume", 1.0))
        return SoundSet(
            audio_source=registry.audio_source(data.get("source")),
            one_shots=tuple(registry.clip(name) for name in data.get("one_shots", [])),
            volume=min(1.0, max(0.0, volume)),
            stop_source_before_play=bool(data.get("stop_before_play", False)),
            start_looping_source=bool(data.get("start_looping", False)),
            stop_source=bool(data.get("stop_source", False)),
        )

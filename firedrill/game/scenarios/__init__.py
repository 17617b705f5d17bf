"""Scenario system components.

This package contains scenario definitions and their loading:
- scenario.py: Scenario container and per-component configuration
- scenario_loader.py: YAML scenario parsing into scene registry, catalog and components
"""

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
from .scenario_loader import ScenarioLoader, find_scenario

__all__ = [
    "AlarmConfig",
    "DialogueConfig",
    "FireStartPromptConfig",
    "FireZoneConfig",
    "GestureStabilizerConfig",
    "LightPulserConfig",
    "ProximityPromptConfig",
    "ScenarioDefinition",
    "TutorialConfig",
    "ScenarioLoader",
    "find_scenario",
]

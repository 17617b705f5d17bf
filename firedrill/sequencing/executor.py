"""Application of package action sets to scene actuators.

The order is fixed for every package: sound first, then colliders, then
objects. Missing actuator references are skipped.
"""

import random
from typing import Iterable, Optional, TYPE_CHECKING

from .package import ActionSet, ColliderSet, ObjectSet, SoundSet

if TYPE_CHECKING:
    from ..core.entities import ColliderHandle, SceneEntity


class ActionExecutor:
    """Applies action sets and their structural inverses."""

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize the executor.

        Args:
            rng: Random source used to pick one-shot clips
        """
        self.rng = rng or random.Random()

    def execute(self, actions: ActionSet) -> None:
        """Apply sounds, then colliders, then objects."""
        self.apply_sounds(actions.sounds)
        self.apply_colliders(actions.colliders)
        self.apply_objects(actions.objects)

    def apply_sounds(self, sounds: SoundSet) -> None:
        source = sounds.audio_source
        if source is None:
            return

        if sounds.stop_source:
            source.stop()

        if sounds.start_looping_source:
            source.loop = True
            if sounds.stop_source_before_play:
                source.stop()
            source.play()
        elif sounds.one_shots:
            if sounds.stop_source_before_play:
                source.stop()
            clip = self.rng.choice(sounds.one_shots)
            if clip is not None:
                source.play_one_shot(clip, sounds.volume)

    def apply_colliders(self, colliders: ColliderSet) -> None:
        set_enabled(colliders.enable, True)
        set_enabled(colliders.disable, False)

    def apply_objects(self, objects: ObjectSet) -> None:
        set_active(objects.turn_on, True)
        set_active(objects.turn_off, False)
        toggle(objects.toggle)

    def revert_objects(self, objects: ObjectSet) -> None:
        """Undo apply_objects: on/off swap, toggles flip back."""
        set_active(objects.turn_on, False)
        set_active(objects.turn_off, True)
        toggle(objects.toggle)

    def revert_colliders(self, colliders: ColliderSet) -> None:
        """Undo apply_colliders."""
        set_enabled(colliders.enable, False)
        set_enabled(colliders.disable, True)


def set_active(entities: Iterable[Optional["SceneEntity"]], value: bool) -> None:
    for entity in entities:
        if entity is not None:
            entity.set_active(value)


def toggle(entities: Iterable[Optional["SceneEntity"]]) -> None:
    for entity in entities:
        if entity is not None:
            entity.set_active(not entity.active_self)


def set_enabled(colliders: Iterable[Optional["ColliderHandle"]], value: bool) -> None:
    for collider in colliders:
        if collider is not None:
            collider.enabled = value

"""Scene actuators driven by the session.

The host runtime owns the real objects, colliders and audio sources. These
classes are the narrow in-memory stand-ins the engine talks to: they hold the
state the engine changes (active flags, enabled flags, playback) and the
identity the trigger filters inspect (tag, layer, parent chain).

A host integration keeps them in sync with its own scene graph; tests and the
headless demo use them directly.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union
import uuid

from ..data.data_structures import Vector3


class SceneEntity:
    """A named object in the scene hierarchy.

    Entities form a tree through ``parent``. Activation is tracked per entity
    (``active_self``); ``active_in_hierarchy`` additionally requires every
    ancestor to be active.
    """

    def __init__(
        self,
        name: str,
        tag: str = "Untagged",
        layer: int = 0,
        parent: Optional["SceneEntity"] = None,
        active: bool = True,
        position: Optional[Vector3] = None,
        scale: Optional[Vector3] = None,
    ):
        self.entity_id: str = str(uuid.uuid4())
        self.name = name
        self.tag = tag
        self.layer = layer
        self.parent = parent
        self.active_self = active
        self.position = position or Vector3.zero()
        self.scale = scale or Vector3.one()

    def set_active(self, value: bool) -> None:
        self.active_self = value

    @property
    def active_in_hierarchy(self) -> bool:
        node: Optional[SceneEntity] = self
        while node is not None:
            if not node.active_self:
                return False
            node = node.parent
        return True

    def ancestors(self) -> Iterator["SceneEntity"]:
        """Yield parent, grandparent, ... up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def is_child_of(self, root: "SceneEntity") -> bool:
        """True if root is this entity or one of its ancestors."""
        return self is root or any(node is root for node in self.ancestors())

    def compare_tag(self, tag: str) -> bool:
        return self.tag == tag

    def __repr__(self) -> str:
        return f"SceneEntity({self.name!r}, active={self.active_self})"


class ColliderHandle:
    """A collider attached to an entity.

    Tag, layer and ancestry are those of the owning entity, which is what a
    contact filter inspects.
    """

    def __init__(self, name: str, entity: SceneEntity, enabled: bool = True):
        self.name = name
        self.entity = entity
        self.enabled = enabled

    @property
    def tag(self) -> str:
        return self.entity.tag

    @property
    def layer(self) -> int:
        return self.entity.layer

    def is_child_of(self, root: SceneEntity) -> bool:
        return self.entity.is_child_of(root)

    def compare_tag(self, tag: str) -> bool:
        return self.entity.compare_tag(tag)

    def __repr__(self) -> str:
        return f"ColliderHandle({self.name!r}, enabled={self.enabled})"


@dataclass(frozen=True)
class AudioClip:
    """An audio asset reference."""
    name: str
    length: float = 0.0


@dataclass
class PlaybackRecord:
    """One call made on an audio source."""
    action: str  # "play", "stop", "one_shot"
    clip: Optional[AudioClip] = None
    volume: float = 1.0


class AudioSourceHandle:
    """An audio emitter; records every call for the host to replay."""

    def __init__(self, name: str, clip: Optional[AudioClip] = None):
        self.name = name
        self.clip = clip
        self.loop = False
        self.is_playing = False
        self.history: list[PlaybackRecord] = []

    def play(self) -> None:
        self.is_playing = True
        self.history.append(PlaybackRecord("play", self.clip))

    def stop(self) -> None:
        self.is_playing = False
        self.history.append(PlaybackRecord("stop"))

    def play_one_shot(self, clip: AudioClip, volume: float = 1.0) -> None:
        self.history.append(PlaybackRecord("one_shot", clip, volume))

    def __repr__(self) -> str:
        return f"AudioSourceHandle({self.name!r}, playing={self.is_playing})"


@dataclass
class LightHandle:
    """A light whose intensity and colour the alarm pulser drives."""
    name: str
    intensity: float = 1.0
    color: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)


@dataclass
class ParticleEmitterHandle:
    """A particle system (fire, smoke) the fire zone scales and stops."""
    name: str
    start_size: float = 1.0
    emission_rate: float = 10.0
    start_delay: float = 0.0
    start_lifetime: float = 1.0
    is_playing: bool = True

    def play(self) -> None:
        self.is_playing = True

    def stop(self) -> None:
        self.is_playing = False


SceneObject = Union[
    SceneEntity, ColliderHandle, AudioSourceHandle, AudioClip, LightHandle, ParticleEmitterHandle
]


@dataclass
class SceneRegistry:
    """Name lookup for everything a configuration file can reference.

    Lookups of unknown names return None rather than raising, matching how the
    engine treats absent actuator references.
    """
    entities: dict[str, SceneEntity] = field(default_factory=dict)
    colliders: dict[str, ColliderHandle] = field(default_factory=dict)
    audio_sources: dict[str, AudioSourceHandle] = field(default_factory=dict)
    clips: dict[str, AudioClip] = field(default_factory=dict)
    lights: dict[str, LightHandle] = field(default_factory=dict)
    emitters: dict[str, ParticleEmitterHandle] = field(default_factory=dict)

    def register(self, obj: SceneObject) -> SceneObject:
        """Add an object under its own name and return it."""
        if isinstance(obj, SceneEntity):
            self.entities[obj.name] = obj
        elif isinstance(obj, ColliderHandle):
            self.colliders[obj.name] = obj
        elif isinstance(obj, AudioSourceHandle):
            self.audio_sources[obj.name] = obj
        elif isinstance(obj, AudioClip):
            self.clips[obj.name] = obj
        elif isinstance(obj, LightHandle):
            self.lights[obj.name] = obj
        elif isinstance(obj, ParticleEmitterHandle):
            self.emitters[obj.name] = obj
        else:
            raise TypeError(f"Cannot register {type(obj).__name__}")
        return obj

    def entity(self, name: Optional[str]) -> Optional[SceneEntity]:
        return self.entities.get(name) if name else None

    def collider(self, name: Optional[str]) -> Optional[ColliderHandle]:
        return self.colliders.get(name) if name else None

    def audio_source(self, name: Optional[str]) -> Optional[AudioSourceHandle]:
        return self.audio_sources.get(name) if name else None

    def clip(self, name: Optional[str]) -> Optional[AudioClip]:
        return self.clips.get(name) if name else None

    def light(self, name: Optional[str]) -> Optional[LightHandle]:
        return self.lights.get(name) if name else None

    def emitter(self, name: Optional[str]) -> Optional[ParticleEmitterHandle]:
        return self.emitters.get(name) if name else None

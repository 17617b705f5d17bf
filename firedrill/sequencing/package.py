"""Package definitions.

A package is a named unit of timed actions with its own trigger condition.
Definitions are configuration: they are built once (usually by the catalog
loader) and never mutated by the engine. Only the hook lists accept new
callbacks after construction.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, TYPE_CHECKING

from ..core.data import TriggerMode

if TYPE_CHECKING:
    from ..core.entities import AudioClip, AudioSourceHandle, ColliderHandle, SceneEntity


PackageHook = Callable[["Package"], None]


@dataclass(frozen=True)
class ObjectSet:
    """Objects to switch on, off, or flip when the package executes."""
    turn_on: tuple[Optional["SceneEntity"], ...] = ()
    turn_off: tuple[Optional["SceneEntity"], ...] = ()
    toggle: tuple[Optional["SceneEntity"], ...] = ()

    # Undo the changes after revert_delay_seconds
    auto_revert: bool = False
    revert_delay_seconds: float = 0.0

    @property
    def wants_revert(self) -> bool:
        return self.auto_revert and self.revert_delay_seconds > 0


@dataclass(frozen=True)
class ColliderSet:
    """Colliders to enable or disable when the package executes."""
    enable: tuple[Optional["ColliderHandle"], ...] = ()
    disable: tuple[Optional["ColliderHandle"], ...] = ()

    auto_revert: bool = False
    revert_delay_seconds: float = 0.0

    @property
    def wants_revert(self) -> bool:
        return self.auto_revert and self.revert_delay_seconds > 0


@dataclass(frozen=True)
class SoundSet:
    """Audio to play through a single source.

    Either the source itself is started as a loop, or one clip picked at
    random from ``one_shots`` is played over it.
    """
    audio_source: Optional["AudioSourceHandle"] = None
    one_shots: tuple[Optional["AudioClip"], ...] = ()
    volume: float = 1.0
    stop_source_before_play: bool = False
    start_looping_source: bool = False
    stop_source: bool = False


@dataclass(frozen=True)
class ActionSet:
    """Everything a package does when it executes."""
    sounds: SoundSet = field(default_factory=SoundSet)
    colliders: ColliderSet = field(default_factory=ColliderSet)
    objects: ObjectSet = field(default_factory=ObjectSet)

    @property
    def has_reverts(self) -> bool:
        return self.objects.wants_revert or self.colliders.wants_revert


@dataclass(frozen=True)
class TriggerFilter:
    """Conditions on the other party of a physics contact.

    Every field is optional; an unset field accepts anything.
    """
    required_tag: Optional[str] = None
    required_layers: Optional[frozenset[int]] = None
    required_root: Optional["SceneEntity"] = None


@dataclass
class PackageHooks:
    """Callbacks invoked at the started, executed and completed points."""
    started: list[PackageHook] = field(default_factory=list)
    executed: list[PackageHook] = field(default_factory=list)
    completed: list[PackageHook] = field(default_factory=list)

    def on_started(self, hook: PackageHook) -> PackageHook:
        self.started.append(hook)
        return hook

    def on_executed(self, hook: PackageHook) -> PackageHook:
        self.executed.append(hook)
        return hook

    def on_completed(self, hook: PackageHook) -> PackageHook:
        self.completed.append(hook)
        return hook

    def copy(self) -> "PackageHooks":
        """Independent hook lists holding the same callbacks."""
        return PackageHooks(list(self.started), list(self.executed), list(self.completed))


@dataclass(frozen=True, eq=False)
class Package:
    """A configured, independently triggerable unit of actions."""
    name: str = "New Package"
    enabled: bool = True

    trigger_mode: TriggerMode = TriggerMode.MANUAL
    key: Optional[str] = None  # KEY_POLL only
    filter: TriggerFilter = field(default_factory=TriggerFilter)  # contact modes only

    delay_seconds: float = 0.0
    run_once: bool = True
    repeat: bool = False

    actions: ActionSet = field(default_factory=ActionSet)
    hooks: PackageHooks = field(default_factory=PackageHooks)

    # Catalog position, assigned when the package is added to a catalog
    id: int = -1

    def __post_init__(self):
        if self.delay_seconds < 0:
            raise ValueError(f"Package '{self.name}' has a negative delay")

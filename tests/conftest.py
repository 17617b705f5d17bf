"""
Basic test fixtures for the fire drill test suite.

Provides small scenes, a fresh timeline and event bus, and helpers for
building catalogs and schedulers.
"""

import os
import random
import sys

import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from firedrill.core.engine.timeline import Timeline
from firedrill.core.entities.scene import (
    AudioClip,
    AudioSourceHandle,
    ColliderHandle,
    LightHandle,
    ParticleEmitterHandle,
    SceneEntity,
    SceneRegistry,
)
from firedrill.core.events.event_manager import EventManager
from firedrill.sequencing.catalog import PackageCatalog
from firedrill.sequencing.executor import ActionExecutor
from firedrill.sequencing.scheduler import PackageScheduler
from firedrill.sequencing.dispatcher import TriggerDispatcher


@pytest.fixture
def timeline():
    """Create a fresh timeline for testing."""
    return Timeline()


@pytest.fixture
def event_manager():
    """Create an event manager for testing."""
    return EventManager(enable_debug_logging=False)


@pytest.fixture
def event_log(event_manager):
    """Record every processed event, in processing order."""
    received = []
    event_manager.subscribe_all(received.append, subscriber_name="test.event_log")
    return received


@pytest.fixture
def executor():
    """Action executor with a fixed random seed."""
    return ActionExecutor(random.Random(1234))


@pytest.fixture
def registry():
    """A small scene: a player rig, a door, an alarm speaker and a fire."""
    reg = SceneRegistry()

    rig = reg.register(SceneEntity("XR Origin", tag="Player", layer=3))
    reg.register(SceneEntity("Left Hand", tag="PlayerHand", layer=3, parent=rig))
    reg.register(SceneEntity("Stranger", tag="PlayerHand", layer=3))
    reg.register(SceneEntity("Door Open", active=False))
    reg.register(SceneEntity("Door Closed"))
    reg.register(SceneEntity("Beacon", active=False))
    door = reg.register(SceneEntity("Door Frame"))

    reg.register(ColliderHandle("Door Blocker", door, enabled=True))
    reg.register(ColliderHandle("Door Sensor", door, enabled=False))

    bell = reg.register(AudioClip("Bell", 3.0))
    reg.register(AudioClip("Click", 0.2))
    reg.register(AudioSourceHandle("Speaker", clip=bell))

    reg.register(LightHandle("Corridor Light"))
    reg.register(ParticleEmitterHandle("Flames", start_size=1.0, emission_rate=20.0,
                                       start_delay=0.5, start_lifetime=2.0))
    return reg


@pytest.fixture
def make_scheduler(timeline, event_manager, executor):
    """Build a scheduler (and dispatcher) over a list of packages."""

    def _make(packages, **kwargs):
        catalog = PackageCatalog(packages)
        scheduler = PackageScheduler(catalog, timeline, event_manager=event_manager,
                                     executor=executor, **kwargs)
        return scheduler, TriggerDispatcher(scheduler, event_manager)

    return _make

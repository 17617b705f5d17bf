"""Scene actuators and the name registry used by configuration files."""

from .scene import (
    AudioClip,
    AudioSourceHandle,
    ColliderHandle,
    LightHandle,
    ParticleEmitterHandle,
    PlaybackRecord,
    SceneEntity,
    SceneObject,
    SceneRegistry,
)

__all__ = [
    "AudioClip",
    "AudioSourceHandle",
    "ColliderHandle",
    "LightHandle",
    "ParticleEmitterHandle",
    "PlaybackRecord",
    "SceneEntity",
    "SceneObject",
    "SceneRegistry",
]

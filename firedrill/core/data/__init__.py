"""Shared data types and enums."""

from .game_enums import ContactKind, LifecycleState, RevertTiming, TimerStyle, TriggerMode
from .data_structures import Vector3, lerp, ping_pong, smooth_step

__all__ = [
    "ContactKind",
    "LifecycleState",
    "RevertTiming",
    "TimerStyle",
    "TriggerMode",
    "Vector3",
    "lerp",
    "ping_pong",
    "smooth_step",
]

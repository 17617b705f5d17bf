"""Core engine components.

This package contains the fundamental engine systems:
- timeline.py: Timeline queue and entry management for timed behaviour
"""

from .timeline import Timeline, TimelineEntry, TimelineCallback

__all__ = [
    "Timeline",
    "TimelineEntry",
    "TimelineCallback",
]

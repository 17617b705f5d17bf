"""Pulsing alarm lights."""

from typing import Sequence

import numpy as np

from ..core.data import lerp, ping_pong
from ..core.entities import LightHandle


RED = (1.0, 0.0, 0.0, 1.0)


class AlarmLightPulser:
    """Drives a group of lights between two intensities like a wave."""

    def __init__(
        self,
        lights: Sequence[LightHandle],
        min_intensity: float = 0.0,
        max_intensity: float = 5.0,
        pulse_speed: float = 2.0,
        force_color: bool = True,
        alarm_color: tuple[float, float, float, float] = RED,
    ):
        self.lights = list(lights)
        self.min_intensity = min_intensity
        self.max_intensity = max_intensity
        self.pulse_speed = pulse_speed
        self.force_color = force_color
        self.alarm_color = alarm_color

    def start(self) -> None:
        if self.force_color:
            for light in self.lights:
                light.color = self.alarm_color

    def intensity_at(self, time: float) -> float:
        t = ping_pong(time * self.pulse_speed, 1.0)
        return lerp(self.min_intensity, self.max_intensity, t)

    def update(self, time: float) -> float:
        """Set every light to the intensity for a session time."""
        intensity = self.intensity_at(time)
        for light in self.lights:
            light.intensity = intensity
        return intensity

    def sample(self, times: Sequence[float]) -> np.ndarray:
        """Intensity curve over several times, for previews and tests."""
        return np.array([self.intensity_at(t) for t in times], dtype=np.float64)

"""Spatial data structures used by the scenario components.

The sequencing engine itself is position-free; only the proximity prompts and
the fire zone's scale bookkeeping need vectors.
"""

from dataclasses import dataclass
from typing import Union

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class Vector3:
    """3D vector for world positions and scales (metres)."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: "Vector3") -> "Vector3":
        """Vector addition."""
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        """Vector subtraction."""
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vector3":
        """Scalar multiplication."""
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z

    def to_numpy(self) -> NDArray[np.float64]:
        """Convert to a numpy array."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def distance_to(self, other: "Vector3") -> float:
        """Euclidean distance to another point."""
        return float(np.linalg.norm(self.to_numpy() - other.to_numpy()))

    @classmethod
    def from_list(cls, coords: Union[list[float], tuple[float, ...]]) -> "Vector3":
        """Create from a [x, y, z] list as found in YAML files."""
        if len(coords) != 3:
            raise ValueError(f"Expected 3 coordinates, got {len(coords)}")
        return cls(float(coords[0]), float(coords[1]), float(coords[2]))

    @classmethod
    def zero(cls) -> "Vector3":
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def one(cls) -> "Vector3":
        return cls(1.0, 1.0, 1.0)


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation with t clamped to [0, 1]."""
    t = float(np.clip(t, 0.0, 1.0))
    return a + (b - a) * t


def ping_pong(t: float, length: float) -> float:
    """Value that moves from 0 up to length and back down as t grows."""
    if length <= 0:
        return 0.0
    cycle = float(np.mod(t, length * 2.0))
    return length - abs(cycle - length)


def smooth_step(edge0: float, edge1: float, t: float) -> float:
    """Hermite interpolation between edge0 and edge1."""
    t = float(np.clip(t, 0.0, 1.0))
    t = t * t * (3.0 - 2.0 * t)
    return edge0 + (edge1 - edge0) * t

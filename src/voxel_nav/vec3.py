# src/voxel_nav/vec3.py
"""
Minimal immutable 3-D vector used for positions, offsets and velocities.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Tuple


@dataclass(frozen=True)
class Vec3:
    x: float
    y: float
    z: float

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def offset(self, dx: float, dy: float, dz: float) -> "Vec3":
        return Vec3(self.x + dx, self.y + dy, self.z + dz)

    def plus(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def minus(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def scaled(self, factor: float) -> "Vec3":
        return Vec3(self.x * factor, self.y * factor, self.z * factor)

    def floored(self) -> "Vec3":
        return Vec3(math.floor(self.x), math.floor(self.y), math.floor(self.z))

    def dot(self, other: "Vec3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def norm(self) -> float:
        return math.sqrt(self.dot(self))

    def normalized(self) -> "Vec3":
        n = self.norm()
        if n == 0:
            return self
        return self.scaled(1.0 / n)

    def distance_squared_to(self, other: "Vec3") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return dx * dx + dy * dy + dz * dz

    def distance_to(self, other: "Vec3") -> float:
        return math.sqrt(self.distance_squared_to(other))

    def xz_distance_to(self, other: "Vec3") -> float:
        return math.hypot(self.x - other.x, self.z - other.z)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def as_int_tuple(self) -> Tuple[int, int, int]:
        return (math.floor(self.x), math.floor(self.y), math.floor(self.z))

    @classmethod
    def of(cls, point) -> "Vec3":
        """Build a Vec3 from anything exposing x/y/z attributes."""
        return cls(point.x, point.y, point.z)

# src/voxel_nav/nav/move.py
"""
Move: one edge of the movement graph.

A Move is a candidate foot position plus the blocks that must be broken
or placed before the agent can stand there. Moves are immutable; the
execution controller tracks side-action progress separately.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from ..vec3 import Vec3


class MoveType(str, Enum):
    FORWARD = "forward"
    DIAGONAL = "diagonal"
    DIAGONAL_UP = "diagonal-up"
    DIAGONAL_DOWN = "diagonal-down"
    JUMP_UP = "jump-up"
    DROP_DOWN = "drop-down"
    UP = "up"
    DOWN = "down"
    PARKOUR = "parkour"


class SprintPolicy(str, Enum):
    NO = "no"
    OPTIONAL = "optional"
    YES = "yes"


@dataclass(frozen=True)
class ToPlace:
    """
    A scheduled block placement.

    (x, y, z) is the reference block to click, (dx, dy, dz) the face
    vector; the new block appears at reference + face.
    """

    x: int
    y: int
    z: int
    dx: int
    dy: int
    dz: int
    jump: bool = False
    use_one: bool = False
    return_pos: Optional[Vec3] = None

    @property
    def position(self) -> Vec3:
        return Vec3(self.x, self.y, self.z)

    @property
    def face(self) -> Vec3:
        return Vec3(self.dx, self.dy, self.dz)


def position_hash(x: float, y: float, z: float) -> str:
    return f"{math.floor(x)},{math.floor(y)},{math.floor(z)}"


@dataclass(frozen=True)
class Move:
    x: float
    y: float
    z: float
    remaining_scaffolding: int
    cost: float
    to_break: Tuple[Vec3, ...] = ()
    to_place: Tuple[ToPlace, ...] = ()
    move_type: MoveType = MoveType.FORWARD
    sprint: SprintPolicy = SprintPolicy.OPTIONAL
    dont_optimize: bool = False
    hash: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        # Identity is fixed at creation; post-processed copies keep it.
        if not self.hash:
            object.__setattr__(self, "hash", position_hash(self.x, self.y, self.z))

    @property
    def position(self) -> Vec3:
        return Vec3(self.x, self.y, self.z)

    @property
    def has_actions(self) -> bool:
        return bool(self.to_break or self.to_place)

    def __repr__(self) -> str:
        return (
            f"Move({self.move_type.value} {self.x},{self.y},{self.z} "
            f"cost={self.cost:.2f} break={len(self.to_break)} "
            f"place={len(self.to_place)})"
        )

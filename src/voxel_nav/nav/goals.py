# Goal predicates for the search engine
# src/voxel_nav/nav/goals.py
"""
Goals tell the search when to stop and how far away a node is.

Every goal exposes the same capability set:
    heuristic(node) -> float
    is_end(node) -> bool
    has_changed() -> bool
    is_valid() -> bool
plus refresh(), which the controller calls after has_changed() reported
true. Nodes are anything with integer-valued x / y / z attributes
(Move, Vec3).

Composite goals own their children in a plain list; there is no shared
base state between a composite and its members.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from ..vec3 import Vec3
from ..world import Shape, WorldView

SQRT2 = math.sqrt(2)

ALL_FACES: Tuple[Vec3, ...] = (
    Vec3(0, -1, 0),
    Vec3(0, 1, 0),
    Vec3(0, 0, -1),
    Vec3(0, 0, 1),
    Vec3(-1, 0, 0),
    Vec3(1, 0, 0),
)

FACINGS = ("north", "east", "south", "west", "up", "down")


def distance_xz(dx: float, dz: float) -> float:
    """Octile distance on the horizontal plane."""
    dx = abs(dx)
    dz = abs(dz)
    return abs(dx - dz) + min(dx, dz) * SQRT2


def _vertical_adjacent(dy: float) -> float:
    # Standing one block below the target still counts as adjacent.
    return abs(dy + 1 if dy < 0 else dy)


class Goal:
    """Base goal: satisfied everywhere, never changes."""

    def heuristic(self, node) -> float:
        return 0.0

    def is_end(self, node) -> bool:
        return True

    def has_changed(self) -> bool:
        return False

    def is_valid(self) -> bool:
        return True

    def refresh(self) -> None:
        """Acknowledge a change reported by has_changed()."""
        return


# ---------------------------------------------------------------------------
# Point and plane goals
# ---------------------------------------------------------------------------


class GoalBlock(Goal):
    """Stand inside one specific block at foot level."""

    def __init__(self, x: float, y: float, z: float) -> None:
        self.x = math.floor(x)
        self.y = math.floor(y)
        self.z = math.floor(z)

    def heuristic(self, node) -> float:
        dx = self.x - node.x
        dy = self.y - node.y
        dz = self.z - node.z
        return distance_xz(dx, dz) + abs(dy)

    def is_end(self, node) -> bool:
        return node.x == self.x and node.y == self.y and node.z == self.z

    def __repr__(self) -> str:
        return f"GoalBlock({self.x}, {self.y}, {self.z})"


class GoalNear(Goal):
    """Get within `range` blocks of a position."""

    def __init__(self, x: float, y: float, z: float, range: float) -> None:
        self.x = math.floor(x)
        self.y = math.floor(y)
        self.z = math.floor(z)
        self.range_sq = range * range

    def heuristic(self, node) -> float:
        dx = self.x - node.x
        dy = self.y - node.y
        dz = self.z - node.z
        return distance_xz(dx, dz) + abs(dy)

    def is_end(self, node) -> bool:
        dx = self.x - node.x
        dy = self.y - node.y
        dz = self.z - node.z
        return dx * dx + dy * dy + dz * dz <= self.range_sq

    def __repr__(self) -> str:
        return f"GoalNear({self.x}, {self.y}, {self.z}, r={math.sqrt(self.range_sq):g})"


class GoalXZ(Goal):
    """Long range goal without a Y level."""

    def __init__(self, x: float, z: float) -> None:
        self.x = math.floor(x)
        self.z = math.floor(z)

    def heuristic(self, node) -> float:
        return distance_xz(self.x - node.x, self.z - node.z)

    def is_end(self, node) -> bool:
        return node.x == self.x and node.z == self.z

    def __repr__(self) -> str:
        return f"GoalXZ({self.x}, {self.z})"


class GoalNearXZ(Goal):
    def __init__(self, x: float, z: float, range: float) -> None:
        self.x = math.floor(x)
        self.z = math.floor(z)
        self.range_sq = range * range

    def heuristic(self, node) -> float:
        return distance_xz(self.x - node.x, self.z - node.z)

    def is_end(self, node) -> bool:
        dx = self.x - node.x
        dz = self.z - node.z
        return dx * dx + dz * dz <= self.range_sq

    def __repr__(self) -> str:
        return f"GoalNearXZ({self.x}, {self.z}, r={math.sqrt(self.range_sq):g})"


class GoalY(Goal):
    def __init__(self, y: float) -> None:
        self.y = math.floor(y)

    def heuristic(self, node) -> float:
        return abs(self.y - node.y)

    def is_end(self, node) -> bool:
        return node.y == self.y

    def __repr__(self) -> str:
        return f"GoalY({self.y})"


class GoalGetToBlock(Goal):
    """Stand directly next to a block without entering it (chests etc.)."""

    def __init__(self, x: float, y: float, z: float) -> None:
        self.x = math.floor(x)
        self.y = math.floor(y)
        self.z = math.floor(z)

    def heuristic(self, node) -> float:
        dx = node.x - self.x
        dy = node.y - self.y
        dz = node.z - self.z
        return distance_xz(dx, dz) + _vertical_adjacent(dy)

    def is_end(self, node) -> bool:
        dx = node.x - self.x
        dy = node.y - self.y
        dz = node.z - self.z
        return abs(dx) + _vertical_adjacent(dy) + abs(dz) == 1

    def __repr__(self) -> str:
        return f"GoalGetToBlock({self.x}, {self.y}, {self.z})"


# ---------------------------------------------------------------------------
# Visibility goals
# ---------------------------------------------------------------------------


class GoalLookAtBlock(Goal):
    """
    Reach a position from which a face of the block at `pos` is visible
    and within reach.
    """

    def __init__(
        self,
        pos: Vec3,
        world: WorldView,
        reach: float = 4.5,
        entity_height: float = 1.6,
    ) -> None:
        self.pos = pos.floored()
        self.world = world
        self.reach = reach
        self.entity_height = entity_height

    def heuristic(self, node) -> float:
        dx = node.x - self.pos.x
        dy = node.y - self.pos.y
        dz = node.z - self.pos.z
        return distance_xz(dx, dz) + _vertical_adjacent(dy)

    def is_end(self, node) -> bool:
        here = Vec3(node.x, node.y, node.z)
        if here.distance_to(self.pos.offset(0, self.entity_height, 0)) > self.reach:
            return False

        # Faces closer than half a block to the eye cannot be seen from here.
        dx = node.x - (self.pos.x + 0.5)
        dy = node.y + self.entity_height - (self.pos.y + 0.5)
        dz = node.z - (self.pos.z + 0.5)
        visible = (
            ("y", _sign_beyond_half(dy)),
            ("x", _sign_beyond_half(dx)),
            ("z", _sign_beyond_half(dz)),
        )
        eye = Vec3(node.x + 0.5, node.y + self.entity_height, node.z + 0.5)
        for axis, sign in visible:
            if not sign:
                continue
            target = self.pos.offset(
                0.5 + (sign * 0.5 if axis == "x" else 0),
                0.5 + (sign * 0.5 if axis == "y" else 0),
                0.5 + (sign * 0.5 if axis == "z" else 0),
            )
            direction = target.minus(eye).normalized()
            hit = self.world.raycast(eye, direction, self.reach)
            if hit is not None and hit.position.floored() == self.pos:
                return True
        return False

    def __repr__(self) -> str:
        return f"GoalLookAtBlock({self.pos.x}, {self.pos.y}, {self.pos.z})"


def _sign_beyond_half(delta: float) -> int:
    if abs(delta) <= 0.5:
        return 0
    return 1 if delta > 0 else -1


class GoalBreakBlock(Goal):
    """
    Reach a position from which the block can be broken. Breaking it is
    left to the caller.
    """

    def __init__(
        self,
        x: float,
        y: float,
        z: float,
        world: WorldView,
        reach: float = 4.5,
        entity_height: float = 1.6,
    ) -> None:
        self.goal = GoalLookAtBlock(Vec3(x, y, z), world, reach, entity_height)

    def heuristic(self, node) -> float:
        return self.goal.heuristic(node)

    def is_end(self, node) -> bool:
        return self.goal.is_end(node)

    def __repr__(self) -> str:
        p = self.goal.pos
        return f"GoalBreakBlock({p.x}, {p.y}, {p.z})"


def shape_face_centers(
    shapes: Iterable[Shape], face: Vec3, half: Optional[str] = None
) -> List[Vec3]:
    """
    Block-local centers of the faces of `shapes` pointing along `face`.

    With half="top" / "bottom" only the matching half of side faces is
    kept; horizontal faces in the wrong half are dropped.
    """
    centers: List[Vec3] = []
    for x0, y0, z0, x1, y1, z1 in shapes:
        hx, hy, hz = (x1 - x0) / 2, (y1 - y0) / 2, (z1 - z0) / 2
        cx = (x0 + x1) / 2 + hx * face.x
        cy = (y0 + y1) / 2 + hy * face.y
        cz = (z0 + z1) / 2 + hz * face.z
        if half == "top" and cy <= 0.5:
            if face.y != 0:
                continue
            cy += hy / 2
            if cy <= 0.5:
                continue
        elif half == "bottom" and cy >= 0.5:
            if face.y != 0:
                continue
            cy -= hy / 2
            if cy >= 0.5:
                continue
        centers.append(Vec3(cx, cy, cz))
    return centers


class GoalPlaceBlock(Goal):
    """
    Reach a position from which a block can be placed at `pos` by clicking
    a face of one of its neighbours.

    Options mirror what the server validates: `range` to the clicked face,
    the allowed `faces`, a required `facing` (north/east/south/west/up/down,
    up/down only with facing_3d), the clicked `half` and line of sight.
    """

    def __init__(
        self,
        pos: Vec3,
        world: WorldView,
        range: float = 5.0,
        los: bool = True,
        faces: Optional[Sequence[Vec3]] = None,
        facing: Optional[str] = None,
        facing_3d: bool = False,
        half: Optional[str] = None,
    ) -> None:
        self.pos = pos.floored()
        self.world = world
        self.range = range
        self.los = los
        self.facing = FACINGS.index(facing) if facing in FACINGS else -1
        self.facing_3d = facing_3d
        self.half = half

        # (face, world-space face center, reference block position)
        self.faces_pos: List[Tuple[Vec3, Vec3, Vec3]] = []
        for direction in faces or ALL_FACES:
            ref = self.pos.plus(direction)
            ref_block = world.block_at(ref)
            if ref_block is None:
                continue
            for center in shape_face_centers(ref_block.shapes, direction.scaled(-1), half):
                self.faces_pos.append((direction, center.plus(ref), ref))

    def heuristic(self, node) -> float:
        dx = node.x - self.pos.x
        dy = node.y - self.pos.y
        dz = node.z - self.pos.z
        return distance_xz(dx, dz) + _vertical_adjacent(dy)

    def is_end(self, node) -> bool:
        if self._is_standing_in(node):
            return False
        head = Vec3(node.x + 0.5, node.y + 1.6, node.z + 0.5)
        return self.face_and_ref(head) is not None

    def face_and_ref(self, head: Vec3) -> Optional[Tuple[Vec3, Vec3, Vec3]]:
        """Return (face, target point, reference) clickable from `head`."""
        for face, to, ref in self.faces_pos:
            direction = to.minus(head)
            if direction.norm() > self.range:
                continue
            if not self._check_facing(direction):
                continue
            if not self.los:
                return face, to, ref
            hit = self.world.raycast(head, direction.normalized(), self.range)
            if (
                hit is not None
                and hit.position.floored() == ref
                and hit.face == face.scaled(-1)
            ):
                return face, to, ref
        return None

    def _check_facing(self, direction: Vec3) -> bool:
        if self.facing < 0:
            return True
        if self.facing_3d:
            horizontal = math.hypot(direction.x, direction.z)
            vertical_angle = math.degrees(math.atan2(direction.y, horizontal))
            if vertical_angle > 45:
                return self.facing == 4
            if vertical_angle < -45:
                return self.facing == 5
        angle = math.degrees(math.atan2(direction.x, -direction.z)) + 180
        facing = int(math.floor(angle / 90 + 0.5)) & 0x3
        return self.facing == facing

    def _is_standing_in(self, node) -> bool:
        dx = node.x - self.pos.x
        dy = node.y - self.pos.y
        dz = node.z - self.pos.z
        return abs(dx) + _vertical_adjacent(dy) + abs(dz) < 1

    def __repr__(self) -> str:
        return f"GoalPlaceBlock({self.pos.x}, {self.pos.y}, {self.pos.z})"


# ---------------------------------------------------------------------------
# Composite goals
# ---------------------------------------------------------------------------


class GoalCompositeAny(Goal):
    """Satisfied by any child; heads for the cheapest one."""

    def __init__(self, goals: Optional[Iterable[Goal]] = None) -> None:
        self.goals: List[Goal] = list(goals or [])

    def push(self, goal: Goal) -> None:
        self.goals.append(goal)

    def heuristic(self, node) -> float:
        return min((g.heuristic(node) for g in self.goals), default=math.inf)

    def is_end(self, node) -> bool:
        return any(g.is_end(node) for g in self.goals)

    def has_changed(self) -> bool:
        return any(g.has_changed() for g in self.goals)

    def is_valid(self) -> bool:
        return all(g.is_valid() for g in self.goals)

    def refresh(self) -> None:
        for g in self.goals:
            g.refresh()

    def __repr__(self) -> str:
        return f"GoalCompositeAny({self.goals!r})"


class GoalCompositeAll(Goal):
    """Satisfied only when every child is."""

    def __init__(self, goals: Optional[Iterable[Goal]] = None) -> None:
        self.goals: List[Goal] = list(goals or [])

    def push(self, goal: Goal) -> None:
        self.goals.append(goal)

    def heuristic(self, node) -> float:
        return max((g.heuristic(node) for g in self.goals), default=0.0)

    def is_end(self, node) -> bool:
        return all(g.is_end(node) for g in self.goals)

    def has_changed(self) -> bool:
        return any(g.has_changed() for g in self.goals)

    def is_valid(self) -> bool:
        return all(g.is_valid() for g in self.goals)

    def refresh(self) -> None:
        for g in self.goals:
            g.refresh()

    def __repr__(self) -> str:
        return f"GoalCompositeAll({self.goals!r})"


class GoalInvert(Goal):
    """Get away from the wrapped goal."""

    def __init__(self, goal: Goal) -> None:
        self.goal = goal

    def heuristic(self, node) -> float:
        return -self.goal.heuristic(node)

    def is_end(self, node) -> bool:
        return not self.goal.is_end(node)

    def has_changed(self) -> bool:
        return self.goal.has_changed()

    def is_valid(self) -> bool:
        return self.goal.is_valid()

    def refresh(self) -> None:
        self.goal.refresh()

    def __repr__(self) -> str:
        return f"GoalInvert({self.goal!r})"


# ---------------------------------------------------------------------------
# Dynamic goals
# ---------------------------------------------------------------------------


class GoalFollow(Goal):
    """
    Stay within `range` of a moving entity.

    The target voxel is only updated by refresh(), so a search in flight
    keeps a stable heuristic until the controller acknowledges the move.
    """

    def __init__(self, entity, range: float) -> None:
        self.entity = entity
        p = entity.position.floored()
        self.x, self.y, self.z = int(p.x), int(p.y), int(p.z)
        self.range_sq = range * range
        self._pending: Optional[Vec3] = None

    def heuristic(self, node) -> float:
        dx = self.x - node.x
        dy = self.y - node.y
        dz = self.z - node.z
        return distance_xz(dx, dz) + abs(dy)

    def is_end(self, node) -> bool:
        dx = self.x - node.x
        dy = self.y - node.y
        dz = self.z - node.z
        return dx * dx + dy * dy + dz * dz <= self.range_sq

    def has_changed(self) -> bool:
        p = self.entity.position.floored()
        dx = self.x - p.x
        dy = self.y - p.y
        dz = self.z - p.z
        if dx * dx + dy * dy + dz * dz > self.range_sq:
            self._pending = p
            return True
        return False

    def refresh(self) -> None:
        if self._pending is not None:
            p = self._pending
            self.x, self.y, self.z = int(p.x), int(p.y), int(p.z)
            self._pending = None

    def is_valid(self) -> bool:
        return self.entity is not None and bool(getattr(self.entity, "is_valid", True))

    def __repr__(self) -> str:
        return f"GoalFollow(entity={getattr(self.entity, 'id', None)}, at={self.x},{self.y},{self.z})"

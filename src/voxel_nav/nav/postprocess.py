# Path refinement between search and execution
# src/voxel_nav/nav/postprocess.py
"""
Path post-processing.

Pass 1 (align_footing): every leading move without side-actions gets
an exact target: the centre of the surface the agent will stand on.

Pass 2 (simplify): drop intermediate nodes the controller does not need.
    default  - collapse runs of moves heading the same way
    shortcut - skip nodes the physics predictor can reach in a straight
               line from the last kept node
Neither mode runs while step exclusion areas are configured, since
skipped nodes would no longer be checked against them.

Both passes keep move hashes, so a processed move still identifies the
search node it came from.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import List, Optional, Sequence

from ..vec3 import Vec3
from ..world import Block, WorldView
from .movements import Movements
from .move import Move
from .physics import DEFAULT_REACH_ERROR, Physics

log = logging.getLogger(__name__)

NEAR_PATH_HORIZONTAL = 1.0
NEAR_PATH_VERTICAL = 2.0


def position_on_top_of(block: Optional[Block]) -> Optional[Vec3]:
    """Centre of the highest collision surface of `block`, if it has any."""
    if block is None or not block.shapes:
        return None
    top = max(shape[4] for shape in block.shapes)
    tops = [shape for shape in block.shapes if shape[4] == top]
    cx = sum((s[0] + s[3]) / 2 for s in tops) / len(tops)
    cz = sum((s[2] + s[5]) / 2 for s in tops) / len(tops)
    p = block.position
    return Vec3(p.x + cx, p.y + top, p.z + cz)


def _centered(move: Move, y: float) -> Move:
    return replace(move, x=math.floor(move.x) + 0.5, y=y, z=math.floor(move.z) + 0.5)


def _direction(a: Vec3, b: Vec3) -> Vec3:
    d = b.minus(a).normalized()
    return Vec3(round(d.x, 6), round(d.y, 6), round(d.z, 6))


def path_from_player(
    path: Sequence[Move], position: Vec3, error: float = DEFAULT_REACH_ERROR
) -> List[Move]:
    """
    Drop the nodes the agent has already passed.

    Only the leading run without side-actions is considered. When the
    agent stands between two nodes, the first one counts as passed, as
    does a node within `error` of the agent horizontally.
    """
    if not path:
        return []
    min_i = 0
    min_distance = math.inf
    for i, node in enumerate(path):
        if node.has_actions:
            break
        dist = position.distance_squared_to(node.position)
        if dist < min_distance:
            min_distance = dist
            min_i = i

    n1 = path[min_i]
    reached = (
        abs(n1.x - position.x) <= error
        and abs(n1.z - position.z) <= error
        and abs(n1.y - position.y) < 1
    )
    if min_i + 1 < len(path) and not n1.has_actions:
        n2 = path[min_i + 1]
        d2 = position.distance_squared_to(n2.position)
        d12 = n1.position.distance_squared_to(n2.position)
        if d12 > d2 or reached:
            min_i += 1
    return list(path[min_i:])


def is_position_near_path(pos: Vec3, path: Sequence[Move]) -> bool:
    """True when voxel `pos` lies close to any segment of the path."""
    center = Vec3(pos.x + 0.5, pos.y + 0.5, pos.z + 0.5)
    prev: Optional[Vec3] = None
    for node in path:
        point = node.position
        if prev is not None:
            seg = point.minus(prev)
            length_sq = seg.dot(seg)
            if length_sq > 0:
                t = max(0.0, min(1.0, center.minus(prev).dot(seg) / length_sq))
                point = prev.plus(seg.scaled(t))
        if (
            abs(point.x - center.x) <= NEAR_PATH_HORIZONTAL
            and abs(point.y - center.y) <= NEAR_PATH_VERTICAL
            and abs(point.z - center.z) <= NEAR_PATH_HORIZONTAL
        ):
            return True
        prev = node.position
    return False


class PathPostProcessor:
    """
    Turns raw search output into an executable trajectory.

    It does NOT:
    - Reorder moves or drop side-actions.
    - Talk to the agent.
    """

    def __init__(
        self,
        world: WorldView,
        movements: Movements,
        physics: Optional[Physics] = None,
        *,
        enable_path_shortcut: bool = False,
    ) -> None:
        self.world = world
        self.movements = movements
        self.physics = physics
        self.enable_path_shortcut = enable_path_shortcut

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(self, path: Sequence[Move], start: Vec3) -> List[Move]:
        return self.simplify(self.align_footing(path), start)

    def align_footing(self, path: Sequence[Move]) -> List[Move]:
        out: List[Move] = list(path)
        for i, node in enumerate(out):
            if node.has_actions:
                break
            cell = Vec3(math.floor(node.x), math.floor(node.y), math.floor(node.z))
            block = self.world.block_at(cell)
            name = block.name if block is not None else ""
            descending = i + 1 < len(out) and out[i + 1].y < node.y
            if name in self.movements.config.liquids or (
                name in self.movements.config.climbables and descending
            ):
                out[i] = _centered(node, float(cell.y))
                continue

            top = position_on_top_of(block)
            if top is None:
                top = position_on_top_of(self.world.block_at(cell.offset(0, -1, 0)))
            if top is not None:
                out[i] = replace(node, x=top.x, y=top.y, z=top.z)
            else:
                out[i] = _centered(node, node.y)
        return out

    def simplify(self, path: Sequence[Move], start: Vec3) -> List[Move]:
        if not path or self.movements.config.exclusion_areas_step:
            return list(path)
        if self.enable_path_shortcut and self.physics is not None:
            return self._shortcut(path, start)
        return self._collapse(path, start)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _collapse(self, path: Sequence[Move], start: Vec3) -> List[Move]:
        out: List[Move] = []
        prev_pos = start
        prev_dir: Optional[Vec3] = None
        for i, node in enumerate(path):
            direction = _direction(prev_pos, node.position)
            if i > 0:
                before = path[i - 1]
                pinned = (
                    node.has_actions
                    or node.dont_optimize
                    or before.has_actions
                    or before.dont_optimize
                )
                if pinned or direction != prev_dir:
                    out.append(before)
            prev_dir = direction
            prev_pos = node.position
        out.append(path[-1])
        return out

    def _shortcut(self, path: Sequence[Move], start: Vec3) -> List[Move]:
        out: List[Move] = []
        last = start
        for i in range(1, len(path)):
            node = path[i]
            before = path[i - 1]
            if (
                abs(node.y - last.y) > 0.5
                or node.has_actions
                or node.dont_optimize
                or before.has_actions
                or before.dont_optimize
                or not self.physics.can_straight_line_between(last, node.position)
            ):
                out.append(before)
                last = before.position
        out.append(path[-1])
        log.debug("shortcut kept %d of %d nodes", len(out), len(path))
        return out

# navigation grid abstraction over world blocks
# src/voxel_nav/nav/grid.py
"""
NavGrid: classifies world blocks for the movement model.

This module only answers "what is at (x, y, z) and how can the agent
interact with it". It does not generate moves or assign costs.

Classification rules:
- physical: full bounding box, not fence-like, not passable-empty and
  not a container the agent would sink into (cauldrons, composters).
- safe: no collision (empty, passable, climbable or carpet-like) and
  not in the avoid set.
- replaceable: in the replaceable set and not physical.
- height: top of the highest collision shape, or the block's floor.

Unloaded positions come back as an unsafe, non-physical SafeBlock so the
search treats unknown territory as a wall rather than failing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from ..vec3 import Vec3
from ..world import Block, Shape, WorldView
from .movement_config import MovementsConfig, NON_PHYSICAL_CONTAINERS


@dataclass
class SafeBlock:
    """A block annotated with navigation properties."""

    name: str
    position: Vec3
    height: float
    shapes: Tuple[Shape, ...] = ()
    safe: bool = False
    physical: bool = False
    replaceable: bool = False
    liquid: bool = False
    climbable: bool = False
    can_fall: bool = False
    openable: bool = False
    can_walk_on: bool = False
    can_jump_from: bool = False
    fence: bool = False
    carpet: bool = False
    raw: Optional[Block] = None

    @property
    def known(self) -> bool:
        return self.raw is not None


@dataclass
class NavGrid:
    """
    Block classification on top of a WorldView.

    Responsibilities:
    - Look up blocks at node + offset.
    - Derive fence / carpet / empty categories from collision shapes.

    It does NOT:
    - Enumerate moves or compute costs (see nav.movements).
    """

    world: WorldView
    config: MovementsConfig

    # ------------------------------------------------------------------
    # Core queries
    # ------------------------------------------------------------------

    def get_block(self, pos, dx: float = 0, dy: float = 0, dz: float = 0) -> SafeBlock:
        """Classified block at `pos` + (dx, dy, dz)."""
        p = Vec3(
            math.floor(pos.x + dx),
            math.floor(pos.y + dy),
            math.floor(pos.z + dz),
        )
        block = self.world.block_at(p)
        if block is None:
            return SafeBlock(name="", position=p, height=p.y)
        return self.classify(block, p)

    def classify(self, block: Block, p: Vec3) -> SafeBlock:
        cfg = self.config
        name = block.name
        fence = self._is_fence(block)
        carpet = self._is_carpet(block)
        empty = self._is_empty(block)

        physical = (
            block.bounding_box == "block"
            and not fence
            and not empty
            and name not in NON_PHYSICAL_CONTAINERS
        )
        climbable = name in cfg.climbables
        liquid = name in cfg.liquids
        safe = (
            empty or block.bounding_box == "empty" or climbable or carpet
        ) and name not in cfg.blocks_to_avoid

        height = float(p.y)
        for shape in block.shapes:
            height = max(height, p.y + shape[4])

        return SafeBlock(
            name=name,
            position=p,
            height=height,
            shapes=tuple(block.shapes),
            safe=safe,
            physical=physical,
            replaceable=name in cfg.replaceables and not physical,
            liquid=liquid,
            climbable=climbable,
            can_fall=name in cfg.gravity_blocks,
            openable=name in cfg.openable,
            can_walk_on=physical,
            can_jump_from=not liquid,
            fence=fence,
            carpet=carpet,
            raw=block,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _is_empty(self, block: Block) -> bool:
        return block.name in self.config.empty_blocks or not block.shapes

    def _is_fence(self, block: Block) -> bool:
        # Anything taller than a block is treated as a wall, never a floor.
        if block.name in self.config.fences:
            return True
        return bool(block.shapes) and block.shapes[0][4] > 1

    def _is_carpet(self, block: Block) -> bool:
        # Shapes lower than 0.1 can be walked through.
        if block.name in self.config.carpets:
            return True
        return bool(block.shapes) and block.shapes[0][4] < 0.1

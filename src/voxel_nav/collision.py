# src/voxel_nav/collision.py
"""
Entity collision index for the movement model.

Maps each voxel touched by an entity's bounding box to an obstruction
weight. Entities the agent must avoid contribute infinity; any other
non-passable entity contributes 1, so crowded cells cost more.

The index is rebuilt once per path by the controller. Callers may mix in
their own entries between rebuilds (handy in tests).
"""

from __future__ import annotations

import math
from typing import AbstractSet, Dict, Iterable, Optional, Tuple

from .world import Entity

Cell = Tuple[int, int, int]

# Entities that never block movement or placement.
DEFAULT_PASSABLE_ENTITIES = frozenset(
    {
        "area_effect_cloud",
        "arrow",
        "dragon_fireball",
        "egg",
        "ender_pearl",
        "experience_bottle",
        "experience_orb",
        "eye_of_ender",
        "fireball",
        "firework_rocket",
        "fishing_bobber",
        "glow_item_frame",
        "item",
        "item_frame",
        "leash_knot",
        "lightning_bolt",
        "marker",
        "painting",
        "potion",
        "small_fireball",
        "snowball",
        "spectral_arrow",
        "trident",
        "wither_skull",
    }
)


class EntityCollisionIndex:
    def __init__(self) -> None:
        self._cells: Dict[Cell, float] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def clear(self) -> None:
        self._cells.clear()

    def add(self, cell: Cell, weight: float = 1.0) -> None:
        self._cells[cell] = self._cells.get(cell, 0.0) + weight

    def weight_at(self, x: int, y: int, z: int) -> float:
        return self._cells.get((x, y, z), 0.0)

    def rebuild(
        self,
        entities: Iterable[Entity],
        *,
        self_id: Optional[int],
        avoid: AbstractSet[str],
        passable: AbstractSet[str],
    ) -> None:
        """Replace the index with the footprint of every obstructing entity."""
        self._cells.clear()
        self.add_entities(entities, self_id=self_id, avoid=avoid, passable=passable)

    def add_entities(
        self,
        entities: Iterable[Entity],
        *,
        self_id: Optional[int],
        avoid: AbstractSet[str],
        passable: AbstractSet[str],
    ) -> None:
        """Add entity footprints on top of the current weights."""
        for ent in entities:
            if ent.id == self_id or not ent.name:
                continue
            avoided = ent.name in avoid
            if not avoided and ent.name in passable:
                continue

            weight = math.inf if avoided else 1.0
            half = ent.width / 2.0
            min_y = math.floor(ent.position.y)
            max_y = math.ceil(ent.position.y + ent.height)
            min_x = math.floor(ent.position.x - half)
            max_x = math.ceil(ent.position.x + half)
            min_z = math.floor(ent.position.z - half)
            max_z = math.ceil(ent.position.z + half)
            for y in range(min_y, max_y):
                for x in range(min_x, max_x):
                    for z in range(min_z, max_z):
                        self.add((x, y, z), weight)

    def __len__(self) -> int:
        return len(self._cells)

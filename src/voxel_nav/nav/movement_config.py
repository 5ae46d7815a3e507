# src/voxel_nav/nav/movement_config.py
"""
Tunable policy for the movement model.

Block and entity categories are keyed by name. Defaults describe an
ordinary survival player: may dig and place, avoids lava and cobwebs,
never breaks chests, drops at most 4 blocks onto solid ground.

Exclusion areas are callables taking a SafeBlock and returning an extra
weight; returning math.inf forbids stepping on / breaking / placing at
that block.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Callable, List, Set

from ..collision import DEFAULT_PASSABLE_ENTITIES

if TYPE_CHECKING:
    from .grid import SafeBlock

ExclusionArea = Callable[["SafeBlock"], float]

DOORS = (
    "oak_door",
    "spruce_door",
    "birch_door",
    "jungle_door",
    "acacia_door",
    "dark_oak_door",
    "mangrove_door",
    "cherry_door",
    "bamboo_door",
    "crimson_door",
    "warped_door",
)

FENCE_GATES = tuple(name.replace("_door", "_fence_gate") for name in DOORS)

INTERACTABLE_BLOCKS = (
    "chest",
    "trapped_chest",
    "ender_chest",
    "barrel",
    "crafting_table",
    "furnace",
    "blast_furnace",
    "smoker",
    "anvil",
    "enchanting_table",
    "brewing_stand",
    "hopper",
    "dispenser",
    "dropper",
    "lever",
    "stone_button",
    "oak_button",
    "note_block",
    "repeater",
    "comparator",
    "bed",
    "shulker_box",
) + DOORS + FENCE_GATES

# Blocks with a full bounding box that still cannot be stood on safely.
NON_PHYSICAL_CONTAINERS = frozenset(
    {
        "composter",
        "cauldron",
        "water_cauldron",
        "lava_cauldron",
        "powder_snow_cauldron",
    }
)


def _set(*names: str) -> Callable[[], Set[str]]:
    return lambda: set(names)


@dataclass
class MovementsConfig:
    """Movement policy: block categories, cost weights and toggles."""

    can_dig: bool = True
    can_open_doors: bool = False
    dont_create_flow: bool = True
    dont_mine_under_falling_block: bool = True
    allow_1by1_towers: bool = True
    allow_free_motion: bool = False
    allow_parkour: bool = True
    allow_sprinting: bool = True
    allow_entity_detection: bool = True

    dig_cost: float = 1.0
    place_cost: float = 1.0
    liquid_cost: float = 1.0
    entity_cost: float = 1.0

    max_drop_down: int = 4
    infinite_liquid_dropdown_distance: bool = True

    blocks_cant_break: Set[str] = field(
        default_factory=_set("chest", "bedrock", "barrier", "end_portal_frame", "command_block")
    )
    blocks_can_break_anyway: Set[str] = field(default_factory=set)
    blocks_to_avoid: Set[str] = field(default_factory=_set("cobweb", "lava"))
    liquids: Set[str] = field(default_factory=_set("water", "lava"))
    gravity_blocks: Set[str] = field(default_factory=_set("sand", "gravel", "red_sand"))
    climbables: Set[str] = field(default_factory=_set("ladder"))
    empty_blocks: Set[str] = field(default_factory=_set("end_portal", "nether_portal"))
    replaceables: Set[str] = field(
        default_factory=_set("air", "cave_air", "void_air", "water", "lava")
    )
    fences: Set[str] = field(default_factory=set)
    carpets: Set[str] = field(default_factory=set)
    openable: Set[str] = field(default_factory=lambda: set(DOORS + FENCE_GATES))
    interactable_blocks: Set[str] = field(default_factory=lambda: set(INTERACTABLE_BLOCKS))
    scaffolding_blocks: List[str] = field(default_factory=lambda: ["dirt", "cobblestone"])

    entities_to_avoid: Set[str] = field(default_factory=set)
    passable_entities: Set[str] = field(default_factory=lambda: set(DEFAULT_PASSABLE_ENTITIES))

    exclusion_areas_step: List[ExclusionArea] = field(default_factory=list)
    exclusion_areas_break: List[ExclusionArea] = field(default_factory=list)
    exclusion_areas_place: List[ExclusionArea] = field(default_factory=list)

    def __post_init__(self) -> None:
        for name in ("dig_cost", "place_cost", "liquid_cost", "entity_cost"):
            value = getattr(self, name)
            if value < 0 or math.isnan(value):
                raise ValueError(f"{name} must be non-negative, got {value!r}")
        if self.max_drop_down < 0:
            raise ValueError(f"max_drop_down must be non-negative, got {self.max_drop_down!r}")

    def copy(self) -> "MovementsConfig":
        """Independent copy; category sets and exclusion lists are not shared."""
        changes = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (set, list)):
                changes[f.name] = type(value)(value)
        return replace(self, **changes)

# src/voxel_nav/tools.py
"""
Dig time estimation and best-tool selection.

Follows the usual voxel-game mining rules:
    speed  = tool multiplier for the block material (1 for bare hands)
    speed += efficiency^2 + 1            (only if the tool helps at all)
    speed *= 1 + 0.2 * haste
    speed *= 0.3 ** min(fatigue, 4)
    damage = speed / hardness / (30 if harvestable else 100)
    time   = ceil(1 / damage) ticks of 50 ms, or 0 when damage > 1
"""

from __future__ import annotations

import math
from typing import Iterable, Mapping, Optional

from .world import Block, Item

TICK_MS = 50.0


def can_harvest(block: Block, item: Optional[Item]) -> bool:
    if block.harvest_tools is None:
        return True
    return item is not None and item.name in block.harvest_tools


def dig_time_ms(
    block: Block,
    item: Optional[Item] = None,
    effects: Optional[Mapping[str, int]] = None,
) -> float:
    """Estimated time in milliseconds to break `block` holding `item`."""
    if block.hardness is None:
        return math.inf
    if block.hardness <= 0:
        return 0.0

    effects = effects or {}
    speed = 1.0
    if item is not None:
        speed = float(item.tool_speeds.get(block.material, 1.0))
        efficiency = int(item.enchantments.get("efficiency", 0))
        if speed > 1.0 and efficiency > 0:
            speed += efficiency * efficiency + 1

    haste = int(effects.get("haste", 0))
    if haste > 0:
        speed *= 1.0 + 0.2 * haste
    fatigue = int(effects.get("mining_fatigue", 0))
    if fatigue > 0:
        speed *= 0.3 ** min(fatigue, 4)

    damage = speed / block.hardness
    damage /= 30.0 if can_harvest(block, item) else 100.0
    if damage > 1.0:
        return 0.0
    return math.ceil(1.0 / damage) * TICK_MS


def best_harvest_tool(
    block: Optional[Block],
    items: Iterable[Item],
    effects: Optional[Mapping[str, int]] = None,
) -> Optional[Item]:
    """
    Item minimizing dig time for `block`; the first one wins on ties.

    Returns None for unknown blocks or when no item beats bare hands.
    """
    if block is None:
        return None
    fastest = dig_time_ms(block, None, effects)
    best: Optional[Item] = None
    for item in items:
        t = dig_time_ms(block, item, effects)
        if t < fastest:
            fastest = t
            best = item
    return best

# tests/test_tools.py

from __future__ import annotations

import math

from voxel_nav.testing import make_block
from voxel_nav.tools import best_harvest_tool, can_harvest, dig_time_ms
from voxel_nav.vec3 import Vec3
from voxel_nav.world import Item

ORIGIN = Vec3(0, 0, 0)

PICKAXE = Item("stone_pickaxe", tool_speeds={"rock": 2.0})
SHOVEL = Item("wooden_shovel", tool_speeds={"dirt": 2.0})


def test_bare_hand_dig_times() -> None:
    assert dig_time_ms(make_block("dirt", ORIGIN)) == 750
    # Stone drops nothing without a pickaxe and digs 100x slower per hardness.
    assert dig_time_ms(make_block("stone", ORIGIN)) == 7500
    assert dig_time_ms(make_block("air", ORIGIN)) == 0
    assert math.isinf(dig_time_ms(make_block("bedrock", ORIGIN)))


def test_tools_and_enchantments_speed_up_digging() -> None:
    stone = make_block("stone", ORIGIN)
    assert can_harvest(stone, PICKAXE)
    assert not can_harvest(stone, SHOVEL)
    assert dig_time_ms(stone, PICKAXE) == 1150

    enchanted = Item("stone_pickaxe", tool_speeds={"rock": 2.0}, enchantments={"efficiency": 1})
    assert dig_time_ms(stone, enchanted) == 600

    # Efficiency does nothing on a block the tool is not made for.
    dirt = make_block("dirt", ORIGIN)
    unrelated = Item("stone_pickaxe", tool_speeds={"rock": 2.0}, enchantments={"efficiency": 3})
    assert dig_time_ms(dirt, unrelated) == 750


def test_effects_change_dig_time() -> None:
    dirt = make_block("dirt", ORIGIN)
    assert dig_time_ms(dirt, None, {"haste": 1}) == 650
    assert dig_time_ms(dirt, None, {"mining_fatigue": 1}) > 750


def test_instant_break_when_damage_exceeds_one() -> None:
    fragile = make_block("dirt", ORIGIN, hardness=0.01)
    assert dig_time_ms(fragile) == 0


def test_best_harvest_tool() -> None:
    dirt = make_block("dirt", ORIGIN)
    assert best_harvest_tool(dirt, [PICKAXE, SHOVEL]) is SHOVEL
    # Nothing beats bare hands.
    assert best_harvest_tool(dirt, [PICKAXE]) is None
    assert best_harvest_tool(None, [SHOVEL]) is None

    twin = Item("stone_pickaxe", tool_speeds={"rock": 2.0})
    assert best_harvest_tool(make_block("stone", ORIGIN), [PICKAXE, twin]) is PICKAXE

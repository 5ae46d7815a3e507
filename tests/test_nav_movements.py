# tests/test_nav_movements.py
"""
Unit tests for voxel_nav.nav.movements.

Covers:
- Neighbour enumeration on open ground
- Bridging with scaffolding blocks
- Dig costs with and without a matching tool
- Unbreakable blocks, entities and exclusion areas
- Parkour over gaps, drop-downs and the max_drop_down limit
- Jump-up pillars, diagonal steps and parkour landing heights
"""

from __future__ import annotations

import math
from typing import List

import pytest

from tests.fakes.nav_worlds import flat_world, gap_world, make_movements
from voxel_nav.nav.move import Move, MoveType, SprintPolicy, ToPlace
from voxel_nav.nav.movement_config import MovementsConfig
from voxel_nav.testing import FakeAgent
from voxel_nav.vec3 import Vec3
from voxel_nav.world import Entity, Item


def _at(moves: List[Move], x: int, y: int, z: int, move_type: MoveType) -> List[Move]:
    return [
        m for m in moves
        if (m.x, m.y, m.z) == (x, y, z) and m.move_type is move_type
    ]


def test_open_ground_yields_cardinals_and_diagonals_only() -> None:
    world = flat_world()
    movements = make_movements(world, FakeAgent(world=world))

    neighbors = movements.get_neighbors(Move(0, 1, 0, 0, 0.0))

    assert len(neighbors) == 8
    forward = [m for m in neighbors if m.move_type is MoveType.FORWARD]
    diagonal = [m for m in neighbors if m.move_type is MoveType.DIAGONAL]
    assert sorted((m.x, m.z) for m in forward) == [(-1, 0), (0, -1), (0, 1), (1, 0)]
    assert all(m.cost == 1.0 for m in forward)
    assert all(math.isclose(m.cost, math.sqrt(2)) for m in diagonal)
    assert all(not m.has_actions for m in neighbors)
    # Cardinal moves come first.
    assert [m.move_type for m in neighbors[:4]] == [MoveType.FORWARD] * 4


def test_no_parkour_without_something_to_jump_over() -> None:
    world = flat_world()
    movements = make_movements(world, FakeAgent(world=world))
    neighbors = movements.get_neighbors(Move(2, 1, 0, 0, 0.0))
    assert not any(m.move_type is MoveType.PARKOUR for m in neighbors)


def test_bridging_needs_scaffolding() -> None:
    world = gap_world(gap_x=1)
    movements = make_movements(world, FakeAgent(world=world), allow_parkour=False)

    without = movements.get_neighbors(Move(0, 1, 0, 0, 0.0))
    assert not _at(without, 1, 1, 0, MoveType.FORWARD)

    with_blocks = movements.get_neighbors(Move(0, 1, 0, 3, 0.0))
    (bridge,) = _at(with_blocks, 1, 1, 0, MoveType.FORWARD)
    assert bridge.to_place == (ToPlace(0, 0, 0, 1, 0, 0),)
    assert bridge.remaining_scaffolding == 2
    assert bridge.cost == 2.0


def test_scaffolding_count_follows_config_order() -> None:
    world = flat_world()
    agent = FakeAgent(
        world=world,
        items=[Item("cobblestone", count=5), Item("dirt", count=3), Item("stick", count=9)],
    )
    movements = make_movements(world, agent)

    assert movements.count_scaffolding_items() == 8
    assert movements.get_scaffolding_item().name == "dirt"


def test_dig_cost_uses_best_tool() -> None:
    world = flat_world()
    world.set_block(1, 1, 0, "dirt")
    world.set_block(1, 2, 0, "dirt")

    bare = make_movements(world, FakeAgent(world=world))
    (move,) = _at(bare.get_neighbors(Move(0, 1, 0, 0, 0.0)), 1, 1, 0, MoveType.FORWARD)
    # 1 + 2 * (1 + 3 * 0.75s)
    assert math.isclose(move.cost, 7.5)
    assert move.to_break == (Vec3(1, 1, 0), Vec3(1, 2, 0))

    shovel = Item("wooden_shovel", tool_speeds={"dirt": 2.0})
    tooled = make_movements(world, FakeAgent(world=world, items=[shovel]))
    (move,) = _at(tooled.get_neighbors(Move(0, 1, 0, 0, 0.0)), 1, 1, 0, MoveType.FORWARD)
    assert math.isclose(move.cost, 5.4)


def test_cannot_dig_when_disabled() -> None:
    world = flat_world()
    world.set_block(1, 1, 0, "dirt")
    movements = make_movements(world, FakeAgent(world=world), can_dig=False)
    moves = movements.get_neighbors(Move(0, 1, 0, 0, 0.0))
    assert not _at(moves, 1, 1, 0, MoveType.FORWARD)


def test_blocks_cant_break_are_never_scheduled() -> None:
    world = flat_world()
    world.set_block(1, 1, 0, "obsidian")
    agent = FakeAgent(world=world)

    breakable = make_movements(world, agent)
    assert _at(breakable.get_neighbors(Move(0, 1, 0, 0, 0.0)), 1, 1, 0, MoveType.FORWARD)

    guarded = make_movements(world, agent, blocks_cant_break={"obsidian"})
    for move in guarded.get_neighbors(Move(0, 1, 0, 0, 0.0)):
        assert Vec3(1, 1, 0) not in move.to_break


def test_no_digging_under_falling_blocks() -> None:
    world = flat_world()
    world.set_block(1, 1, 0, "dirt")
    world.set_block(1, 2, 0, "dirt")
    world.set_block(1, 3, 0, "sand")
    movements = make_movements(world, FakeAgent(world=world))
    moves = movements.get_neighbors(Move(0, 1, 0, 0, 0.0))
    assert not _at(moves, 1, 1, 0, MoveType.FORWARD)


def test_entity_in_destination_adds_cost() -> None:
    world = flat_world()
    agent = FakeAgent(world=world)
    world.add_entity(Entity(id=2, name="zombie", position=Vec3(1.5, 1, 0.5)))
    # The agent's own entity is never an obstacle.
    world.add_entity(Entity(id=agent.entity_id, name="player", position=Vec3(-0.5, 1, 0.5)))

    movements = make_movements(world, agent)
    movements.update_collision_index()
    moves = movements.get_neighbors(Move(0, 1, 0, 0, 0.0))

    (east,) = _at(moves, 1, 1, 0, MoveType.FORWARD)
    assert east.cost == 3.0
    (west,) = _at(moves, -1, 1, 0, MoveType.FORWARD)
    assert west.cost == 1.0


def test_avoided_entities_block_the_cell() -> None:
    world = flat_world()
    agent = FakeAgent(world=world)
    world.add_entity(Entity(id=3, name="creeper", position=Vec3(1.5, 1, 0.5)))

    movements = make_movements(world, agent, entities_to_avoid={"creeper"})
    movements.update_collision_index()
    moves = movements.get_neighbors(Move(0, 1, 0, 0, 0.0))
    assert not _at(moves, 1, 1, 0, MoveType.FORWARD)

    movements.clear_collision_index()
    moves = movements.get_neighbors(Move(0, 1, 0, 0, 0.0))
    assert _at(moves, 1, 1, 0, MoveType.FORWARD)


def test_exclusion_area_vetoes_steps() -> None:
    world = flat_world()
    movements = make_movements(
        world,
        FakeAgent(world=world),
        exclusion_areas_step=[lambda block: math.inf if block.position.x == 1 else 0.0],
    )
    moves = movements.get_neighbors(Move(0, 1, 0, 0, 0.0))
    assert not _at(moves, 1, 1, 0, MoveType.FORWARD)
    assert _at(moves, -1, 1, 0, MoveType.FORWARD)


def test_danger_cost_for_lava_below_a_side() -> None:
    world = flat_world()
    world.set_block(2, 0, 0, "lava")
    movements = make_movements(world, FakeAgent(world=world))
    assert movements.danger_cost(Vec3(1, 1, 0)) == 50
    assert movements.danger_cost(Vec3(-2, 1, 0)) == 0


def test_parkour_crosses_gap_only_when_allowed() -> None:
    world = gap_world(gap_x=1)
    agent = FakeAgent(world=world)

    parkour = make_movements(world, agent)
    # Found both by the cardinal scan and by the disc scan.
    jumps = _at(parkour.get_neighbors(Move(0, 1, 0, 0, 0.0)), 2, 1, 0, MoveType.PARKOUR)
    assert jumps
    assert math.isclose(min(m.cost for m in jumps), 1.1)
    assert all(m.sprint is SprintPolicy.NO and m.dont_optimize for m in jumps)

    grounded = make_movements(world, agent, allow_parkour=False)
    moves = grounded.get_neighbors(Move(0, 1, 0, 0, 0.0))
    assert not [m for m in moves if m.x == 2]


def test_drop_down_respects_max_drop() -> None:
    world = flat_world(height=8)
    world.fill(-4, 1, -3, 0, 4, 3, "stone")
    agent = FakeAgent(world=world)
    node = Move(0, 5, 0, 0, 0.0)

    default = make_movements(world, agent)
    neighbors: List[Move] = []
    default.get_move_drop_down(node, 1, 0, neighbors)
    assert neighbors == []

    deep = make_movements(world, agent, max_drop_down=5)
    deep.get_move_drop_down(node, 1, 0, neighbors)
    (drop,) = neighbors
    assert (drop.x, drop.y, drop.z) == (1, 1, 0)
    assert drop.move_type is MoveType.DROP_DOWN
    assert drop.cost == 1.0


def test_tower_up_places_under_feet() -> None:
    world = flat_world()
    movements = make_movements(world, FakeAgent(world=world))

    neighbors: List[Move] = []
    movements.get_move_up(Move(0, 1, 0, 0, 0.0), neighbors)
    assert neighbors == []

    movements.get_move_up(Move(0, 1, 0, 1, 0.0), neighbors)
    (up,) = neighbors
    assert (up.x, up.y, up.z) == (0, 2, 0)
    assert up.to_place == (ToPlace(0, 0, 0, 0, 1, 0, jump=True),)
    assert up.remaining_scaffolding == 0


def test_config_rejects_negative_costs() -> None:
    with pytest.raises(ValueError):
        MovementsConfig(dig_cost=-1)
    with pytest.raises(ValueError):
        MovementsConfig(max_drop_down=-2)


def test_config_copy_does_not_share_sets() -> None:
    cfg = MovementsConfig()
    clone = cfg.copy()
    clone.blocks_cant_break.add("dirt")
    assert "dirt" not in cfg.blocks_cant_break


def test_collision_index_update_without_reset_accumulates() -> None:
    world = flat_world()
    agent = FakeAgent(world=world)
    world.add_entity(Entity(id=2, name="zombie", position=Vec3(1.5, 1, 0.5)))
    movements = make_movements(world, agent)
    movements.collision_index.add((9, 1, 0))

    movements.update_collision_index(reset=False)
    once = movements.entities_at(Vec3(1, 1, 0))
    assert once >= 1
    assert movements.entities_at(Vec3(9, 1, 0)) == 1.0

    movements.update_collision_index(reset=False)
    assert movements.entities_at(Vec3(1, 1, 0)) == 2 * once

    movements.update_collision_index()
    assert movements.entities_at(Vec3(1, 1, 0)) == once
    assert movements.entities_at(Vec3(9, 1, 0)) == 0.0


def test_jump_up_onto_missing_pillar_places_twice() -> None:
    world = flat_world()
    world.remove_block(1, 0, 0)
    movements = make_movements(world, FakeAgent(world=world))
    neighbors: List[Move] = []

    movements.get_move_jump_up(Move(0, 1, 0, 1, 0.0), 1, 0, neighbors)
    assert neighbors == []

    movements.get_move_jump_up(Move(0, 1, 0, 5, 0.0), 1, 0, neighbors)
    (jump,) = neighbors
    assert (jump.x, jump.y, jump.z) == (1, 2, 0)
    assert jump.move_type is MoveType.JUMP_UP
    assert jump.sprint is SprintPolicy.NO
    assert jump.dont_optimize
    assert jump.cost == 4.0
    assert jump.remaining_scaffolding == 3
    # Fill the hole from the side first, then stand back and stack on it.
    assert jump.to_place == (
        ToPlace(0, 0, 0, 1, 0, 0, return_pos=Vec3(0, 1, 0)),
        ToPlace(1, 0, 0, 0, 1, 0),
    )


def test_diagonal_onto_a_step_becomes_diagonal_up() -> None:
    world = flat_world()
    world.set_block(1, 1, 1, "stone")
    movements = make_movements(world, FakeAgent(world=world))
    neighbors: List[Move] = []

    movements.get_move_diagonal(Move(0, 1, 0, 0, 0.0), 1, 1, neighbors)
    (up,) = neighbors
    assert (up.x, up.y, up.z) == (1, 2, 1)
    assert up.move_type is MoveType.DIAGONAL_UP
    assert up.sprint is SprintPolicy.NO
    assert up.dont_optimize
    assert math.isclose(up.cost, math.sqrt(2) + 1)


def test_diagonal_into_a_hole_becomes_diagonal_down() -> None:
    world = flat_world()
    world.floor(1, -4, 12, -3, 3)
    world.remove_block(1, 1, 1)
    movements = make_movements(world, FakeAgent(world=world))
    neighbors: List[Move] = []

    movements.get_move_diagonal(Move(0, 2, 0, 0, 0.0), 1, 1, neighbors)
    (down,) = neighbors
    assert (down.x, down.y, down.z) == (1, 1, 1)
    assert down.move_type is MoveType.DIAGONAL_DOWN
    assert down.dont_optimize
    assert math.isclose(down.cost, math.sqrt(2))


def test_long_parkour_sprints() -> None:
    world = flat_world()
    for x in (1, 2, 3):
        world.remove_block(x, 0, 0)
    movements = make_movements(world, FakeAgent(world=world))
    neighbors: List[Move] = []

    movements.get_move_parkour_forward(Move(0, 1, 0, 0, 0.0), 1, 0, neighbors)
    (jump,) = neighbors
    assert (jump.x, jump.y, jump.z) == (4, 1, 0)
    assert jump.sprint is SprintPolicy.YES
    assert math.isclose(jump.cost, 1.1)


@pytest.mark.parametrize("gap, sprint", [(1, SprintPolicy.NO), (2, SprintPolicy.YES)])
def test_parkour_lands_one_block_up(gap: int, sprint: SprintPolicy) -> None:
    world = flat_world()
    for x in range(1, gap + 1):
        world.remove_block(x, 0, 0)
    world.set_block(gap + 1, 1, 0, "stone")
    movements = make_movements(world, FakeAgent(world=world))
    neighbors: List[Move] = []

    movements.get_move_parkour_forward(Move(0, 1, 0, 0, 0.0), 1, 0, neighbors)
    (jump,) = neighbors
    assert (jump.x, jump.y, jump.z) == (gap + 1, 2, 0)
    assert jump.move_type is MoveType.PARKOUR
    assert jump.sprint is sprint


def test_parkour_falls_one_block_and_keeps_scanning() -> None:
    world = flat_world()
    world.floor(1, -4, 12, -3, 3)
    world.remove_block(1, 1, 0)
    world.remove_block(1, 0, 0)
    world.remove_block(2, 1, 0)
    movements = make_movements(world, FakeAgent(world=world))
    neighbors: List[Move] = []

    movements.get_move_parkour_forward(Move(0, 2, 0, 0, 0.0), 1, 0, neighbors)
    landings = sorted((m.x, m.y, m.z) for m in neighbors)
    # Lower landing at two blocks out, same level at three.
    assert landings == [(2, 1, 0), (3, 2, 0)]
    assert all(m.sprint is SprintPolicy.NO for m in neighbors)

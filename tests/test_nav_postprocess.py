# tests/test_nav_postprocess.py

from __future__ import annotations

from tests.fakes.nav_worlds import FakeClock, flat_world, make_movements
from voxel_nav.nav.goals import GoalBlock
from voxel_nav.nav.move import Move
from voxel_nav.nav.pathfinder import find_path
from voxel_nav.nav.physics import Physics
from voxel_nav.nav.postprocess import (
    PathPostProcessor,
    is_position_near_path,
    path_from_player,
)
from voxel_nav.testing import FakeAgent
from voxel_nav.vec3 import Vec3

START = Vec3(0.5, 1.0, 0.5)


def _processor(world, **config):
    movements = make_movements(world, FakeAgent(world=world), **config)
    return PathPostProcessor(world, movements), movements


def test_straight_run_collapses_to_its_end() -> None:
    world = flat_world()
    processor, movements = _processor(world)
    raw = find_path(Move(0, 1, 0, 0, 0.0), movements, GoalBlock(5, 1, 0), clock=FakeClock()).path

    processed = processor.process(raw, START)

    assert len(processed) == 1
    end = processed[0]
    assert (end.x, end.y, end.z) == (5.5, 1.0, 0.5)
    # Identity survives alignment.
    assert end.hash == raw[-1].hash


def test_processing_is_idempotent() -> None:
    world = flat_world()
    world.set_block(3, 1, 1, "stone")
    processor, movements = _processor(world)
    raw = find_path(Move(0, 1, 0, 0, 0.0), movements, GoalBlock(6, 1, 2), clock=FakeClock()).path

    once = processor.process(raw, START)

    assert processor.simplify(once, START) == once
    assert processor.process(once, START) == once


def test_nodes_around_side_actions_are_kept() -> None:
    world = flat_world()
    processor, _ = _processor(world)
    path = [
        Move(1, 1, 0, 0, 1.0),
        Move(2, 1, 0, 0, 3.0, to_break=(Vec3(2, 2, 0),)),
        Move(3, 1, 0, 0, 1.0),
        Move(4, 1, 0, 0, 1.0),
    ]

    out = processor.process(path, START)

    assert [m.hash for m in out] == ["1,1,0", "2,1,0", "4,1,0"]
    # Moves from the first side-action on keep their raw coordinates.
    assert (out[1].x, out[1].y, out[1].z) == (2, 1, 0)
    assert out[1].to_break == (Vec3(2, 2, 0),)


def test_step_exclusions_disable_simplification() -> None:
    world = flat_world()
    processor, _ = _processor(world, exclusion_areas_step=[lambda block: 0.0])
    path = [Move(x, 1, 0, 0, 1.0) for x in range(1, 5)]

    assert processor.simplify(path, START) == path


def test_footing_follows_partial_blocks() -> None:
    world = flat_world()
    world.set_block(2, 0, 0, "oak_slab")
    world.set_block(4, 1, 0, "water")
    processor, _ = _processor(world)

    slab, water = processor.align_footing([Move(2, 1, 0, 0, 1.0), Move(4, 1, 0, 0, 1.0)])

    assert (slab.x, slab.y, slab.z) == (2.5, 0.5, 0.5)
    assert (water.x, water.y, water.z) == (4.5, 1.0, 0.5)


def test_path_from_player_drops_passed_nodes() -> None:
    path = [Move(1.5, 1, 0.5, 0, 1.0), Move(2.5, 1, 0.5, 0, 1.0), Move(3.5, 1, 0.5, 0, 1.0)]

    assert path_from_player(path, Vec3(2.5, 1, 0.5)) == path[2:]
    # Between two nodes the first one counts as passed.
    assert path_from_player(path, Vec3(2.0, 1, 0.5)) == path[1:]
    assert path_from_player([], Vec3(0, 0, 0)) == []


def test_position_near_path() -> None:
    path = [Move(0.5, 1, 0.5, 0, 0.0), Move(5.5, 1, 0.5, 0, 5.0)]

    assert is_position_near_path(Vec3(3, 1, 0), path)
    assert not is_position_near_path(Vec3(3, 1, 3), path)
    assert not is_position_near_path(Vec3(3, 4, 0), path)


def _shortcut_processor(world):
    agent = FakeAgent(START, world=world)
    movements = make_movements(world, agent)
    return PathPostProcessor(
        world, movements, Physics(world, agent), enable_path_shortcut=True
    )


def test_shortcut_skips_nodes_reachable_in_a_straight_line() -> None:
    world = flat_world()
    world.set_block(4, 1, 0, "stone")
    processor = _shortcut_processor(world)
    path = [
        Move(1.5, 1, 0.5, 0, 1.0),
        Move(2.5, 1, 0.5, 0, 1.0),
        Move(3.5, 1, 0.5, 0, 1.0),
        Move(4.5, 2, 0.5, 0, 2.0),
    ]

    once = processor.simplify(path, START)

    # The step up cannot be sprinted to, so the node below it stays.
    assert once == [path[2], path[3]]
    assert processor.simplify(once, START) == once


def test_shortcut_keeps_nodes_that_must_not_be_optimized() -> None:
    world = flat_world()
    processor = _shortcut_processor(world)
    path = [
        Move(1.5, 1, 0.5, 0, 1.0),
        Move(2.5, 1, 0.5, 0, 1.0, dont_optimize=True),
        Move(3.5, 1, 0.5, 0, 1.0),
    ]

    once = processor.simplify(path, START)

    assert once == path
    assert processor.simplify(once, START) == once


def test_path_from_player_uses_the_given_tolerance() -> None:
    path = [Move(1.5, 64, 0.5, 0, 1.0), Move(1.5, 64, 5.5, 0, 1.0)]
    position = Vec3(1.2, 64, 0.5)

    assert path_from_player(path, position) == path[1:]
    assert path_from_player(path, position, error=0.1) == path

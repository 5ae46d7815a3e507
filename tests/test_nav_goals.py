# tests/test_nav_goals.py
"""
Unit tests for voxel_nav.nav.goals.

Covers:
- Octile heuristic and end checks of point / plane goals
- Adjacency goals (GetToBlock, LookAtBlock, PlaceBlock)
- Composite and inverted goals
- Follow goal change detection
"""

from __future__ import annotations

import math

from voxel_nav.nav.goals import (
    GoalBlock,
    GoalCompositeAll,
    GoalCompositeAny,
    GoalFollow,
    GoalGetToBlock,
    GoalInvert,
    GoalLookAtBlock,
    GoalNear,
    GoalNearXZ,
    GoalPlaceBlock,
    GoalXZ,
    GoalY,
    distance_xz,
)
from voxel_nav.testing import FakeWorld
from voxel_nav.vec3 import Vec3
from voxel_nav.world import Entity


def test_octile_distance() -> None:
    assert distance_xz(3, 0) == 3
    assert distance_xz(0, -4) == 4
    assert math.isclose(distance_xz(2, 2), 2 * math.sqrt(2))
    assert math.isclose(distance_xz(5, -2), 3 + 2 * math.sqrt(2))


def test_goal_block_heuristic_and_end() -> None:
    goal = GoalBlock(5.7, 64.2, -0.5)
    assert (goal.x, goal.y, goal.z) == (5, 64, -1)
    assert goal.is_end(Vec3(5, 64, -1))
    assert not goal.is_end(Vec3(5, 65, -1))
    assert goal.heuristic(Vec3(0, 64, -1)) == 5
    assert goal.heuristic(Vec3(5, 60, -1)) == 4
    assert not goal.has_changed()
    assert goal.is_valid()


def test_goal_near_and_plane_goals() -> None:
    near = GoalNear(0, 64, 0, 2)
    assert near.is_end(Vec3(1, 64, 1))
    assert not near.is_end(Vec3(2, 64, 1))

    assert GoalXZ(3, 4).is_end(Vec3(3, 10, 4))
    assert GoalNearXZ(0, 0, 3).is_end(Vec3(2, 99, 2))
    assert not GoalNearXZ(0, 0, 2).is_end(Vec3(2, 99, 2))

    y_goal = GoalY(70)
    assert y_goal.heuristic(Vec3(0, 64, 0)) == 6
    assert y_goal.is_end(Vec3(-100, 70, 100))


def test_goal_get_to_block_is_adjacent_only() -> None:
    goal = GoalGetToBlock(0, 64, 0)
    assert goal.is_end(Vec3(1, 64, 0))
    assert goal.is_end(Vec3(0, 64, -1))
    # Two blocks below puts the head right under the block.
    assert goal.is_end(Vec3(0, 62, 0))
    assert not goal.is_end(Vec3(0, 63, 0))
    assert not goal.is_end(Vec3(0, 64, 0))
    assert not goal.is_end(Vec3(1, 64, 1))


def test_composite_any_and_all() -> None:
    a = GoalBlock(0, 0, 0)
    b = GoalBlock(10, 0, 0)
    node = Vec3(2, 0, 0)

    any_goal = GoalCompositeAny([a, b])
    assert any_goal.heuristic(node) == 2
    assert any_goal.is_end(Vec3(10, 0, 0))

    all_goal = GoalCompositeAll([GoalXZ(1, 1), GoalY(5)])
    assert all_goal.heuristic(Vec3(1, 0, 1)) == 5
    assert all_goal.is_end(Vec3(1, 5, 1))
    assert not all_goal.is_end(Vec3(1, 4, 1))

    assert GoalCompositeAny().heuristic(node) == math.inf
    assert GoalCompositeAll().is_end(node)


def test_invert_negates_heuristic_and_end() -> None:
    inner = GoalNear(0, 0, 0, 3)
    goal = GoalInvert(inner)
    assert goal.heuristic(Vec3(4, 0, 0)) == -4
    assert goal.is_end(Vec3(4, 0, 0))
    assert not goal.is_end(Vec3(1, 0, 0))


def test_follow_reports_change_only_beyond_range() -> None:
    target = Entity(id=7, name="player", position=Vec3(0.5, 64, 0.5))
    goal = GoalFollow(target, 2)

    target.position = Vec3(1.5, 64, 0.5)
    assert not goal.has_changed()

    target.position = Vec3(5.5, 64, 0.5)
    assert goal.has_changed()
    # The heuristic target only moves on refresh().
    assert goal.x == 0
    goal.refresh()
    assert (goal.x, goal.y, goal.z) == (5, 64, 0)
    assert not goal.has_changed()

    target.is_valid = False
    assert not goal.is_valid()


def test_composites_aggregate_change_and_validity() -> None:
    target = Entity(id=1, name="zombie", position=Vec3(0, 64, 0))
    follow = GoalFollow(target, 1)
    goal = GoalCompositeAny([GoalBlock(3, 64, 3), follow])

    assert not goal.has_changed()
    target.position = Vec3(10, 64, 0)
    assert goal.has_changed()
    goal.refresh()
    assert follow.x == 10

    target.is_valid = False
    assert not goal.is_valid()
    assert not GoalCompositeAll([follow]).is_valid()


def test_look_at_block_needs_line_of_sight() -> None:
    world = FakeWorld(min_y=0)
    world.floor(0, -5, 5, -5, 5)
    world.set_block(3, 1, 0, "stone")

    goal = GoalLookAtBlock(Vec3(3, 1, 0), world)
    assert goal.is_end(Vec3(1, 1, 0))

    # A wall in between hides every face.
    world.fill(2, 1, -1, 2, 4, 1, "stone")
    assert not goal.is_end(Vec3(0, 1, 0))


def test_place_block_goal_finds_reference_face() -> None:
    world = FakeWorld(min_y=0)
    world.floor(0, -5, 5, -5, 5)

    goal = GoalPlaceBlock(Vec3(2, 1, 0), world)
    # Only the floor below the target is a reference.
    assert [ref for _, _, ref in goal.faces_pos] == [Vec3(2, 0, 0)]
    assert goal.is_end(Vec3(1, 1, 0))
    assert not goal.is_end(Vec3(2, 1, 0))
    assert not goal.is_end(Vec3(10, 1, 0))

    face, _, ref = goal.face_and_ref(Vec3(1.5, 2.6, 0.5))
    assert ref == Vec3(2, 0, 0)
    assert face == Vec3(0, -1, 0)

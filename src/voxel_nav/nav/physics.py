# Short-horizon player kinematics
# src/voxel_nav/nav/physics.py
"""
Physics predictor for locomotion decisions.

PlayerPhysics steps a copy of the agent's state one tick at a time using
simplified voxel-game kinematics. Physics wraps it with the queries the
controller and the post-processor ask:

- can the agent walk (or sprint) straight to the next node?
- does it need a jump, and after how many ticks?
- can it move in a straight line between two arbitrary points?

Nothing here touches the real agent; every simulation runs on a
PlayerState copy.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from ..vec3 import Vec3
from ..world import AgentBody, WorldView

log = logging.getLogger(__name__)

GRAVITY = 0.08
AIRBORNE_DRAG = 0.98
GROUND_SLIPPERINESS = 0.6
AIRBORNE_INERTIA = 0.91
AIRBORNE_ACCELERATION = 0.02
SPRINT_AIRBORNE_ACCELERATION = 0.026
WALK_ACCELERATION = 0.1
SPRINT_MULTIPLIER = 1.3
JUMP_SPEED = 0.42
SPRINT_JUMP_BOOST = 0.2
JUMP_COOLDOWN_TICKS = 10

WATER_GRAVITY = 0.02
WATER_DRAG = 0.8
WATER_ACCELERATION = 0.02
WATER_JUMP_SPEED = 0.04

STEP_HEIGHT = 0.6
PLAYER_WIDTH = 0.6
PLAYER_HEIGHT = 1.8

DEFAULT_REACH_ERROR = 0.35


def yaw_towards(dx: float, dz: float) -> float:
    """Yaw that faces along (dx, dz); yaw 0 faces -z."""
    return math.atan2(-dx, -dz)


def heading(yaw: float) -> Vec3:
    return Vec3(-math.sin(yaw), 0.0, -math.cos(yaw))


# ----------------------------------------------------------------------
# Bounding boxes
# ----------------------------------------------------------------------


@dataclass
class AABB:
    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float

    @classmethod
    def for_player(cls, pos: Vec3) -> "AABB":
        half = PLAYER_WIDTH / 2
        return cls(
            pos.x - half, pos.y, pos.z - half,
            pos.x + half, pos.y + PLAYER_HEIGHT, pos.z + half,
        )

    def offset(self, dx: float, dy: float, dz: float) -> "AABB":
        return AABB(
            self.min_x + dx, self.min_y + dy, self.min_z + dz,
            self.max_x + dx, self.max_y + dy, self.max_z + dz,
        )

    def extend(self, dx: float, dy: float, dz: float) -> "AABB":
        return AABB(
            self.min_x + min(dx, 0), self.min_y + min(dy, 0), self.min_z + min(dz, 0),
            self.max_x + max(dx, 0), self.max_y + max(dy, 0), self.max_z + max(dz, 0),
        )

    def offset_x(self, other: "AABB", dx: float) -> float:
        """Clip a move of `other` along x so it does not enter this box."""
        if other.max_y <= self.min_y or other.min_y >= self.max_y:
            return dx
        if other.max_z <= self.min_z or other.min_z >= self.max_z:
            return dx
        if dx > 0 and other.max_x <= self.min_x:
            dx = min(dx, self.min_x - other.max_x)
        elif dx < 0 and other.min_x >= self.max_x:
            dx = max(dx, self.max_x - other.min_x)
        return dx

    def offset_y(self, other: "AABB", dy: float) -> float:
        if other.max_x <= self.min_x or other.min_x >= self.max_x:
            return dy
        if other.max_z <= self.min_z or other.min_z >= self.max_z:
            return dy
        if dy > 0 and other.max_y <= self.min_y:
            dy = min(dy, self.min_y - other.max_y)
        elif dy < 0 and other.min_y >= self.max_y:
            dy = max(dy, self.max_y - other.min_y)
        return dy

    def offset_z(self, other: "AABB", dz: float) -> float:
        if other.max_x <= self.min_x or other.min_x >= self.max_x:
            return dz
        if other.max_y <= self.min_y or other.min_y >= self.max_y:
            return dz
        if dz > 0 and other.max_z <= self.min_z:
            dz = min(dz, self.min_z - other.max_z)
        elif dz < 0 and other.min_z >= self.max_z:
            dz = max(dz, self.max_z - other.min_z)
        return dz


# ----------------------------------------------------------------------
# Simulation state
# ----------------------------------------------------------------------


@dataclass
class PlayerState:
    position: Vec3
    velocity: Vec3 = Vec3(0.0, 0.0, 0.0)
    on_ground: bool = True
    in_water: bool = False
    in_lava: bool = False
    yaw: float = 0.0
    controls: Dict[str, bool] = field(default_factory=dict)
    jump_ticks: int = 0
    collided_horizontally: bool = False

    @classmethod
    def from_agent(cls, agent: AgentBody) -> "PlayerState":
        return cls(
            position=Vec3.of(agent.position),
            velocity=Vec3.of(agent.velocity),
            on_ground=bool(agent.on_ground),
            in_water=bool(agent.in_water),
            yaw=agent.yaw,
        )


class PlayerPhysics:
    """One-tick integrator for PlayerState."""

    def simulate_player(self, state: PlayerState, world: WorldView) -> PlayerState:
        self._update_media(state, world)

        forward = _axis(state.controls, "forward", "back")
        strafe = _axis(state.controls, "right", "left")
        sprint = state.controls.get("sprint", False) and forward > 0
        vel = state.velocity

        if state.jump_ticks > 0:
            state.jump_ticks -= 1
        if state.controls.get("jump"):
            if state.in_water or state.in_lava:
                vel = vel.offset(0, WATER_JUMP_SPEED, 0)
            elif state.on_ground and state.jump_ticks == 0:
                vel = Vec3(vel.x, JUMP_SPEED, vel.z)
                if sprint:
                    h = heading(state.yaw)
                    vel = vel.offset(h.x * SPRINT_JUMP_BOOST, 0, h.z * SPRINT_JUMP_BOOST)
                state.jump_ticks = JUMP_COOLDOWN_TICKS

        if state.in_water or state.in_lava:
            vel = vel.plus(_input_acceleration(state.yaw, forward, strafe, WATER_ACCELERATION))
            state.velocity = vel
            self._move(state, world)
            v = state.velocity
            state.velocity = Vec3(
                v.x * WATER_DRAG,
                v.y * WATER_DRAG - WATER_GRAVITY,
                v.z * WATER_DRAG,
            )
            return state

        if state.on_ground:
            inertia = GROUND_SLIPPERINESS * AIRBORNE_INERTIA
            accel = WALK_ACCELERATION * (0.1627714 / inertia ** 3)
            if sprint:
                accel *= SPRINT_MULTIPLIER
        else:
            inertia = AIRBORNE_INERTIA
            accel = SPRINT_AIRBORNE_ACCELERATION if sprint else AIRBORNE_ACCELERATION

        vel = vel.plus(_input_acceleration(state.yaw, forward, strafe, accel))
        state.velocity = vel
        self._move(state, world)
        v = state.velocity
        state.velocity = Vec3(
            v.x * inertia,
            (v.y - GRAVITY) * AIRBORNE_DRAG,
            v.z * inertia,
        )
        return state

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _update_media(self, state: PlayerState, world: WorldView) -> None:
        p = state.position
        names = set()
        for dy in (0.0, 1.0):
            block = world.block_at(Vec3(math.floor(p.x), math.floor(p.y + dy), math.floor(p.z)))
            if block is not None:
                names.add(block.name)
        state.in_water = "water" in names
        state.in_lava = "lava" in names

    def _move(self, state: PlayerState, world: WorldView) -> None:
        ox, oy, oz = state.velocity
        bb = AABB.for_player(state.position)
        dx, dy, dz = _collide(world, bb, ox, oy, oz)
        moved = bb.offset(dx, dy, dz)

        # Step up onto low obstacles when walking into them.
        if (state.on_ground or (oy < 0 and dy != oy)) and (dx != ox or dz != oz):
            sx, sy, sz = _collide(world, bb, ox, STEP_HEIGHT, oz)
            stepped = bb.offset(sx, sy, sz)
            down = _collide(world, stepped, 0.0, -sy, 0.0)[1]
            stepped = stepped.offset(0.0, down, 0.0)
            if sx * sx + sz * sz > dx * dx + dz * dz:
                dx, dy, dz = sx, sy + down, sz
                moved = stepped

        state.collided_horizontally = dx != ox or dz != oz
        state.on_ground = dy != oy and oy < 0
        state.position = Vec3(
            moved.min_x + PLAYER_WIDTH / 2,
            moved.min_y,
            moved.min_z + PLAYER_WIDTH / 2,
        )
        state.velocity = Vec3(
            0.0 if dx != ox else ox,
            0.0 if dy != oy else oy,
            0.0 if dz != oz else oz,
        )


def _axis(controls: Dict[str, bool], positive: str, negative: str) -> float:
    return float(bool(controls.get(positive))) - float(bool(controls.get(negative)))


def _input_acceleration(yaw: float, forward: float, strafe: float, accel: float) -> Vec3:
    length = math.hypot(forward, strafe)
    if length < 1e-4:
        return Vec3(0.0, 0.0, 0.0)
    forward, strafe = forward / max(length, 1.0), strafe / max(length, 1.0)
    fwd = heading(yaw)
    right = Vec3(math.cos(yaw), 0.0, -math.sin(yaw))
    return Vec3(
        (fwd.x * forward + right.x * strafe) * accel,
        0.0,
        (fwd.z * forward + right.z * strafe) * accel,
    )


def _block_boxes(world: WorldView, region: AABB) -> List[AABB]:
    boxes: List[AABB] = []
    for x in range(math.floor(region.min_x) - 1, math.floor(region.max_x) + 2):
        for y in range(math.floor(region.min_y) - 1, math.floor(region.max_y) + 2):
            for z in range(math.floor(region.min_z) - 1, math.floor(region.max_z) + 2):
                block = world.block_at(Vec3(x, y, z))
                if block is None:
                    continue
                for s in block.shapes:
                    boxes.append(AABB(x + s[0], y + s[1], z + s[2], x + s[3], y + s[4], z + s[5]))
    return boxes


def _collide(world: WorldView, bb: AABB, dx: float, dy: float, dz: float):
    """Clip a displacement against world shapes, resolving y, then x, then z."""
    boxes = _block_boxes(world, bb.extend(dx, dy, dz))
    for box in boxes:
        dy = box.offset_y(bb, dy)
    bb = bb.offset(0.0, dy, 0.0)
    for box in boxes:
        dx = box.offset_x(bb, dx)
    bb = bb.offset(dx, 0.0, 0.0)
    for box in boxes:
        dz = box.offset_z(bb, dz)
    return dx, dy, dz


# ----------------------------------------------------------------------
# Predictor
# ----------------------------------------------------------------------

Controller = Callable[[PlayerState, int], None]
Predicate = Callable[[PlayerState], bool]


class Physics:
    """
    Locomotion feasibility queries for the controller and post-processor.

    `path` arguments are sequences of points (nodes); only the first one
    is targeted.
    """

    def __init__(
        self,
        world: WorldView,
        agent: AgentBody,
        engine: Optional[PlayerPhysics] = None,
        *,
        error: float = DEFAULT_REACH_ERROR,
    ) -> None:
        self.world = world
        self.agent = agent
        self.engine = engine or PlayerPhysics()
        # Horizontal arrival tolerance, shared with the controller.
        self.error = error

    # ------------------------------------------------------------------
    # Core queries
    # ------------------------------------------------------------------

    def simulate_until(
        self,
        goal: Predicate,
        controller: Controller,
        ticks: int = 1,
        state: Optional[PlayerState] = None,
    ) -> PlayerState:
        if state is None:
            state = PlayerState.from_agent(self.agent)
        for tick in range(ticks):
            controller(state, tick)
            self.engine.simulate_player(state, self.world)
            if state.in_lava:
                return state
            if goal(state):
                return state
        return state

    def get_reached(self, path: Sequence, error: Optional[float] = None) -> Predicate:
        target = path[0]
        if error is None:
            error = self.error

        def reached(state: PlayerState) -> bool:
            p = state.position
            return (
                abs(target.x - p.x) <= error
                and abs(target.z - p.z) <= error
                and abs(target.y - p.y) < 1
            )

        return reached

    def get_controller(
        self,
        next_point,
        jump: bool,
        sprint: bool,
        jump_after: int = 0,
    ) -> Controller:
        def controller(state: PlayerState, tick: int) -> None:
            p = state.position
            state.yaw = yaw_towards(next_point.x - p.x, next_point.z - p.z)
            state.controls["forward"] = True
            state.controls["jump"] = jump and tick >= jump_after
            state.controls["sprint"] = sprint

        return controller

    def can_straight_line(self, path: Sequence, sprint: bool = False) -> bool:
        """True when walking (no jump) reaches path[0] and a jump is not needed."""
        reached = self.get_reached(path)
        state = self.simulate_until(reached, self.get_controller(path[0], False, sprint), 200)
        if reached(state):
            return True

        # An immediate jump working means a jump is required, not a straight line.
        if self.can_jump(path, sprint, 0):
            return False
        for jump_after in range(1, 7):
            if self.can_jump(path, sprint, jump_after):
                return True
        return False

    def can_straight_line_between(self, start, end) -> bool:
        """Sprinting from `start` reaches `end` on the same level."""
        end_v = Vec3.of(end)

        def reached(state: PlayerState) -> bool:
            delta = end_v.minus(state.position)
            return (
                delta.x * delta.x + delta.z * delta.z <= 0.15 * 0.15
                and abs(delta.y) < 0.001
                and (state.on_ground or state.in_water)
            )

        state = PlayerState.from_agent(self.agent)
        state.position = Vec3.of(start)
        state.velocity = Vec3(0.0, 0.0, 0.0)
        ticks = math.floor(5 * Vec3.of(start).distance_to(end_v))
        state = self.simulate_until(reached, self.get_controller(end_v, False, True), ticks, state)
        return reached(state)

    def can_jump(self, path: Sequence, sprint: bool = False, jump_after: int = 0) -> bool:
        reached = self.get_reached(path)
        state = self.simulate_until(
            reached, self.get_controller(path[0], True, sprint, jump_after), 20
        )
        return reached(state)

    def can_sprint_jump(self, path: Sequence, jump_after: int = 0) -> bool:
        return self.can_jump(path, True, jump_after)

    def can_walk_jump(self, path: Sequence, jump_after: int = 0) -> bool:
        return self.can_jump(path, False, jump_after)

# Tick-driven execution controller
# src/voxel_nav/controller.py
"""
Pathfinder: one navigation session per agent.

Responsibilities:
- Own the current goal, path and search context.
- Request (and resume) searches, post-process their results.
- Step through the path every tick: dig, place, open gates, pick
  locomotion controls with the physics predictor.
- Detect lack of progress and environment changes, then replan.
- Publish GOAL_UPDATED / PATH_UPDATE / PATH_RESET / PATH_STOP /
  GOAL_REACHED events on the monitoring bus.

It does NOT:
- Tick itself. The host calls tick() once per world tick.
- Own world storage, entity tracking or inventory.
- Retry failed actions. Failures reset the path with a typed reason and
  the next tick searches again.

Async action outcomes (equip / dig / place / activate) are never handled
in the future's callback. They are queued and applied at the start of
the next tick, so path mutation only happens inside tick(). Every reset
bumps an epoch counter; completions started under an older epoch are
stale and ignored, except that a finished dig always clears `digging`.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Deque, Iterator, List, Optional

from env.schema import PathfinderSettings
from monitoring.bus import EventBus, default_bus
from monitoring.events import EventType, MonitoringEvent
from monitoring.logger import log_event

from .locks import ActionLock
from .nav.goals import Goal
from .nav.move import Move, MoveType, SprintPolicy, ToPlace
from .nav.movements import Movements
from .nav.pathfinder import AStar, Clock, PathResult, SearchStatus, monotonic_ms
from .nav.physics import PLAYER_WIDTH, Physics
from .nav.postprocess import PathPostProcessor, is_position_near_path, path_from_player
from .tracing import SearchTracer
from .vec3 import Vec3
from .world import ActionResult, AgentBody, Block, WorldView

log = logging.getLogger(__name__)

MODULE = "voxel_nav.controller"

# Nodes past the head that may be skipped when the agent already stands on them.
LOOK_AHEAD = 4

# Distance (squared) the agent must cover to count as progress.
PROGRESS_DISTANCE_SQ = 1.0

# full_stop() re-centres the agent when it is further than this from the
# middle of its block.
RECENTER_THRESHOLD = 0.2

# Pitch used while backing towards a placement edge (looking almost down).
EDGE_PITCH = -1.421

EYE_HEIGHT = 1.6


class ResetReason(str, Enum):
    GOAL_UPDATED = "goal_updated"
    MOVEMENTS_UPDATED = "movements_updated"
    BLOCK_UPDATED = "block_updated"
    CHUNK_LOADED = "chunk_loaded"
    GOAL_MOVED = "goal_moved"
    DIG_ERROR = "dig_error"
    NO_SCAFFOLDING_BLOCKS = "no_scaffolding_blocks"
    PLACE_ERROR = "place_error"
    STUCK = "stuck"


class ControllerState(str, Enum):
    IDLE = "idle"
    SEEKING = "seeking"
    FOLLOWING = "following"
    DIGGING = "digging"
    PLACING = "placing"


@dataclass
class PathStep:
    """A path node plus the side-actions still pending on it."""

    move: Move
    to_break: Deque[Vec3] = field(default_factory=deque)
    to_place: Deque[ToPlace] = field(default_factory=deque)

    @classmethod
    def of(cls, move: Move) -> "PathStep":
        return cls(move, deque(move.to_break), deque(move.to_place))

    # Nodes past the first side-action keep raw voxel coordinates; aim at
    # the middle of their block.
    @property
    def x(self) -> float:
        return _block_centre(self.move.x)

    @property
    def y(self) -> float:
        return self.move.y

    @property
    def z(self) -> float:
        return _block_centre(self.move.z)

    @property
    def has_actions(self) -> bool:
        return bool(self.to_break or self.to_place)


def _block_centre(value: float) -> float:
    return value + 0.5 if float(value).is_integer() else value


ActionHandler = Callable[[ActionResult, bool], None]


def _outcome(future: "Future[ActionResult]") -> ActionResult:
    if future.cancelled():
        return ActionResult(False, error="cancelled")
    exc = future.exception()
    if exc is not None:
        return ActionResult(False, error=str(exc) or type(exc).__name__)
    result = future.result()
    if isinstance(result, ActionResult):
        return result
    return ActionResult(True)


class Pathfinder:
    """
    Navigation session for one agent.

    Typical host loop:

        pf = Pathfinder(world, agent, settings=profile.settings)
        pf.set_goal(GoalBlock(10, 64, -3))
        while running:
            pf.tick()
    """

    def __init__(
        self,
        world: WorldView,
        agent: AgentBody,
        *,
        movements: Optional[Movements] = None,
        settings: Optional[PathfinderSettings] = None,
        bus: Optional[EventBus] = None,
        clock: Optional[Clock] = None,
        tracer: Optional[SearchTracer] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.world = world
        self.agent = agent
        self.settings = settings or PathfinderSettings()
        self.movements = movements or Movements(world, agent)
        self.physics = Physics(world, agent, error=self.settings.error)
        self.bus = bus or default_bus
        self.clock: Clock = clock or monotonic_ms
        self.tracer = tracer or SearchTracer()
        self.session_id = session_id or uuid.uuid4().hex[:12]

        self.goal: Optional[Goal] = None
        self.dynamic_goal = False
        self.last_result: Optional[PathResult] = None

        self.digging = False
        self.placing = False

        self.lock_equip = ActionLock("equip")
        self.lock_place = ActionLock("place")
        self.lock_use = ActionLock("use")

        self._path: Deque[PathStep] = deque()
        self._context: Optional[AStar] = None
        self._search_partial = False
        self._path_updated = False
        self._placing_block: Optional[ToPlace] = None
        self._returning_pos: Optional[Vec3] = None
        self._opened_gates: Deque[Vec3] = deque()
        self._stop_pathing = False

        self._last_node_time = self.clock()
        self._last_position: Optional[Vec3] = None

        self._epoch = 0
        self._pending: Deque[Callable[[], None]] = deque()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def path(self) -> List[Move]:
        """Snapshot of the remaining path."""
        return [step.move for step in self._path]

    @property
    def state(self) -> ControllerState:
        if self.digging:
            return ControllerState.DIGGING
        if self.placing:
            return ControllerState.PLACING
        if self._path:
            return ControllerState.FOLLOWING
        if self.goal is not None:
            return ControllerState.SEEKING
        return ControllerState.IDLE

    def is_moving(self) -> bool:
        return bool(self._path)

    def is_mining(self) -> bool:
        return self.digging

    def is_building(self) -> bool:
        return self.placing

    def set_goal(self, goal: Optional[Goal], dynamic: bool = False) -> None:
        """Replace the goal (None clears it) and drop the current path."""
        self.goal = goal
        self.dynamic_goal = dynamic
        self._emit(
            EventType.GOAL_UPDATED,
            "goal updated",
            {**self._goal_payload(goal), "dynamic": dynamic},
        )
        self.reset_path(ResetReason.GOAL_UPDATED)

    def set_movements(self, movements: Movements) -> None:
        self.movements = movements
        self.reset_path(ResetReason.MOVEMENTS_UPDATED)

    def stop(self) -> None:
        """
        Request a stop.

        Applied immediately when there is no path, otherwise at the next
        node arrival so the agent never halts between two blocks.
        """
        if not self._path:
            self._stop()
        else:
            self._stop_pathing = True

    def call_soon(self, fn: Callable[[], None]) -> None:
        """Run `fn` at the start of the next tick."""
        self._pending.append(fn)

    def reset_path(self, reason: ResetReason, clear_states: bool = True) -> None:
        """
        Discard the path and search context.

        In-flight actions keep running; their completions become stale.
        All action locks are released unconditionally.
        """
        reason = ResetReason(reason)
        if not self._stop_pathing and self._path:
            log.info("path reset: %s", reason.value)
            self._emit(EventType.PATH_RESET, f"path reset: {reason.value}", {"reason": reason.value})

        self._path.clear()
        self._context = None
        self._search_partial = False
        self._path_updated = False
        self.placing = False
        self._placing_block = None
        self._epoch += 1

        self.lock_equip.release()
        self.lock_place.release()
        self.lock_use.release()
        self.movements.clear_collision_index()

        if clear_states:
            self.agent.clear_control_states()
        if self._stop_pathing:
            self._stop()

    def get_path_to(self, goal: Goal, timeout_ms: Optional[float] = None) -> PathResult:
        """Start a new search from the agent's position; returns its first slice."""
        generator = self.get_path_from_to(self.agent.position, goal, timeout_ms=timeout_ms)
        result = next(generator)
        self._context = result.context
        return result

    def get_path_from_to(
        self,
        start: Vec3,
        goal: Goal,
        *,
        timeout_ms: Optional[float] = None,
        tick_timeout_ms: Optional[float] = None,
        search_radius: Optional[float] = None,
        optimize_path: bool = True,
        reset_collision_index: bool = True,
        start_move: Optional[Move] = None,
        movements: Optional[Movements] = None,
    ) -> Iterator[PathResult]:
        """
        Yield one PathResult per search slice until a terminal status.

        The search context never leaves this generator except through
        result.context; the caller may drop the generator at any time.
        """
        movements = movements or self.movements
        if start_move is None:
            start_move = self._start_move(start, movements)

        if movements.config.allow_entity_detection:
            movements.update_collision_index(reset=reset_collision_index)

        context = AStar(
            start_move,
            movements,
            goal,
            timeout_ms=self._setting(timeout_ms, self.settings.think_timeout_ms),
            tick_timeout_ms=self._setting(tick_timeout_ms, self.settings.tick_timeout_ms),
            search_radius=self._setting(search_radius, self.settings.search_radius),
            clock=self.clock,
        )
        processor = self._post_processor(movements)

        result = context.compute()
        while True:
            if optimize_path:
                result = replace(result, path=processor.process(result.path, start))
            yield result
            if result.status is not SearchStatus.PARTIAL:
                return
            result = context.compute()

    def on_block_update(self, old: Optional[Block], new: Optional[Block]) -> None:
        """Host hook: a block changed."""
        if old is None or new is None or not self._path:
            return
        if old.name == new.name:
            return
        if is_position_near_path(old.position, self.path):
            self.reset_path(ResetReason.BLOCK_UPDATED, clear_states=False)

    def on_chunk_load(self, cx: int, cz: int) -> None:
        """Host hook: chunk (cx, cz) finished loading."""
        if self._context is None:
            return
        visited = self._context.visited_chunks
        for nx, nz in ((cx - 1, cz), (cx + 1, cz), (cx, cz - 1), (cx, cz + 1)):
            if (nx, nz) in visited:
                self.reset_path(ResetReason.CHUNK_LOADED, clear_states=False)
                return

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> None:
        self._drain_pending()
        agent = self.agent
        config = self.movements.config

        if self._close_opened_gate():
            return
        if self._pursue_directly():
            return

        if self.goal is not None:
            if not self.goal.is_valid():
                self._stop()
            elif self.goal.has_changed():
                self.goal.refresh()
                self.reset_path(ResetReason.GOAL_MOVED, clear_states=False)

        if self._context is not None and self._search_partial:
            self._resume_search()

        if self.settings.los_when_placing_blocks and self._returning_pos is not None:
            if not self._move_to_block(self._returning_pos):
                return
            self._returning_pos = None

        if not self._path:
            self._last_node_time = self.clock()
            if self.goal is None:
                return
            if self.goal.is_end(agent.position.floored()):
                if not self.dynamic_goal:
                    self._goal_reached()
                return
            if not self._path_updated:
                self._start_search()
            if not self._path:
                return

        step = self._path[0]
        if self.digging or step.to_break:
            self._tick_digging(step)
            return
        if self.placing or step.to_place:
            self._tick_placing(step)
            return

        position = agent.position
        next_step = step
        skip = 0
        for i in range(1, min(len(self._path), LOOK_AHEAD)):
            candidate = self._path[i]
            if candidate.has_actions:
                break
            if self._is_reached(candidate, position):
                next_step = candidate
                skip = i

        if self._is_reached(next_step, position):
            if self._stop_pathing:
                self._stop()
                return
            for _ in range(skip + 1):
                self._path.popleft()
            self._last_node_time = self.clock()
            if not self._path:
                floored = position.floored()
                if self.goal is not None and not self.dynamic_goal and (
                    self.goal.is_end(floored) or self.goal.is_end(floored.offset(0, 1, 0))
                ):
                    self._goal_reached()
                else:
                    self._path_updated = False
                self.full_stop()
                return
            next_step = self._path[0]
            if next_step.has_actions:
                self.full_stop()
                return

        if agent.in_water or getattr(agent, "in_lava", False):
            self._swim(next_step)
        else:
            self._walk(next_step, config.allow_sprinting)

        self._check_progress()

    # ------------------------------------------------------------------
    # Searching
    # ------------------------------------------------------------------

    def _start_search(self) -> None:
        assert self.goal is not None
        result = self.get_path_to(self.goal)
        self._publish_result(result)
        self._set_path(result.path)
        self._search_partial = result.status is SearchStatus.PARTIAL
        self._path_updated = True

    def _resume_search(self) -> None:
        assert self._context is not None
        result = self._context.compute()
        processor = self._post_processor(self.movements)
        path = processor.process(result.path, self.agent.position)
        path = path_from_player(path, self.agent.position, self.settings.error)
        result = replace(result, path=path)
        self._publish_result(result)
        self._set_path(result.path)
        self._search_partial = result.status is SearchStatus.PARTIAL

    def _start_move(self, start: Vec3, movements: Movements) -> Move:
        p = start.floored()
        block = self.world.block_at(p)
        # Standing on a partial block (slab, path block) means the feet are
        # in the voxel above its floor.
        offset = 0
        if (
            block is not None
            and block.shapes
            and block.name not in movements.config.empty_blocks
            and start.y - p.y > 0.001
            and self.agent.on_ground
        ):
            offset = 1
        return Move(
            int(p.x),
            int(p.y) + offset,
            int(p.z),
            movements.count_scaffolding_items(),
            0.0,
        )

    def _post_processor(self, movements: Movements) -> PathPostProcessor:
        return PathPostProcessor(
            self.world,
            movements,
            self.physics,
            enable_path_shortcut=self.settings.enable_path_shortcut,
        )

    def _set_path(self, moves: List[Move]) -> None:
        self._path = deque(PathStep.of(move) for move in moves)

    def _publish_result(self, result: PathResult) -> None:
        self.last_result = result
        self.tracer.record(result=result, goal=self.goal, position=self.agent.position)
        payload = {**result.summary(), **self._goal_payload(self.goal)}
        self._emit(EventType.PATH_UPDATE, f"path {result.status.value}", payload)

    # ------------------------------------------------------------------
    # Side-actions
    # ------------------------------------------------------------------

    def _tick_digging(self, step: PathStep) -> None:
        if self.digging or not self.agent.on_ground:
            return
        pos = step.to_break.popleft()
        block = self.world.block_at(pos)
        if block is None:
            self.reset_path(ResetReason.DIG_ERROR)
            return

        self.digging = True
        self.full_stop()
        tool = self.movements.best_harvest_tool(block)
        if tool is None:
            self._dig(block)
            return

        def on_equipped(result: ActionResult, stale: bool) -> None:
            if stale:
                self.digging = False
                return
            if not result.success:
                log.debug("equip %s failed (%s); digging anyway", tool.name, result.error)
            self._dig(block)

        self._when_done(self.agent.equip(tool), on_equipped)

    def _dig(self, block: Block) -> None:
        def on_dug(result: ActionResult, stale: bool) -> None:
            self.digging = False
            self._last_node_time = self.clock()
            if stale:
                return
            if not result.success:
                log.warning("dig at %s failed: %s", block.position, result.error)
                self.reset_path(ResetReason.DIG_ERROR)

        self._when_done(self.agent.dig(block), on_dug)

    def _tick_placing(self, step: PathStep) -> None:
        if self.lock_place.locked:
            return  # placement in flight
        if not self.placing:
            self.placing = True
            self._placing_block = step.to_place.popleft()
            self.full_stop()

        placement = self._placing_block
        assert placement is not None
        if placement.use_one:
            self._open_gate(placement)
            return

        item = self.movements.get_scaffolding_item()
        if item is None:
            self.reset_path(ResetReason.NO_SCAFFOLDING_BLOCKS)
            return

        p = self.agent.position
        if (
            self.settings.los_when_placing_blocks
            and placement.y == math.floor(p.y) - 1
            and placement.dy == 0
        ):
            if not self._move_to_edge(placement.position, Vec3(placement.dx, 0, placement.dz)):
                return

        can_place = True
        if placement.jump:
            self.agent.set_control_state("jump", True)
            # Wait for the jump apex before placing beneath the feet.
            can_place = placement.y + 2 < p.y
        if not can_place:
            return

        if not self.lock_equip.try_acquire("scaffolding"):
            return
        held = self.agent.held_item
        if held is not None and held.name == item.name:
            self.lock_equip.release()
            self._place(placement)
            return

        def on_equipped(result: ActionResult, stale: bool) -> None:
            if stale:
                return
            self.lock_equip.release()
            if result.success:
                self._place(placement)
            else:
                log.warning("equip %s failed: %s", item.name, result.error)
                self.reset_path(ResetReason.PLACE_ERROR)

        self._when_done(self.agent.equip(item), on_equipped)

    def _place(self, placement: ToPlace) -> None:
        if not self.lock_place.try_acquire("place"):
            return
        reference = self.world.block_at(placement.position)
        if reference is None:
            self.reset_path(ResetReason.PLACE_ERROR)
            return

        if reference.name in self.movements.config.interactable_blocks:
            # Clicking an interactable block would open it instead.
            self.agent.set_control_state("sneak", True)

        def on_placed(result: ActionResult, stale: bool) -> None:
            if stale:
                return
            self.lock_place.release()
            self.agent.set_control_state("sneak", False)
            self.agent.set_control_state("jump", False)
            self.placing = False
            self._placing_block = None
            self._last_node_time = self.clock()
            if not result.success:
                log.warning("place against %s failed: %s", reference.position, result.error)
                self.reset_path(ResetReason.PLACE_ERROR)
                return
            if self.settings.los_when_placing_blocks and placement.return_pos is not None:
                self._returning_pos = placement.return_pos

        self._when_done(self.agent.place_block(reference, placement.face), on_placed)

    def _open_gate(self, placement: ToPlace) -> None:
        gate = self.world.block_at(placement.position)
        if gate is None:
            self.reset_path(ResetReason.PLACE_ERROR)
            return
        if gate.properties.get("open"):
            self._remember_gate(gate.position)
            self.placing = False
            self._placing_block = None
            return
        if not self.lock_use.try_acquire("open_gate"):
            return
        self._remember_gate(gate.position)

        def on_opened(result: ActionResult, stale: bool) -> None:
            if stale:
                return
            self.lock_use.release()
            if not result.success:
                log.warning("opening %s at %s failed: %s", gate.name, gate.position, result.error)
                self.reset_path(ResetReason.PLACE_ERROR)
                return
            self.placing = False
            self._placing_block = None

        self._when_done(self.agent.activate_block(gate), on_opened)

    def _remember_gate(self, pos: Vec3) -> None:
        if pos not in self._opened_gates:
            self._opened_gates.append(pos)

    def _close_opened_gate(self) -> bool:
        """Close the oldest opened gate once the path has left it. True while busy."""
        if not self._opened_gates or not self._path:
            return False
        gate_pos = self._opened_gates[0]
        head = self._path[0].move
        if max(
            abs(math.floor(head.x) - gate_pos.x),
            abs(math.floor(head.y) - gate_pos.y),
            abs(math.floor(head.z) - gate_pos.z),
        ) <= 1:
            return False

        if not self.lock_use.try_acquire("close_gate"):
            return self.lock_use.holder == "close_gate"
        gate = self.world.block_at(gate_pos)
        if gate is None or not gate.properties.get("open"):
            self.lock_use.release()
            self._opened_gates.popleft()
            return False

        def on_closed(result: ActionResult, stale: bool) -> None:
            if self._opened_gates and self._opened_gates[0] == gate_pos:
                self._opened_gates.popleft()
            if stale:
                return
            self.lock_use.release()
            if not result.success:
                log.debug("closing %s at %s failed: %s", gate.name, gate_pos, result.error)

        self._when_done(self.agent.activate_block(gate), on_closed)
        return True

    # ------------------------------------------------------------------
    # Locomotion
    # ------------------------------------------------------------------

    def _pursue_directly(self) -> bool:
        """Steer straight at a followed entity in line of sight."""
        entity = getattr(self.goal, "entity", None)
        if not self.movements.config.allow_free_motion or entity is None:
            return False
        target = entity.position
        if not self.physics.can_straight_line([target]):
            return False

        self.agent.look_at(target.offset(0, EYE_HEIGHT, 0))
        range_sq = getattr(self.goal, "range_sq", 0.0)
        if target.distance_squared_to(self.agent.position) > range_sq:
            self.agent.set_control_state("forward", True)
        else:
            self.agent.clear_control_states()
        return True

    def _walk(self, step: PathStep, allow_sprinting: bool) -> None:
        move = step.move
        sprint = {
            SprintPolicy.NO: False,
            SprintPolicy.OPTIONAL: allow_sprinting,
            SprintPolicy.YES: True,
        }[move.sprint]
        jump, sprint = self._choose_locomotion(step, sprint, allow_sprinting)

        self.agent.set_control_state("jump", jump)
        self.agent.set_control_state("sprint", sprint)
        dx = step.x - self.agent.position.x
        dz = step.z - self.agent.position.z
        self._go_forward(dx, dz, self.settings.look_at_target)

    def _choose_locomotion(self, step: PathStep, sprint: bool, allow_sprinting: bool):
        """
        Return (jump, sprint) for the next node.

        The move's own type is tried first, then straight walk, walk+jump,
        sprint, sprint+jump. With no predicted success, fall back to what
        the move type guarantees.
        """
        physics = self.physics
        points = [Vec3(step.x, step.y, step.z)]
        move_type = step.move.move_type

        if move_type in (
            MoveType.FORWARD,
            MoveType.DIAGONAL,
            MoveType.DIAGONAL_DOWN,
            MoveType.DROP_DOWN,
            MoveType.DOWN,
        ):
            if physics.can_straight_line(points, sprint):
                return False, sprint
        elif move_type is MoveType.PARKOUR:
            if physics.can_straight_line(points, sprint):
                return False, sprint
            if physics.can_jump(points, sprint):
                return True, sprint
        elif move_type in (MoveType.DIAGONAL_UP, MoveType.JUMP_UP):
            if physics.can_jump(points, sprint):
                return True, sprint

        if physics.can_straight_line(points, False):
            return False, False
        if physics.can_jump(points, False):
            return True, False
        if allow_sprinting:
            if physics.can_straight_line(points, True):
                return False, True
            if physics.can_jump(points, True):
                return True, True

        needs_jump = move_type in (MoveType.JUMP_UP, MoveType.DIAGONAL_UP, MoveType.PARKOUR)
        return needs_jump, sprint

    def _swim(self, step: PathStep) -> None:
        p = self.agent.position
        target_x, target_z = step.x, step.z
        half = PLAYER_WIDTH / 2
        # Push off walls so the body does not hang on a block edge.
        for offset_x, offset_z in ((half, 0), (-half, 0), (0, half), (0, -half)):
            block = self.movements.get_block(p.offset(offset_x, 0, offset_z).floored())
            if block.physical:
                target_x -= offset_x
                target_z -= offset_z

        self.agent.set_control_state("jump", True)
        self.agent.set_control_state("sprint", False)
        self._go_forward(target_x - p.x, target_z - p.z, self.settings.look_at_target)

    def _go_forward(self, dx: float, dz: float, look_at_target: bool) -> None:
        yaw = math.atan2(-dx, -dz)
        agent = self.agent
        if look_at_target:
            agent.look(yaw, 0.0)
            agent.set_control_state("forward", True)
            agent.set_control_state("back", False)
            agent.set_control_state("left", False)
            agent.set_control_state("right", False)
            return

        # Keep the current view; strafe towards the target instead.
        diff = math.degrees(yaw - agent.yaw)
        diff = (diff + 180.0) % 360.0 - 180.0
        controls = {"forward": False, "back": False, "left": False, "right": False}
        sector = round(diff / 45.0) % 8
        if sector in (7, 0, 1):
            controls["forward"] = True
        if sector in (3, 4, 5):
            controls["back"] = True
        if sector in (1, 2, 3):
            controls["left"] = True
        if sector in (5, 6, 7):
            controls["right"] = True
        for control, state in controls.items():
            agent.set_control_state(control, state)

    def _move_to_edge(self, ref: Vec3, edge: Vec3) -> bool:
        """Back up to the edge of `ref` facing away from it. True once there."""
        agent = self.agent
        target = ref.offset(edge.x + 0.5, 1, edge.z + 0.5)
        if agent.position.distance_to(target) <= 0.4:
            agent.set_control_state("back", False)
            agent.set_control_state("sneak", False)
            return True

        delta = agent.position.minus(ref.offset(edge.x + 0.5, edge.y, edge.z + 0.5))
        yaw = math.atan2(-delta.x, -delta.z)
        view = Vec3(
            -math.sin(yaw) * math.cos(EDGE_PITCH),
            math.sin(EDGE_PITCH),
            -math.cos(yaw) * math.cos(EDGE_PITCH),
        )
        agent.look_at(agent.position.plus(view))
        agent.set_control_state("sneak", True)
        agent.set_control_state("back", True)
        return False

    def _move_to_block(self, pos: Vec3) -> bool:
        """Walk to the centre of `pos`. True once there."""
        agent = self.agent
        target = pos.floored().offset(0.5, 0, 0.5)
        if agent.position.xz_distance_to(target) > 0.2:
            agent.look_at(target)
            agent.set_control_state("forward", True)
            return False
        agent.set_control_state("forward", False)
        return True

    def full_stop(self) -> None:
        """Release all controls and snap the agent to its block centre."""
        agent = self.agent
        agent.clear_control_states()
        agent.velocity = Vec3(0.0, agent.velocity.y, 0.0)

        p = agent.position
        center = Vec3(math.floor(p.x) + 0.5, p.y, math.floor(p.z) + 0.5)
        if abs(center.x - p.x) > RECENTER_THRESHOLD or abs(center.z - p.z) > RECENTER_THRESHOLD:
            agent.position = center

    def _is_reached(self, step: PathStep, position: Vec3) -> bool:
        error = self.settings.error
        return (
            abs(step.x - position.x) <= error
            and abs(step.z - position.z) <= error
            and abs(step.y - position.y) < 1
        )

    def _check_progress(self) -> None:
        now = self.clock()
        position = self.agent.position
        if (
            self._last_position is None
            or position.distance_squared_to(self._last_position) >= PROGRESS_DISTANCE_SQ
        ):
            self._last_position = position
            self._last_node_time = now
        elif now - self._last_node_time > self.settings.stuck_timeout_ms:
            log.info("no progress for %.0fms at %s", now - self._last_node_time, position)
            self.reset_path(ResetReason.STUCK)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _goal_reached(self) -> None:
        goal = self.goal
        self.goal = None
        self._emit(EventType.GOAL_REACHED, "goal reached", self._goal_payload(goal))
        self.full_stop()

    def _stop(self) -> None:
        goal = self.goal
        self._stop_pathing = False
        self.goal = None
        self._path.clear()
        self._context = None
        self._search_partial = False
        self._path_updated = False
        self._emit(EventType.PATH_STOP, "path stopped", self._goal_payload(goal))
        self.full_stop()

    def _when_done(self, future: "Future[ActionResult]", handler: ActionHandler) -> None:
        epoch = self._epoch

        def done(fut: "Future[ActionResult]") -> None:
            result = _outcome(fut)
            self._pending.append(lambda: handler(result, epoch != self._epoch))

        future.add_done_callback(done)

    def _drain_pending(self) -> None:
        # Callbacks queued while draining run on the next tick.
        for _ in range(len(self._pending)):
            self._pending.popleft()()

    def _emit(self, event_type: EventType, message: str, payload: dict) -> MonitoringEvent:
        return log_event(
            bus=self.bus,
            module=MODULE,
            event_type=event_type,
            message=message,
            payload=payload,
            correlation_id=self.session_id,
        )

    @staticmethod
    def _goal_payload(goal: Optional[Goal]) -> dict:
        if goal is None:
            return {"goal": None, "goal_id": None}
        return {"goal": repr(goal), "goal_id": id(goal)}

    @staticmethod
    def _setting(value: Optional[float], default: float) -> float:
        return default if value is None else value

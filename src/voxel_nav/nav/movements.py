# Movement model: edge generation for the search graph
# src/voxel_nav/nav/movements.py
"""
Movement model for voxel navigation.

Given a node (a Move), enumerates every move the agent could make next,
each with its cost and the blocks it must break or place first. The
model only reads world and inventory state; it never mutates anything.

Neighbour order (stable, the search relies on it for deterministic
tie-breaking):
    for each cardinal direction: forward, jump-up, drop-down, parkour-forward
    parkour in every direction of the radius-4 disc
    diagonals
    down
    up

Cost of a candidate:
    base cost (1, sqrt(2) for diagonals, 2 for jump-up, 1 + 0.1*distance for parkour)
    + exclusion-area weights
    + entity occupancy * entity_cost
    + liquid traversal
    + danger (fire, lava, cobweb, water beneath)
    + (1 + 3 * dig_ms / 1000) * dig_cost for every block to break
Any component reaching infinity discards the candidate.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..collision import EntityCollisionIndex
from ..tools import best_harvest_tool, dig_time_ms
from ..vec3 import Vec3
from ..world import AgentBody, Item, WorldView
from .grid import NavGrid, SafeBlock
from .move import Move, MoveType, SprintPolicy, ToPlace
from .movement_config import DOORS, MovementsConfig

log = logging.getLogger(__name__)

INF = math.inf

CARDINAL_DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (-1, 0),  # west
    (1, 0),   # east
    (0, -1),  # north
    (0, 1),   # south
)

DIAGONAL_DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (-1, -1),
    (-1, 1),
    (1, -1),
    (1, 1),
)

PARKOUR_MAX_DISTANCE = 4


def touching_cells(dx: int, dz: int, width: float = 0.6) -> Tuple[Tuple[int, int], ...]:
    """Cells swept by a `width`-wide body moving in a line from (0, 0) to (dx, dz)."""
    cells: List[Tuple[int, int]] = []
    steps = math.hypot(dx, dz) * 100
    sx, sz = dx / steps, dz / steps
    for i in range(int(math.floor(steps)) + 1):
        px, pz = sx * i, sz * i
        for x in range(math.floor(px), math.floor(px + width) + 1):
            for z in range(math.floor(pz), math.floor(pz + width) + 1):
                if (x, z) not in cells:
                    cells.append((x, z))
    return tuple(cells)


@dataclass(frozen=True)
class ParkourDirection:
    x: int
    z: int
    cells: Tuple[Tuple[int, int], ...]

    @property
    def length(self) -> float:
        return math.hypot(self.x, self.z)

    @property
    def launch_cells(self) -> Tuple[Tuple[int, int], ...]:
        """Cells crossed within one block of take-off."""
        return tuple(
            (x, z) for x, z in self.cells if (x, z) != (0, 0) and math.hypot(x, z) <= 1
        )


def _parkour_directions() -> Tuple[ParkourDirection, ...]:
    result: List[ParkourDirection] = []
    r = PARKOUR_MAX_DISTANCE
    for dx in range(-r, r + 1):
        for dz in range(-r, r + 1):
            if math.hypot(dx, dz) <= 1:
                continue
            result.append(ParkourDirection(dx, dz, touching_cells(dx, dz)))
    return tuple(result)


PARKOUR_DIRECTIONS: Tuple[ParkourDirection, ...] = _parkour_directions()


@dataclass
class _ParkourScan:
    ceiling_clear: bool
    floor_cleared: bool
    cost: float


class Movements:
    """
    Movement model bound to one world view, one agent and one policy.

    The agent is only read for inventory (scaffolding, tools), status
    effects and its own entity id.
    """

    def __init__(
        self,
        world: WorldView,
        agent: AgentBody,
        config: Optional[MovementsConfig] = None,
    ) -> None:
        self.world = world
        self.agent = agent
        self.config = config or MovementsConfig()
        self.grid = NavGrid(world, self.config)
        self.collision_index = EntityCollisionIndex()

    # ------------------------------------------------------------------
    # Block and entity queries
    # ------------------------------------------------------------------

    def get_block(self, pos, dx: float = 0, dy: float = 0, dz: float = 0) -> SafeBlock:
        return self.grid.get_block(pos, dx, dy, dz)

    def entities_at(self, pos, dx: int = 0, dy: int = 0, dz: int = 0) -> float:
        """Obstruction weight of the voxel at pos + offset."""
        if not self.config.allow_entity_detection or pos is None:
            return 0.0
        return self.collision_index.weight_at(
            int(pos.x + dx), int(pos.y + dy), int(pos.z + dz)
        )

    def clear_collision_index(self) -> None:
        self.collision_index.clear()

    def update_collision_index(self, reset: bool = True) -> None:
        """Index entity footprints; without `reset` they add to the current weights."""
        index = self.collision_index
        update = index.rebuild if reset else index.add_entities
        update(
            self.world.entities(),
            self_id=getattr(self.agent, "entity_id", None),
            avoid=self.config.entities_to_avoid,
            passable=self.config.passable_entities,
        )

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def count_scaffolding_items(self) -> int:
        count = 0
        items = self.agent.items()
        for name in self.config.scaffolding_blocks:
            count += sum(item.count for item in items if item.name == name)
        return count

    def get_scaffolding_item(self) -> Optional[Item]:
        items = self.agent.items()
        for name in self.config.scaffolding_blocks:
            for item in items:
                if item.name == name:
                    return item
        return None

    def best_harvest_tool(self, block) -> Optional[Item]:
        return best_harvest_tool(block, self.agent.items(), self.agent.effects)

    # ------------------------------------------------------------------
    # Cost components
    # ------------------------------------------------------------------

    def danger_cost(self, pos) -> float:
        g = self.get_block
        here = g(pos, 0, 0, 0)
        below = g(pos, 0, -1, 0)
        sides = [g(pos, dx, 0, dz) for dx, dz in CARDINAL_DIRECTIONS]
        sides_below = [g(pos, dx, -1, dz) for dx, dz in CARDINAL_DIRECTIONS]

        cost = 0.0
        if here.name == "fire":
            cost += 30
        if here.name == "campfire":
            cost += 20
        if below.name == "campfire":
            cost += 20
        for b in sides:
            if b.name == "campfire":
                cost += 2
            elif b.name == "cobweb":
                cost += 1
            elif b.name == "fire":
                cost += 10
        for b in sides_below:
            if b.name == "water":
                cost += 2
            elif b.name == "fire":
                cost += 10
            elif b.name == "lava":
                cost += 50
        return cost

    def landing_cost(self, block: SafeBlock) -> float:
        # Landing on farmland tramples it.
        if block.name == "farmland":
            return 100.0
        return 0.0

    def exclusion_step(self, block: SafeBlock) -> float:
        return sum(area(block) for area in self.config.exclusion_areas_step)

    def exclusion_break(self, block: SafeBlock) -> float:
        return sum(area(block) for area in self.config.exclusion_areas_break)

    def exclusion_place(self, block: SafeBlock) -> float:
        return sum(area(block) for area in self.config.exclusion_areas_place)

    def safe_to_break(self, block: SafeBlock) -> bool:
        cfg = self.config
        if block.raw is None:
            return False
        if not cfg.can_dig and block.name not in cfg.blocks_can_break_anyway:
            return False

        g = self.get_block
        p = block.position
        if cfg.dont_create_flow:
            for dx, dy, dz in ((0, 1, 0), (-1, 0, 0), (1, 0, 0), (0, 0, -1), (0, 0, 1)):
                if g(p, dx, dy, dz).liquid:
                    return False

        if cfg.dont_mine_under_falling_block:
            if g(p, 0, 1, 0).can_fall or self.entities_at(p, 0, 1, 0) > 0:
                return False

        if not block.raw.diggable or block.name in cfg.blocks_cant_break:
            return False
        return self.exclusion_break(block) < INF

    def safe_or_break(self, block: SafeBlock, to_break: List[Vec3]) -> float:
        """
        Cost of having `block` out of the way: free if already passable,
        dig labor if breakable (appending it to `to_break`), else infinity.
        """
        cost = self.exclusion_step(block)
        cost += self.entities_at(block.position) * self.config.entity_cost
        if block.liquid:
            cost += self.config.liquid_cost
        if block.safe:
            return cost
        if not self.safe_to_break(block):
            return INF
        to_break.append(block.position)

        if block.physical:
            # Whatever stands on it will fall into our way.
            cost += self.entities_at(block.position, 0, 1, 0) * self.config.entity_cost

        tool = self.best_harvest_tool(block.raw)
        dig_ms = dig_time_ms(block.raw, tool, self.agent.effects)
        cost += (1 + 3 * dig_ms / 1000) * self.config.dig_cost
        return cost

    def get_landing_block(self, node, dx: int, dz: int) -> Optional[SafeBlock]:
        """
        First standable cell below node + (dx, dz), scanning down from two
        blocks under the node. Liquid surfaces count as landings.
        """
        land = self.get_block(node, dx, -2, dz)
        while land.position.y > self.world.min_y:
            if land.liquid and land.safe:
                return land
            if land.physical:
                if node.y - land.position.y <= self.config.max_drop_down:
                    return self.get_block(land.position, 0, 1, 0)
                return None
            if not land.safe:
                return None
            land = self.get_block(land.position, 0, -1, 0)
        return None

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def get_move_jump_up(self, node: Move, dx: int, dz: int, neighbors: List[Move]) -> None:
        g = self.get_block
        ground = g(node, 0, -1, 0)
        foot = g(node, 0, 0, 0)
        above_head = g(node, 0, 2, 0)
        head_after = g(node, dx, 2, dz)
        foot_after = g(node, dx, 1, dz)
        ground_after = g(node, dx, 0, dz)
        below_ground_after = g(node, dx, -1, dz)

        if not foot.can_jump_from:
            return

        cost = 2.0
        to_break: List[Vec3] = []
        to_place: List[ToPlace] = []

        if ground_after.name in DOORS:
            return

        # Blocks above our building space must not drop entities onto us.
        if above_head.physical and self.entities_at(above_head.position, 0, 1, 0) > 0:
            return
        if head_after.physical and self.entities_at(head_after.position, 0, 1, 0) > 0:
            return
        if (
            foot_after.physical
            and not head_after.physical
            and not ground_after.physical
            and self.entities_at(foot_after.position, 0, 1, 0) > 0
        ):
            return

        carpet_on_fence = ground_after.fence and foot_after.carpet
        ground_after_height = ground_after.height

        if not carpet_on_fence and not ground_after.physical and ground_after.name != "end_portal":
            if node.remaining_scaffolding == 0:
                return
            if self.entities_at(ground_after.position) > 0:
                return

            if not below_ground_after.physical:
                if node.remaining_scaffolding == 1:
                    return
                if self.entities_at(below_ground_after.position) > 0:
                    return
                if not below_ground_after.replaceable:
                    if not self.safe_to_break(below_ground_after):
                        return
                    cost += self.exclusion_break(below_ground_after)
                    to_break.append(below_ground_after.position)
                cost += self.exclusion_place(below_ground_after)
                to_place.append(
                    ToPlace(
                        node.x, node.y - 1, node.z, dx, 0, dz,
                        return_pos=Vec3(node.x, node.y, node.z),
                    )
                )
                cost += self.config.place_cost

            if not ground_after.replaceable:
                if not self.safe_to_break(ground_after):
                    return
                cost += self.exclusion_break(ground_after)
                to_break.append(ground_after.position)
            cost += self.exclusion_place(ground_after)
            to_place.append(ToPlace(node.x + dx, node.y - 1, node.z + dz, 0, 1, 0))
            cost += self.config.place_cost
            ground_after_height += 1

        if not carpet_on_fence:
            stepping_out_of_liquid = (
                ground_after.position.y - ground.position.y <= 1
                and ground_after.physical
                and ground.liquid
            )
            if not stepping_out_of_liquid:
                if ground_after_height - ground.height > 1.2 and ground.name != "air":
                    return

        cost += self.landing_cost(ground_after)
        for block in (above_head, head_after, foot_after):
            cost += self.safe_or_break(block, to_break)
            if cost == INF:
                return
        cost += self.danger_cost(foot_after.position)
        if ground_after.liquid:
            cost += self.config.liquid_cost
        if cost == INF:
            return

        p = foot_after.position
        neighbors.append(
            Move(
                p.x, p.y, p.z,
                node.remaining_scaffolding - len(to_place),
                cost,
                tuple(to_break),
                tuple(to_place),
                MoveType.JUMP_UP,
                SprintPolicy.NO,
                dont_optimize=True,
            )
        )

    def get_move_forward(self, node: Move, dx: int, dz: int, neighbors: List[Move]) -> None:
        g = self.get_block
        head_after = g(node, dx, 1, dz)
        foot_after = g(node, dx, 0, dz)
        ground_after = g(node, dx, -1, dz)

        cost = 1.0 + self.exclusion_step(foot_after)
        to_break: List[Vec3] = []
        to_place: List[ToPlace] = []

        if ground_after.name in DOORS:
            return

        if (
            not ground_after.physical
            and not foot_after.liquid
            and ground_after.name != "end_portal"
        ):
            # Bridge: place a block under the destination.
            if node.remaining_scaffolding == 0:
                return
            if self.entities_at(ground_after.position) > 0:
                return
            if not ground_after.replaceable:
                if not self.safe_to_break(ground_after):
                    return
                cost += self.exclusion_break(ground_after)
                to_break.append(ground_after.position)
            cost += self.exclusion_place(foot_after)
            to_place.append(ToPlace(node.x, node.y - 1, node.z, dx, 0, dz))
            cost += self.config.place_cost
        elif not ground_after.can_walk_on:
            return

        opens_gate = self.config.can_open_doors and foot_after.openable
        if opens_gate:
            to_place.append(
                ToPlace(node.x + dx, node.y, node.z + dz, 0, 0, 0, use_one=True)
            )
        else:
            cost += self.safe_or_break(foot_after, to_break)
            if cost == INF:
                return
            cost += self.safe_or_break(head_after, to_break)
            if cost == INF:
                return

        if g(node, 0, 0, 0).liquid:
            cost += self.config.liquid_cost
        if ground_after.liquid:
            cost += self.config.liquid_cost
        cost += self.danger_cost(foot_after.position)
        if cost == INF:
            return

        placed = sum(1 for p in to_place if not p.use_one)
        p = foot_after.position
        neighbors.append(
            Move(
                p.x, p.y, p.z,
                node.remaining_scaffolding - placed,
                cost,
                tuple(to_break),
                tuple(to_place),
                MoveType.FORWARD,
                SprintPolicy.OPTIONAL,
                dont_optimize=False,
            )
        )

    def get_move_diagonal(self, node: Move, dx: int, dz: int, neighbors: List[Move]) -> None:
        g = self.get_block
        cost = math.sqrt(2)
        to_break: List[Vec3] = []

        foot_after = g(node, dx, 0, dz)
        ground_after = g(node, dx, -1, dz)
        y = 1 if foot_after.can_walk_on else 0
        ground = g(node, 0, -1, 0)

        # Two corridors lead to the diagonal cell; take the cheaper one.
        corner_costs: List[float] = []
        corner_breaks: List[List[Vec3]] = []
        for cx, cz in ((0, dz), (dx, 0)):
            breaks: List[Vec3] = []
            c = self.safe_or_break(g(node, cx, y + 1, cz), breaks)
            c += self.safe_or_break(g(node, cx, y, cz), breaks)
            corner_ground = g(node, cx, y - 1, cz)
            if corner_ground.height - ground.height > 1.2:
                c += self.safe_or_break(corner_ground, breaks)
            corner_costs.append(c)
            corner_breaks.append(breaks)

        if corner_costs[0] < corner_costs[1]:
            cost += corner_costs[0]
            to_break.extend(corner_breaks[0])
        else:
            cost += corner_costs[1]
            to_break.extend(corner_breaks[1])
        if cost == INF:
            return

        cost += self.safe_or_break(g(node, dx, y, dz), to_break)
        if cost == INF:
            return
        cost += self.safe_or_break(g(node, dx, y + 1, dz), to_break)
        if cost == INF:
            return

        if g(node, 0, 0, 0).liquid:
            cost += self.config.liquid_cost
        if g(node, dx, y - 1, dz).liquid:
            cost += self.config.liquid_cost
        cost += self.danger_cost(foot_after.position)
        if cost == INF:
            return

        p = foot_after.position
        if y == 1:
            if foot_after.height - ground.height > 1.2:
                return
            cost += self.safe_or_break(g(node, 0, 2, 0), to_break)
            if cost == INF:
                return
            cost += 1
            neighbors.append(
                Move(
                    p.x, p.y + 1, p.z,
                    node.remaining_scaffolding, cost, tuple(to_break), (),
                    MoveType.DIAGONAL_UP, SprintPolicy.NO, dont_optimize=True,
                )
            )
        elif ground_after.can_walk_on or foot_after.liquid:
            neighbors.append(
                Move(
                    p.x, p.y, p.z,
                    node.remaining_scaffolding, cost, tuple(to_break), (),
                    MoveType.DIAGONAL, SprintPolicy.OPTIONAL, dont_optimize=False,
                )
            )
        elif g(node, dx, -2, dz).can_walk_on or ground_after.liquid:
            if not ground_after.safe:
                return
            cost += self.entities_at(p, 0, -1, 0) * self.config.entity_cost
            neighbors.append(
                Move(
                    p.x, p.y - 1, p.z,
                    node.remaining_scaffolding, cost, tuple(to_break), (),
                    MoveType.DIAGONAL_DOWN, SprintPolicy.NO, dont_optimize=True,
                )
            )

    def get_move_drop_down(self, node: Move, dx: int, dz: int, neighbors: List[Move]) -> None:
        g = self.get_block
        head_after = g(node, dx, 1, dz)
        foot_after = g(node, dx, 0, dz)
        ground_after = g(node, dx, -1, dz)

        cost = 1.0
        to_break: List[Vec3] = []

        land = self.get_landing_block(node, dx, dz)
        if land is None:
            return
        drop_height = node.y - land.position.y
        if not self.config.infinite_liquid_dropdown_distance and drop_height > self.config.max_drop_down:
            return

        cost += self.landing_cost(g(land.position, 0, -1, 0))
        for block in (head_after, foot_after, ground_after):
            cost += self.safe_or_break(block, to_break)
            if cost == INF:
                return

        if foot_after.liquid or ground_after.liquid:
            return
        if head_after.liquid:
            cost += self.config.liquid_cost
        if drop_height <= 3 and land.liquid:
            cost += self.config.liquid_cost

        cost += self.entities_at(land.position) * self.config.entity_cost
        cost += self.danger_cost(land.position)
        if cost == INF:
            return

        p = land.position
        neighbors.append(
            Move(
                p.x, p.y, p.z,
                node.remaining_scaffolding, cost, tuple(to_break), (),
                MoveType.DROP_DOWN, SprintPolicy.NO, dont_optimize=True,
            )
        )

    def get_move_down(self, node: Move, neighbors: List[Move]) -> None:
        g = self.get_block
        ground = g(node, 0, -1, 0)

        cost = 1.0
        to_break: List[Vec3] = []

        land = self.get_landing_block(node, 0, 0)
        if land is None:
            return

        cost += self.landing_cost(g(land.position, 0, -1, 0))
        cost += self.safe_or_break(ground, to_break)
        if cost == INF:
            return
        if g(node, 0, 0, 0).liquid or ground.liquid:
            return
        cost += self.entities_at(land.position) * self.config.entity_cost
        if cost == INF:
            return

        p = land.position
        neighbors.append(
            Move(
                p.x, p.y, p.z,
                node.remaining_scaffolding, cost, tuple(to_break), (),
                MoveType.DOWN, SprintPolicy.NO, dont_optimize=True,
            )
        )

    def get_move_up(self, node: Move, neighbors: List[Move]) -> None:
        g = self.get_block
        foot = g(node, 0, 0, 0)
        head = g(node, 0, 1, 0)
        above = g(node, 0, 2, 0)

        if foot.liquid or head.liquid:
            # Swim up.
            if above.safe:
                neighbors.append(
                    Move(
                        node.x, node.y + 1, node.z,
                        node.remaining_scaffolding, 1.0, (), (),
                        MoveType.UP, SprintPolicy.NO, dont_optimize=True,
                    )
                )
            return

        if self.entities_at(node) > 0:
            return

        cost = 1.0
        to_break: List[Vec3] = []
        to_place: List[ToPlace] = []
        cost += self.safe_or_break(above, to_break)
        if cost == INF:
            return

        if not foot.climbable:
            if not self.config.allow_1by1_towers or node.remaining_scaffolding == 0:
                return
            if not foot.replaceable:
                if not self.safe_to_break(foot):
                    return
                to_break.append(foot.position)

            ground = g(node, 0, -1, 0)
            # Cannot jump-place from a half block.
            if ground.physical and ground.height - node.y < -0.2:
                return

            cost += self.exclusion_place(foot)
            to_place.append(ToPlace(node.x, node.y - 1, node.z, 0, 1, 0, jump=True))
            cost += self.config.place_cost

        if cost == INF:
            return

        neighbors.append(
            Move(
                node.x, node.y + 1, node.z,
                node.remaining_scaffolding - len(to_place),
                cost,
                tuple(to_break),
                tuple(to_place),
                MoveType.UP,
                SprintPolicy.NO,
                dont_optimize=True,
            )
        )

    def get_move_parkour_forward(self, node: Move, dx: int, dz: int, neighbors: List[Move]) -> None:
        """Jump over a gap of 1 to 3 blocks along a cardinal direction."""
        g = self.get_block
        ground = g(node, 0, -1, 0)
        ground_next = g(node, dx, -1, dz)
        if (
            (ground_next.physical and ground_next.height >= ground.height)
            or not g(node, dx, 0, dz).safe
            or not g(node, dx, 1, dz).safe
        ):
            return
        if not g(node, 0, 0, 0).can_jump_from:
            return

        cost = 1.0 + math.hypot(dx, dz) * 0.1
        cost += self.entities_at(node, dx, 0, dz) * self.config.entity_cost

        # A low ceiling rules out jumping but not falling.
        ceiling_clear = g(node, 0, 2, 0).safe and g(node, dx, 2, dz).safe
        floor_cleared = not g(node, dx, -2, dz).physical

        scan = _ParkourScan(ceiling_clear, floor_cleared, cost)
        for d in range(2, PARKOUR_MAX_DISTANCE + 1):
            cell = (dx * d, dz * d)
            if self._parkour_step(node, ground, cell, d, d == 2, d != 4, scan, neighbors):
                break

    def get_move_parkour_any(self, node: Move, direction: ParkourDirection, neighbors: List[Move]) -> None:
        """Jump along an arbitrary direction of the parkour disc."""
        g = self.get_block
        dx, dz = direction.x, direction.z
        ground = g(node, 0, -1, 0)
        target_ground = g(node, dx, -1, dz)
        if (
            (target_ground.physical and target_ground.height > ground.height)
            or not g(node, dx, 0, dz).safe
            or not g(node, dx, 1, dz).safe
        ):
            return
        if not g(node, 0, 0, 0).can_jump_from:
            return

        # Only jump when there is something to jump over.
        if all(g(node, cx, -1, cz).can_walk_on for cx, cz in direction.launch_cells):
            return
        for cx, cz in direction.launch_cells:
            if not g(node, cx, 0, cz).safe or not g(node, cx, 1, cz).safe:
                return

        cost = 1.0 + direction.length * 0.1
        cost += self.entities_at(node, dx, 0, dz) * self.config.entity_cost

        ceiling_clear = g(node, 0, 2, 0).safe and g(node, dx, 2, dz).safe
        floor_cleared = not g(node, dx, -2, dz).physical

        scan = _ParkourScan(ceiling_clear, floor_cleared, cost)
        for cx, cz in direction.cells:
            d = math.hypot(cx, cz)
            if d <= 1:
                continue
            if self._parkour_step(node, ground, (cx, cz), d, d < 2, d < 4, scan, neighbors):
                break

    def _parkour_step(
        self,
        node: Move,
        ground: SafeBlock,
        cell: Tuple[int, int],
        d: float,
        short_fall: bool,
        up_allowed: bool,
        scan: _ParkourScan,
        neighbors: List[Move],
    ) -> bool:
        """
        Evaluate one landing cell of a parkour scan.

        Returns True when the scan must stop; `scan` carries the ceiling,
        floor and accumulated cost over to the next cell.
        """
        g = self.get_block
        cx, cz = cell
        above_after = g(node, cx, 2, cz)
        head_after = g(node, cx, 1, cz)
        foot_after = g(node, cx, 0, cz)
        ground_after = g(node, cx, -1, cz)
        entity_cost = self.config.entity_cost

        if foot_after.safe:
            scan.cost += self.entities_at(foot_after.position) * entity_cost

        if scan.ceiling_clear and head_after.safe and foot_after.safe and ground_after.can_walk_on:
            # Same level landing.
            cost = scan.cost + self.exclusion_step(head_after)
            cost += self.landing_cost(ground_after)
            cost += self.danger_cost(foot_after.position)
            self._push_parkour(node, foot_after.position, cost, d > 3, neighbors)
            return True

        if scan.ceiling_clear and foot_after.can_walk_on:
            # One block up; four blocks out and one up fails too often.
            if head_after.safe and above_after.safe and up_allowed:
                if foot_after.height - ground.height > 1.2:
                    return True
                cost = scan.cost + self.exclusion_step(head_after)
                cost += self.landing_cost(foot_after)
                cost += self.entities_at(head_after.position) * entity_cost
                cost += self.danger_cost(head_after.position)
                self._push_parkour(node, head_after.position, cost, d > 2, neighbors)
            return True

        if (
            (scan.ceiling_clear or short_fall)
            and head_after.safe
            and foot_after.safe
            and ground_after.safe
            and scan.floor_cleared
        ):
            # One block down; keep scanning for a longer jump.
            ground_after2 = g(node, cx, -2, cz)
            if ground_after2.can_walk_on:
                cost = scan.cost + self.exclusion_step(ground_after)
                cost += self.landing_cost(ground_after2)
                cost += self.entities_at(ground_after.position) * entity_cost
                cost += self.danger_cost(ground_after.position)
                self._push_parkour(node, ground_after.position, cost, d > 3, neighbors)
            scan.floor_cleared = scan.floor_cleared and not ground_after2.physical
        elif not head_after.safe or not foot_after.safe:
            return True

        scan.ceiling_clear = scan.ceiling_clear and above_after.safe
        return False

    def _push_parkour(
        self, node: Move, p: Vec3, cost: float, sprint: bool, neighbors: List[Move]
    ) -> None:
        if cost == INF:
            return
        neighbors.append(
            Move(
                p.x, p.y, p.z,
                node.remaining_scaffolding, cost, (), (),
                MoveType.PARKOUR,
                SprintPolicy.YES if sprint else SprintPolicy.NO,
                dont_optimize=True,
            )
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_neighbors(self, node: Move) -> List[Move]:
        neighbors: List[Move] = []
        parkour = self.config.allow_parkour

        for dx, dz in CARDINAL_DIRECTIONS:
            self.get_move_forward(node, dx, dz, neighbors)
            self.get_move_jump_up(node, dx, dz, neighbors)
            self.get_move_drop_down(node, dx, dz, neighbors)
            if parkour:
                self.get_move_parkour_forward(node, dx, dz, neighbors)

        if parkour:
            for direction in PARKOUR_DIRECTIONS:
                self.get_move_parkour_any(node, direction, neighbors)

        for dx, dz in DIAGONAL_DIRECTIONS:
            self.get_move_diagonal(node, dx, dz, neighbors)

        self.get_move_down(node, neighbors)
        self.get_move_up(node, neighbors)
        return neighbors

# External collaborator interfaces for the pathfinder
# src/voxel_nav/world.py
"""
Data types and interfaces the pathfinder consumes from its host.

The pathfinder never owns world storage, entity tracking or inventory.
The host provides them through the protocols below:

- WorldView: block lookups, raycasts and entity enumeration.
- AgentBody: the controllable agent (position, controls, async actions).

Async actions (equip / dig / place / activate) return a
concurrent.futures.Future resolving to an ActionResult. Failures are
reported through ActionResult.success, never raised.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
)

from .vec3 import Vec3

# Block-local axis aligned box: (x0, y0, z0, x1, y1, z1), each in [0, 1]
# except for tall shapes such as fences (y1 == 1.5).
Shape = Tuple[float, float, float, float, float, float]

FULL_CUBE: Tuple[Shape, ...] = ((0.0, 0.0, 0.0, 1.0, 1.0, 1.0),)


@dataclass
class Block:
    """A block as reported by the world."""

    name: str
    position: Vec3
    shapes: Tuple[Shape, ...] = FULL_CUBE
    hardness: Optional[float] = 1.5      # None: cannot be broken at all
    material: str = "rock"
    harvest_tools: Optional[FrozenSet[str]] = None  # None: any tool harvests
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def bounding_box(self) -> str:
        return "block" if self.shapes else "empty"

    @property
    def diggable(self) -> bool:
        return self.hardness is not None


@dataclass
class Item:
    """An inventory item with the tool properties dig time depends on."""

    name: str
    count: int = 1
    tool_speeds: Mapping[str, float] = field(default_factory=dict)
    enchantments: Mapping[str, int] = field(default_factory=dict)


@dataclass
class Entity:
    """A tracked entity (mob, player, dropped item...)."""

    id: int
    name: str
    position: Vec3
    width: float = 0.6
    height: float = 1.8
    is_valid: bool = True


@dataclass
class RaycastHit:
    position: Vec3       # voxel coordinate of the hit block
    face: Vec3           # unit normal of the face that was hit


@dataclass
class ActionResult:
    """Outcome of an async world action."""

    success: bool
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class WorldView(Protocol):
    """Read-only view of the voxel world."""

    min_y: int

    def block_at(self, pos: Vec3) -> Optional[Block]:
        """Return the block at a voxel position, or None if not loaded."""
        ...

    def raycast(
        self, origin: Vec3, direction: Vec3, max_distance: float
    ) -> Optional[RaycastHit]:
        """Return the first colliding block along the ray, if any."""
        ...

    def entities(self) -> Iterable[Entity]:
        ...


class AgentBody(Protocol):
    """The controllable agent."""

    entity_id: int
    position: Vec3
    velocity: Vec3
    on_ground: bool
    in_water: bool
    yaw: float
    pitch: float
    effects: Mapping[str, int]
    held_item: Optional[Item]

    def items(self) -> List[Item]:
        ...

    def set_control_state(self, control: str, state: bool) -> None:
        ...

    def clear_control_states(self) -> None:
        ...

    def get_control_state(self, control: str) -> bool:
        ...

    def look(self, yaw: float, pitch: float) -> None:
        ...

    def look_at(self, point: Vec3) -> None:
        ...

    def equip(self, item: Item) -> "Future[ActionResult]":
        ...

    def dig(self, block: Block) -> "Future[ActionResult]":
        ...

    def place_block(self, reference: Block, face: Vec3) -> "Future[ActionResult]":
        ...

    def activate_block(self, block: Block) -> "Future[ActionResult]":
        ...


# Control names understood by AgentBody.set_control_state
CONTROLS = ("forward", "back", "left", "right", "jump", "sprint", "sneak")

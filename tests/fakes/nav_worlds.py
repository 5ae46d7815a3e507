# tests/fakes/nav_worlds.py

from __future__ import annotations

from typing import Any, List, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent
from voxel_nav.nav.movement_config import MovementsConfig
from voxel_nav.nav.movements import Movements
from voxel_nav.testing import FakeAgent, FakeWorld


class FakeClock:
    """Millisecond clock driven by the test; `step` auto-advances per call."""

    def __init__(self, now: float = 0.0, step: float = 0.0) -> None:
        self.now = now
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value

    def advance(self, ms: float) -> None:
        self.now += ms


def flat_world(x0: int = -4, x1: int = 12, z0: int = -3, z1: int = 3, height: int = 4) -> FakeWorld:
    """
    Stone floor at y=0; loaded only inside the box so searches stay finite.

    min_y sits one below the floor: landing scans stop at min_y.
    """
    world = FakeWorld(min_y=-1, bounds=((x0, 0, z0), (x1, height, z1)))
    world.floor(0, x0, x1, z0, z1)
    return world


def gap_world(gap_x: int = 3, **kwargs: Any) -> FakeWorld:
    """flat_world with the floor column x == gap_x removed across its width."""
    world = flat_world(**kwargs)
    lo, hi = world.bounds
    for z in range(lo[2], hi[2] + 1):
        world.remove_block(gap_x, 0, z)
    return world


def make_movements(world: FakeWorld, agent: FakeAgent, **overrides: Any) -> Movements:
    return Movements(world, agent, MovementsConfig(**overrides))


class EventRecorder:
    """Collects every event published on a bus."""

    def __init__(self, bus: EventBus) -> None:
        self.events: List[MonitoringEvent] = []
        bus.subscribe(self.events.append)

    def of_type(self, event_type: EventType) -> List[MonitoringEvent]:
        return [e for e in self.events if e.event_type is event_type]

    def reasons(self) -> List[Optional[str]]:
        return [e.payload.get("reason") for e in self.of_type(EventType.PATH_RESET)]

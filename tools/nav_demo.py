#!/usr/bin/env python3
"""
tools/nav_demo.py

Drive one Pathfinder session through an in-memory world.

Default mode:
    - Builds a flat stone floor with a wall and a one-block gap
    - Loads a profile from config/pathfinder.yaml
    - Ticks the controller, teleporting the agent to each node it
      steers towards (FakeAgent has no physics of its own)
    - Prints the event stream, the search traces and a dashboard frame

Use --events PATH to also write the events as JSON lines.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

# ---------------------------------------------------------------------------
# Ensure src/ is on sys.path when running as a script
# ---------------------------------------------------------------------------

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# ---------------------------------------------------------------------------
# Imports from the project
# ---------------------------------------------------------------------------

from env.loader import load_pathfinder_profile  # type: ignore[import]
from monitoring.bus import EventBus  # type: ignore[import]
from monitoring.dashboard_tui import PathDashboard  # type: ignore[import]
from monitoring.events import LoggingSubscriber  # type: ignore[import]
from monitoring.logger import JsonFileLogger  # type: ignore[import]
from monitoring.logging_config import configure_logging  # type: ignore[import]
from voxel_nav import Pathfinder, goto  # type: ignore[import]
from voxel_nav.nav import GoalBlock, Movements  # type: ignore[import]
from voxel_nav.testing import FakeAgent, FakeWorld  # type: ignore[import]
from voxel_nav.vec3 import Vec3  # type: ignore[import]
from voxel_nav.world import Item  # type: ignore[import]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _print_header(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def build_world() -> FakeWorld:
    world = FakeWorld(min_y=-1, bounds=((-8, 0, -8), (24, 16, 8)))
    world.floor(0, -8, 24, -8, 8)
    # Wall with a single opening at z == 3
    world.fill(6, 1, -8, 6, 3, 8, "cobblestone")
    world.remove_block(6, 1, 3)
    world.remove_block(6, 2, 3)
    # One-block gap further on
    world.remove_block(12, 0, 0)
    return world


def run(profile: Optional[str], goal_x: int, max_ticks: int, events_path: Optional[Path]) -> int:
    nav_profile = load_pathfinder_profile(profile=profile)
    _print_header(f"Profile: {nav_profile.name}")

    world = build_world()
    agent = FakeAgent(
        Vec3(0.5, 1.0, 0.5),
        world=world,
        items=[Item("dirt", count=16)],
    )
    bus = EventBus()
    bus.subscribe(LoggingSubscriber())
    dashboard = PathDashboard(bus)
    sink = JsonFileLogger(events_path, bus) if events_path is not None else None

    pathfinder = Pathfinder(
        world,
        agent,
        movements=Movements(world, agent, nav_profile.movements),
        settings=nav_profile.settings,
        bus=bus,
    )
    future = goto(pathfinder, GoalBlock(goal_x, 1, 0))

    _print_header("Ticking")
    ticks = 0
    while not future.done() and ticks < max_ticks:
        pathfinder.tick()
        path = pathfinder.path
        if path and not pathfinder.is_mining() and not pathfinder.is_building():
            node = path[0]
            agent.position = Vec3(node.x, node.y, node.z)
        ticks += 1
    # One more tick settles a future decided on the last tick.
    pathfinder.tick()

    _print_header("Outcome")
    if not future.done():
        print(f"still travelling after {ticks} ticks")
    elif future.exception() is not None:
        print(f"failed after {ticks} ticks: {future.exception()}")
    else:
        print(f"reached goal after {ticks} ticks at {agent.position}")
    print(f"placements: {agent.calls('place')}")
    print(f"digs:       {agent.calls('dig')}")

    _print_header("Search traces")
    for record in pathfinder.tracer.get_records():
        print(record)

    dashboard.print_once()
    dashboard.close()
    if sink is not None:
        sink.close()
    return 0 if future.done() and future.exception() is None else 1


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a pathfinder session in a fake world.")
    parser.add_argument("--profile", default=None, help="profile name in config/pathfinder.yaml")
    parser.add_argument("--goal-x", type=int, default=16)
    parser.add_argument("--max-ticks", type=int, default=400)
    parser.add_argument("--events", type=Path, default=None, help="write events as JSONL")
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("--quiet-search", action="store_true", help="hide per-slice search traces")
    args = parser.parse_args(argv)

    configure_logging(
        logging.DEBUG if args.debug else logging.INFO,
        search_level=logging.WARNING if args.quiet_search else None,
    )
    return run(args.profile, args.goal_x, args.max_ticks, args.events)


if __name__ == "__main__":
    raise SystemExit(main())

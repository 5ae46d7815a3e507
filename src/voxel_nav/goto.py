# src/voxel_nav/goto.py
"""
One-shot travel request on top of a Pathfinder session.

goto() sets the goal and returns a Future that settles once the session
reports an outcome on the monitoring bus:

    reached        -> result None
    noPath         -> GotoError("NoPath")   (radiusExhausted included)
    timeout        -> GotoError("Timeout")
    goal replaced  -> GotoError("GoalChanged")
    stop()         -> GotoError("PathStopped")

The future is settled through Pathfinder.call_soon, i.e. at the start of
the tick after the deciding event, never from inside the publisher.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from monitoring.events import TERMINAL_EVENTS, EventType, MonitoringEvent

from .errors import PathfinderError
from .nav.goals import Goal
from .nav.pathfinder import SearchStatus

if TYPE_CHECKING:
    from .controller import Pathfinder

log = logging.getLogger(__name__)

NO_PATH = "NoPath"
TIMEOUT = "Timeout"
GOAL_CHANGED = "GoalChanged"
PATH_STOPPED = "PathStopped"


@dataclass
class GotoError(PathfinderError):
    """A travel request ended without reaching its goal."""

    def __str__(self) -> str:
        return f"GotoError(code={self.code!r}, details={self.details!r})"


def goto(pathfinder: "Pathfinder", goal: Goal) -> "Future[None]":
    """Travel to `goal`; see the module docstring for the outcomes."""
    future: "Future[None]" = Future()
    bus = pathfinder.bus
    goal_id = id(goal)
    settled = False

    def finish(error: Optional[GotoError]) -> None:
        nonlocal settled
        settled = True
        bus.unsubscribe(on_event)

        def settle() -> None:
            if future.done():
                return
            if error is None:
                future.set_result(None)
            else:
                future.set_exception(error)

        pathfinder.call_soon(settle)

    def on_event(event: MonitoringEvent) -> None:
        if settled or event.correlation_id != pathfinder.session_id:
            return
        payload = event.payload

        if event.event_type is EventType.GOAL_UPDATED:
            if payload.get("goal_id") != goal_id:
                finish(GotoError(code=GOAL_CHANGED, details={"goal": payload.get("goal")}))
        elif event.event_type is EventType.PATH_UPDATE:
            status = payload.get("status")
            if status in (SearchStatus.NO_PATH.value, SearchStatus.RADIUS_EXHAUSTED.value):
                finish(GotoError(code=NO_PATH, details={"status": status}))
            elif status == SearchStatus.TIMEOUT.value:
                finish(GotoError(code=TIMEOUT, details={"time_ms": payload.get("time_ms")}))
            elif status != SearchStatus.PARTIAL.value and payload.get("path_length") == 0:
                # Already standing in the goal.
                finish(None)
        elif event.event_type in TERMINAL_EVENTS:
            reached = event.event_type is EventType.GOAL_REACHED
            finish(None if reached else GotoError(code=PATH_STOPPED))

    # Subscribe first: set_goal publishes synchronously.
    bus.subscribe(on_event)
    log.debug("goto %r (session %s)", goal, pathfinder.session_id)
    pathfinder.set_goal(goal)
    return future

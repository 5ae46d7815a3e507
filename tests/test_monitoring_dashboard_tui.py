#tests/test_monitoring_dashboard_tui.py
"""
Smoke tests for monitoring.dashboard_tui.PathDashboard.

Covers:
- Event updates patch internal state
- Layout builds and renders for empty and populated state
"""

from __future__ import annotations

import io

from rich.console import Console

from monitoring.bus import EventBus
from monitoring.dashboard_tui import PathDashboard
from monitoring.events import EventType, MonitoringEvent


def make_event(event_type: EventType, payload: dict, session: str = "abc123") -> MonitoringEvent:
    return MonitoringEvent(
        ts=0.0,
        module="voxel_nav.controller",
        event_type=event_type,
        message="",
        payload=payload,
        correlation_id=session,
    )


def _console() -> Console:
    return Console(file=io.StringIO(), width=120, force_terminal=False)


def test_dashboard_tracks_session_state():
    bus = EventBus()
    dashboard = PathDashboard(bus, console=_console())

    bus.publish(make_event(EventType.GOAL_UPDATED, {"goal": "GoalBlock(3, 1, 0)"}))
    bus.publish(
        make_event(
            EventType.PATH_UPDATE,
            {"status": "success", "cost": 3.0, "path_length": 1, "visited_nodes": 4},
        )
    )
    bus.publish(make_event(EventType.PATH_RESET, {"reason": "stuck"}))
    bus.publish(make_event(EventType.PATH_RESET, {"reason": "stuck"}))
    bus.publish(make_event(EventType.PATH_RESET, {"reason": "block_updated"}))
    bus.publish(make_event(EventType.GOAL_REACHED, {"goal": "GoalBlock(3, 1, 0)"}))

    state = dashboard.state
    assert state["goal"] == "GoalBlock(3, 1, 0)"
    assert state["session"] == "abc123"
    assert state["search"]["status"] == "success"
    assert state["resets"] == {"stuck": 2, "block_updated": 1}
    assert state["reached"] == 1
    assert state["last_terminal"] == "goal_reached"

    bus.publish(make_event(EventType.PATH_STOP, {"goal": None}))
    assert dashboard.state["stopped"] == 1
    assert dashboard.state["last_terminal"] == "path_stop"


def test_new_goal_clears_last_search():
    bus = EventBus()
    dashboard = PathDashboard(bus, console=_console())

    bus.publish(make_event(EventType.PATH_UPDATE, {"status": "noPath", "cost": None}))
    bus.publish(make_event(EventType.GOAL_UPDATED, {"goal": "GoalY(64)"}))

    assert dashboard.state["search"] == {}


def test_dashboard_renders_empty_and_populated_state():
    bus = EventBus()
    console = _console()
    dashboard = PathDashboard(bus, console=console)

    dashboard.print_once()

    bus.publish(make_event(EventType.GOAL_UPDATED, {"goal": "GoalNear(5, 1, 0, 2)"}))
    bus.publish(make_event(EventType.PATH_UPDATE, {"status": "partial", "cost": None, "path_length": 2}))
    bus.publish(make_event(EventType.PATH_RESET, {"reason": "chunk_loaded"}))
    assert dashboard.build_layout() is not None
    dashboard.print_once()

    output = console.file.getvalue()
    assert "<no search yet>" in output
    assert "partial" in output
    assert "chunk_loaded" in output


def test_close_unsubscribes():
    bus = EventBus()
    dashboard = PathDashboard(bus, console=_console())
    dashboard.close()

    bus.publish(make_event(EventType.PATH_RESET, {"reason": "stuck"}))

    assert dashboard.state["resets"] == {}
    assert len(bus) == 0

# rich-based TUI dashboard
#src/monitoring/dashboard_tui.py
"""
TUI dashboard for pathfinder sessions.

A lightweight terminal UI (using `rich`) that subscribes to the monitoring
EventBus and renders:

- Navigation status:
    - Current goal
    - Session id
    - Last terminal event (reached / stopped)

- Search:
    - Last status, cost, visited / generated nodes
    - Path length

- Resets:
    - Count per reason
    - Reach / stop counters

This runs entirely offline. No web server, no external services.
"""

from __future__ import annotations

import time
from collections import Counter
from typing import Any, Dict, Optional

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .bus import EventBus, default_bus
from .events import EventType, MonitoringEvent


# ============================================================
# TUI Dashboard
# ============================================================

class PathDashboard:
    """
    Live terminal dashboard bound to a monitoring.EventBus.

    It consumes MonitoringEvents and keeps a small in-memory state
    representation, which is rendered on demand via rich.
    """

    def __init__(self, bus: EventBus, console: Optional[Console] = None) -> None:
        self._bus = bus
        self._console = console or Console()

        self._state: Dict[str, Any] = {
            "goal": "",
            "session": None,
            "search": {},          # last PATH_UPDATE payload
            "last_terminal": None,
            "reached": 0,
            "stopped": 0,
        }
        self._resets: Counter = Counter()

        self._bus.subscribe(self._on_event)

    @property
    def state(self) -> Dict[str, Any]:
        snapshot = dict(self._state)
        snapshot["resets"] = dict(self._resets)
        return snapshot

    def close(self) -> None:
        self._bus.unsubscribe(self._on_event)

    # --------------------------------------------------------
    # Event handler
    # --------------------------------------------------------

    def _on_event(self, event: MonitoringEvent) -> None:
        """Update dashboard state. Cheap and non-blocking."""
        et = event.event_type
        if event.correlation_id is not None:
            self._state["session"] = event.correlation_id

        if et == EventType.GOAL_UPDATED:
            self._state["goal"] = event.payload.get("goal") or ""
            self._state["search"] = {}

        elif et == EventType.PATH_UPDATE:
            self._state["search"] = dict(event.payload)

        elif et == EventType.PATH_RESET:
            self._resets[event.payload.get("reason", "unknown")] += 1

        elif et == EventType.GOAL_REACHED:
            self._state["reached"] += 1
            self._state["last_terminal"] = "goal_reached"

        elif et == EventType.PATH_STOP:
            self._state["stopped"] += 1
            self._state["last_terminal"] = "path_stop"

    # --------------------------------------------------------
    # Rendering helpers
    # --------------------------------------------------------

    def _render_status_panel(self) -> Panel:
        txt = Text()
        txt.append("Goal: ", style="bold")
        txt.append(f"{self._state['goal'] or '<none>'}\n")
        txt.append("Session: ", style="bold")
        txt.append(f"{self._state['session'] or '<none>'}\n")
        txt.append("Last: ", style="bold")
        txt.append(f"{self._state['last_terminal'] or '-'}")
        return Panel(txt, title="Navigation", border_style="cyan")

    def _render_search_panel(self) -> Panel:
        search = self._state["search"]
        table = Table.grid(pad_edge=False)
        table.add_column(justify="left")

        if not search:
            table.add_row("[bold]Status:[/bold] <no search yet>")
        else:
            cost = search.get("cost")
            table.add_row(f"[bold]Status:[/bold] {search.get('status', '-')}")
            table.add_row(f"[bold]Cost:[/bold] {cost if cost is not None else 'inf'}")
            table.add_row(f"[bold]Path length:[/bold] {search.get('path_length', 0)}")
            table.add_row(f"[bold]Visited:[/bold] {search.get('visited_nodes', 0)}")
            table.add_row(f"[bold]Generated:[/bold] {search.get('generated_nodes', 0)}")
            table.add_row(f"[bold]Time:[/bold] {search.get('time_ms', 0)} ms")
        return Panel(table, title="Search", border_style="green")

    def _render_reset_panel(self) -> Panel:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Reason", style="bold", width=22)
        table.add_column("Count", justify="right")

        if self._resets:
            for reason, count in self._resets.most_common():
                table.add_row(str(reason), str(count))
        else:
            table.add_row("<none>", "-")

        footer = Text(
            f"reached={self._state['reached']} stopped={self._state['stopped']}"
        )
        return Panel(table, title="Resets", subtitle=footer, border_style="magenta")

    def build_layout(self) -> Layout:
        layout = Layout()
        layout.split(
            Layout(name="top", size=5),
            Layout(name="middle", ratio=1),
        )
        layout["top"].update(self._render_status_panel())
        layout["middle"].split_row(
            Layout(name="search"),
            Layout(name="resets"),
        )
        layout["search"].update(self._render_search_panel())
        layout["resets"].update(self._render_reset_panel())
        return layout

    # --------------------------------------------------------
    # Output
    # --------------------------------------------------------

    def print_once(self) -> None:
        """Render the current state once (no live refresh)."""
        self._console.print(self.build_layout())

    def run(self, refresh_per_second: float = 4.0, duration_s: Optional[float] = None) -> None:
        """
        Run the live view. Blocks the current thread; `duration_s` bounds it.
        """
        refresh_delay = 1.0 / max(refresh_per_second, 0.1)
        deadline = None if duration_s is None else time.monotonic() + duration_s
        with Live(self.build_layout(), console=self._console, refresh_per_second=refresh_per_second) as live:
            while deadline is None or time.monotonic() < deadline:
                live.update(self.build_layout())
                time.sleep(refresh_delay)


def run_dashboard_with_default_bus() -> None:
    """Spawn a dashboard bound to monitoring.bus.default_bus."""
    PathDashboard(default_bus).run()


if __name__ == "__main__":
    run_dashboard_with_default_bus()

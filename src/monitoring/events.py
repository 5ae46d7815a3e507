# path: src/monitoring/events.py
"""
Event schema for pathfinder monitoring.

This module defines:
- EventType enum (what the execution controller reports)
- MonitoringEvent (one structured, JSON-safe event)
- LoggingSubscriber (relays events to the standard logging module)

All events are JSON-serializable via `.to_dict()` and are intended
for use with monitoring.bus.EventBus and monitoring.logger.JsonFileLogger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by a pathfinder session."""

    # A goal was set, replaced or cleared
    GOAL_UPDATED = auto()

    # A search slice produced a (possibly partial) path
    PATH_UPDATE = auto()

    # The current path was discarded; payload carries the reason
    PATH_RESET = auto()

    # Navigation stopped on request
    PATH_STOP = auto()

    # The agent satisfies the goal
    GOAL_REACHED = auto()

    # Generic log messages
    LOG = auto()


TERMINAL_EVENTS = frozenset({EventType.PATH_STOP, EventType.GOAL_REACHED})


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the execution controller or its tools.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("voxel_nav.controller", ...)
    event_type: EventType       # Enum describing the event class
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (status, cost, reason, goal)
    correlation_id: Optional[str] = None  # Pathfinder session id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name  # store name, not enum
        return data


# ============================================================
# Logging relay
# ============================================================

class LoggingSubscriber:
    """
    Bus subscriber that writes each event as one log line.

    Enough for quick grep-able traces without a dashboard.
    """

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    def __call__(self, event: MonitoringEvent) -> None:
        logger.log(
            self._level,
            "%s %s: %s %s",
            event.module,
            event.event_type.name,
            event.message,
            event.payload,
        )

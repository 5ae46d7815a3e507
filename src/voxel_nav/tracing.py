"""
Tracing for voxel_nav searches.

This module provides a thin, structured logging layer around search
results so that monitoring tools and tests can consume consistent traces.

It does NOT:
- Run searches
- Publish bus events (the controller does)
- Make control decisions
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple

from .nav.pathfinder import PathResult
from .vec3 import Vec3


@dataclass
class SearchTraceRecord:
    """
    Structured record of one search slice.

    Fields are plain values so the record can be dumped as JSON.
    """

    timestamp: float           # wall-clock time (time.time())
    goal: str

    status: str
    cost: Optional[float]
    time_ms: float
    visited_nodes: int
    generated_nodes: int
    path_length: int

    # Where the agent stood when the result arrived
    position: Tuple[float, float, float]


class SearchTracer:
    """
    In-memory search tracer with optional logging.

    Responsibilities:
    - Keep a rolling buffer of recent SearchTraceRecord entries.
    - Emit a single structured log line per result (info level).
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        max_records: int = 1_000,
    ) -> None:
        self._logger = logger or logging.getLogger("voxel_nav.search")
        self._records: Deque[SearchTraceRecord] = deque(maxlen=max_records)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(self, *, result: PathResult, goal: object, position: Vec3) -> SearchTraceRecord:
        """Record a trace for a search result, partial ones included."""
        record = SearchTraceRecord(
            timestamp=time.time(),
            goal=repr(goal),
            status=result.status.value,
            cost=result.summary()["cost"],
            time_ms=result.time_ms,
            visited_nodes=result.visited_nodes,
            generated_nodes=result.generated_nodes,
            path_length=len(result.path),
            position=(float(position.x), float(position.y), float(position.z)),
        )
        self._records.append(record)

        self._logger.info(
            "search status=%s cost=%s time=%.1fms visited=%d generated=%d "
            "path=%d pos=(%.2f,%.2f,%.2f) goal=%s",
            record.status,
            record.cost,
            record.time_ms,
            record.visited_nodes,
            record.generated_nodes,
            record.path_length,
            *record.position,
            record.goal,
        )
        return record

    def get_records(self) -> List[SearchTraceRecord]:
        """Snapshot of all currently buffered records."""
        return list(self._records)

    def clear(self) -> None:
        self._records.clear()

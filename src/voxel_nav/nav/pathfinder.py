# Resumable A* over the movement graph
# src/voxel_nav/nav/pathfinder.py
"""
Resumable A* over the graph implicitly defined by Movements + Goal.

- Nodes live in an arena (list) owned by one AStar context; parents are
  arena indices.
- The open set is a heapq of (f, h, seq, index) entries with lazy
  deletion; `open_index` maps a move hash to its arena slot so a better
  route updates the node in place.
- Ties on f are broken by lower h, then by insertion order.
- compute() is time or iteration sliced: it returns `partial` when its
  budget runs out and picks up where it stopped on the next call.

This module does not touch the agent or the world beyond what the
movement model reads.
"""

from __future__ import annotations

import heapq
import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..errors import PathfinderError
from .goals import Goal
from .move import Move
from .movements import Movements

log = logging.getLogger(__name__)

Clock = Callable[[], float]

DEFAULT_THINK_TIMEOUT_MS = 5000.0
DEFAULT_TICK_TIMEOUT_MS = 40.0


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SearchStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    TIMEOUT = "timeout"
    NO_PATH = "noPath"
    RADIUS_EXHAUSTED = "radiusExhausted"

    @property
    def terminal(self) -> bool:
        return self is not SearchStatus.PARTIAL


@dataclass
class SearchNode:
    move: Move
    g: float
    h: float
    parent: int = -1
    f: float = 0.0
    seq: int = 0

    def set(self, move: Move, g: float, h: float, parent: int) -> None:
        self.move = move
        self.g = g
        self.h = h
        self.f = g + h
        self.parent = parent


@dataclass
class PathResult:
    """Outcome of one compute() slice."""

    status: SearchStatus
    cost: float
    time_ms: float
    visited_nodes: int
    generated_nodes: int
    path: List[Move] = field(default_factory=list)
    context: Optional["AStar"] = field(default=None, repr=False, compare=False)

    def summary(self) -> Dict[str, object]:
        """JSON-safe view for events and logs."""
        return {
            "status": self.status.value,
            "cost": None if math.isinf(self.cost) else round(self.cost, 4),
            "time_ms": round(self.time_ms, 3),
            "visited_nodes": self.visited_nodes,
            "generated_nodes": self.generated_nodes,
            "path_length": len(self.path),
        }


class AStar:
    """
    One search context: a single start, a single goal, one movement policy.

    Discard the context and build a new one when the goal or the
    movement policy changes.
    """

    def __init__(
        self,
        start: Move,
        movements: Movements,
        goal: Goal,
        *,
        timeout_ms: float = DEFAULT_THINK_TIMEOUT_MS,
        tick_timeout_ms: float = DEFAULT_TICK_TIMEOUT_MS,
        search_radius: float = math.inf,
        clock: Optional[Clock] = None,
    ) -> None:
        for name, value in (
            ("timeout_ms", timeout_ms),
            ("tick_timeout_ms", tick_timeout_ms),
            ("search_radius", search_radius),
        ):
            if value is None or math.isnan(value) or value < 0:
                raise PathfinderError(
                    code="invalid_config",
                    details={"field": name, "value": value},
                )

        self.movements = movements
        self.goal = goal
        self.timeout_ms = timeout_ms
        self.tick_timeout_ms = tick_timeout_ms
        self.search_radius = search_radius
        self.clock: Clock = clock or monotonic_ms
        self.start_time = self.clock()

        self.nodes: List[SearchNode] = []
        self.open_heap: List[Tuple[float, float, int, int]] = []
        self.open_index: Dict[str, int] = {}
        self.closed: Set[str] = set()
        self.visited_chunks: Set[Tuple[int, int]] = set()
        self.pruned = 0
        self._seq = 0
        self._final: Optional[PathResult] = None

        h = goal.heuristic(start)
        root = SearchNode(start, 0.0, h)
        root.set(start, 0.0, h, -1)
        self.nodes.append(root)
        self.open_index[start.hash] = 0
        self._push(0)
        self.best_index = 0
        self.max_cost = h + search_radius

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def best_node(self) -> SearchNode:
        return self.nodes[self.best_index]

    @property
    def open_size(self) -> int:
        return len(self.open_index)

    def compute(
        self,
        max_iterations: Optional[int] = None,
        time_budget_ms: Optional[float] = None,
    ) -> PathResult:
        """
        Run the search for one slice.

        With neither budget given the slice lasts tick_timeout_ms. A
        terminal result is cached; later calls return it unchanged.
        """
        if self._final is not None:
            return self._final
        if max_iterations is None and time_budget_ms is None:
            time_budget_ms = self.tick_timeout_ms

        slice_start = self.clock()
        iterations = 0

        while self.open_heap:
            if max_iterations is not None and iterations >= max_iterations:
                return self._result(SearchStatus.PARTIAL, self.best_index)
            now = self.clock()
            if now - self.start_time > self.timeout_ms:
                return self._finish(SearchStatus.TIMEOUT, self.best_index)
            if time_budget_ms is not None and now - slice_start > time_budget_ms:
                return self._result(SearchStatus.PARTIAL, self.best_index)

            _, _, seq, index = heapq.heappop(self.open_heap)
            node = self.nodes[index]
            if node.seq != seq or node.move.hash not in self.open_index:
                continue  # stale heap entry

            del self.open_index[node.move.hash]
            if self.goal.is_end(node.move):
                return self._finish(SearchStatus.SUCCESS, index)

            self.closed.add(node.move.hash)
            self.visited_chunks.add(
                (math.floor(node.move.x) >> 4, math.floor(node.move.z) >> 4)
            )
            iterations += 1
            self._expand(index)

        status = SearchStatus.RADIUS_EXHAUSTED if self.pruned else SearchStatus.NO_PATH
        return self._finish(status, self.best_index)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _expand(self, index: int) -> None:
        node = self.nodes[index]
        for neighbor in self.movements.get_neighbors(node.move):
            if neighbor.hash in self.closed:
                continue
            g = node.g + neighbor.cost
            h = self.goal.heuristic(neighbor)
            if g + h > self.max_cost:
                self.pruned += 1
                continue

            existing = self.open_index.get(neighbor.hash)
            if existing is not None:
                if self.nodes[existing].g <= g:
                    continue
                self.nodes[existing].set(neighbor, g, h, index)
                self._push(existing)
                slot = existing
            else:
                child = SearchNode(neighbor, g, h)
                child.set(neighbor, g, h, index)
                self.nodes.append(child)
                slot = len(self.nodes) - 1
                self.open_index[neighbor.hash] = slot
                self._push(slot)

            if h < self.best_node.h:
                self.best_index = slot

    def _push(self, index: int) -> None:
        node = self.nodes[index]
        self._seq += 1
        node.seq = self._seq
        heapq.heappush(self.open_heap, (node.f, node.h, node.seq, index))

    def _reconstruct(self, index: int) -> List[Move]:
        path: List[Move] = []
        node = self.nodes[index]
        while node.parent != -1:
            path.append(node.move)
            node = self.nodes[node.parent]
        path.reverse()
        return path

    def _result(self, status: SearchStatus, index: int) -> PathResult:
        node = self.nodes[index]
        return PathResult(
            status=status,
            cost=node.g,
            time_ms=self.clock() - self.start_time,
            visited_nodes=len(self.closed),
            generated_nodes=len(self.closed) + len(self.open_index),
            path=self._reconstruct(index),
            context=self,
        )

    def _finish(self, status: SearchStatus, index: int) -> PathResult:
        self._final = self._result(status, index)
        log.debug(
            "search finished status=%s cost=%.3f visited=%d generated=%d",
            status.value,
            self._final.cost,
            self._final.visited_nodes,
            self._final.generated_nodes,
        )
        return self._final


def find_path(
    start: Move,
    movements: Movements,
    goal: Goal,
    **kwargs,
) -> PathResult:
    """Run a fresh context until it reaches a terminal status."""
    ctx = AStar(start, movements, goal, **kwargs)
    result = ctx.compute(time_budget_ms=math.inf)
    while not result.status.terminal:
        result = ctx.compute(time_budget_ms=math.inf)
    return result

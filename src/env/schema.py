# PathfinderSettings, PathfinderProfile dataclasses
# src/env/schema.py

from __future__ import annotations

import math
from dataclasses import dataclass

from voxel_nav.nav.movement_config import MovementsConfig


@dataclass
class PathfinderSettings:
    """Execution controller settings for one profile."""
    error: float = 0.35                 # arrival tolerance, horizontal blocks
    think_timeout_ms: float = 5000.0    # total budget of one search
    tick_timeout_ms: float = 40.0       # search slice per tick
    search_radius: float = math.inf     # inf: unbounded
    enable_path_shortcut: bool = False
    los_when_placing_blocks: bool = True
    look_at_target: bool = True
    stuck_timeout_ms: float = 1000.0

    def __post_init__(self) -> None:
        if self.error <= 0:
            raise ValueError(f"error must be positive, got {self.error!r}")
        for name in ("think_timeout_ms", "tick_timeout_ms", "search_radius", "stuck_timeout_ms"):
            value = getattr(self, name)
            if math.isnan(value) or value < 0:
                raise ValueError(f"{name} must be non-negative, got {value!r}")


@dataclass
class PathfinderProfile:
    """Resolved configuration for one active profile."""
    name: str
    settings: PathfinderSettings
    movements: MovementsConfig

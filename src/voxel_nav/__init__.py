# voxel_nav package
# src/voxel_nav/__init__.py
"""
voxel_nav: tick-driven pathfinding for an agent in a voxel world.

Exports:
    - Pathfinder: per-agent navigation session (execution controller)
    - goto / GotoError: one-shot travel requests
    - PathfinderError: raised for caller misconfiguration
"""

from __future__ import annotations

from .controller import ControllerState, Pathfinder, ResetReason
from .errors import PathfinderError
from .goto import GotoError, goto
from .vec3 import Vec3

__all__ = [
    "Pathfinder",
    "ControllerState",
    "ResetReason",
    "goto",
    "GotoError",
    "PathfinderError",
    "Vec3",
]

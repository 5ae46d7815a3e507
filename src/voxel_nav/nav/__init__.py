# src/voxel_nav/nav/__init__.py
"""
Search side of voxel_nav.

Provides:
- Goals: GoalBlock, GoalNear, GoalXZ, GoalY, GoalGetToBlock, composites...
- Movements / MovementsConfig: the movement graph and its policy
- AStar / find_path: resumable search over that graph
- Physics: locomotion feasibility queries
- PathPostProcessor: footing alignment and simplification
"""

from __future__ import annotations

from .goals import (
    Goal,
    GoalBlock,
    GoalBreakBlock,
    GoalCompositeAll,
    GoalCompositeAny,
    GoalFollow,
    GoalGetToBlock,
    GoalInvert,
    GoalLookAtBlock,
    GoalNear,
    GoalNearXZ,
    GoalPlaceBlock,
    GoalXZ,
    GoalY,
)
from .move import Move, MoveType, SprintPolicy, ToPlace
from .movement_config import MovementsConfig
from .movements import Movements
from .pathfinder import AStar, PathResult, SearchStatus, find_path
from .physics import Physics
from .postprocess import PathPostProcessor

__all__ = [
    "Goal",
    "GoalBlock",
    "GoalBreakBlock",
    "GoalCompositeAll",
    "GoalCompositeAny",
    "GoalFollow",
    "GoalGetToBlock",
    "GoalInvert",
    "GoalLookAtBlock",
    "GoalNear",
    "GoalNearXZ",
    "GoalPlaceBlock",
    "GoalXZ",
    "GoalY",
    "Move",
    "MoveType",
    "SprintPolicy",
    "ToPlace",
    "MovementsConfig",
    "Movements",
    "AStar",
    "PathResult",
    "SearchStatus",
    "find_path",
    "Physics",
    "PathPostProcessor",
]

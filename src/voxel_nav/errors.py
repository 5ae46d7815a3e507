# src/voxel_nav/errors.py
"""
Domain errors for voxel_nav.

Only caller bugs raise. Expected outcomes (no path, timeouts, failed
digs or placements) are reported as values: SearchStatus, ActionResult
and path-reset reasons.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class PathfinderError(RuntimeError):
    """
    Raised synchronously for misconfiguration, e.g. a negative search
    timeout or radius. Not retried.
    """

    code: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"PathfinderError(code={self.code!r}, details={self.details!r})"

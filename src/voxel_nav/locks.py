# src/voxel_nav/locks.py
"""
Non-blocking locks guarding in-flight agent actions.

The controller holds one lock per action family (equip, place, use).
While a lock is held the controller must not start a conflicting action,
but it keeps ticking. Resetting the path releases every lock.
"""

from __future__ import annotations

from typing import Optional


class ActionLock:
    def __init__(self, name: str) -> None:
        self.name = name
        self._holder: Optional[str] = None

    @property
    def locked(self) -> bool:
        return self._holder is not None

    @property
    def holder(self) -> Optional[str]:
        return self._holder

    def try_acquire(self, holder: str = "") -> bool:
        """Take the lock if free. Never blocks."""
        if self._holder is not None:
            return False
        self._holder = holder or self.name
        return True

    def release(self) -> None:
        self._holder = None

    def __repr__(self) -> str:
        return f"ActionLock({self.name!r}, locked={self.locked})"

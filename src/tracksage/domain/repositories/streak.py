"""Streak state repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.streak import StreakState


class StreakRepository(Protocol):
    """Storage for cached per-task streak values."""

    def get(self, task_id: int) -> Optional[StreakState]:
        """Return the stored state for a task."""
        ...

    def upsert(
        self, task_id: int, current: int, best: int, last_done_day: Optional[date]
    ) -> StreakState:
        """Write state; stored best becomes max(stored best, best)."""
        ...

    def reset_current(self, task_id: int) -> StreakState:
        """Set current streak to 0 leaving best untouched."""
        ...

    def list_for_user(self, user_id: int) -> list[tuple[int, str, StreakState | None]]:
        """(task_id, activity_name, state) for each of the user's tasks."""
        ...

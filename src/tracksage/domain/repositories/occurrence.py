"""Occurrence repository protocol."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol

from ...models.occurrence import Occurrence


class OccurrenceRepository(Protocol):
    """Persistence for dated task occurrences."""

    def insert_if_absent(self, task_id: int, occurred_on: date, *, user_id: int) -> None:
        """Insert one occurrence; an existing (task_id, date) row is left untouched."""
        ...

    def insert_many_if_absent(
        self, task_id: int, dates: Iterable[date], *, user_id: int
    ) -> int:
        """Insert occurrences in one transaction; return how many rows were new."""
        ...

    def upsert_completion(
        self,
        task_id: int,
        occurred_on: date,
        *,
        user_id: int,
        completed: bool,
        seconds_logged: Optional[int],
        now: datetime,
    ) -> Occurrence:
        """Create the row if needed, then apply completion state and return it."""
        ...

    def get(self, task_id: int, occurred_on: date) -> Optional[Occurrence]:
        """Fetch one occurrence."""
        ...

    def list_for_task(self, task_id: int) -> list[Occurrence]:
        """All occurrences of a task ordered by date."""
        ...

    def list_for_user_between(self, user_id: int, start: date, end: date) -> list[Occurrence]:
        """Occurrences of a user's tasks dated within [start, end] inclusive."""
        ...

    def completed_days(self, task_id: int, *, user_id: int) -> list[date]:
        """Distinct dates with completed=True, ascending."""
        ...

"""Progress ledger protocol."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from ...models.progress import ProgressEvent


@dataclass(frozen=True, slots=True)
class ProgressSums:
    """Aggregated progress for one interval."""

    minutes: int = 0
    count: int = 0


class ProgressRepository(Protocol):
    """Append-only ledger of progress events."""

    def append(self, event: ProgressEvent) -> ProgressEvent:
        """Persist a new progress event."""
        ...

    def sum_progress(
        self, task_id: int, user_id: int, start: datetime, end: datetime
    ) -> ProgressSums:
        """Sum events with ``start <= at < end`` by kind."""
        ...

    def earliest_timestamp(self, task_id: int, user_id: int) -> Optional[datetime]:
        """Return the first event instant for the task (aware UTC) or None."""
        ...

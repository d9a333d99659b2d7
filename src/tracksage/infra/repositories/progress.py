"""SQLModel implementation of the progress ledger."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import case, func
from sqlmodel import Session, select

from ...domain.repositories.progress import ProgressSums
from ...models import ProgressEvent, ProgressKind
from ...timeutils import from_storage_utc, to_storage_utc


class SQLModelProgressRepository:
    """SQLModel-based progress ledger; events are only ever appended."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def append(self, event: ProgressEvent) -> ProgressEvent:
        with self.session_factory() as session:
            event.at = to_storage_utc(event.at)
            session.add(event)
            session.commit()
            session.refresh(event)
            session.expunge(event)
            event.at = from_storage_utc(event.at)
            return event

    def sum_progress(
        self, task_id: int, user_id: int, start: datetime, end: datetime
    ) -> ProgressSums:
        """Sum minutes and counts with ``start <= at < end``."""
        minutes_sum = func.coalesce(
            func.sum(
                case((ProgressEvent.kind == ProgressKind.MINUTES.value, ProgressEvent.value), else_=0)
            ),
            0,
        )
        count_sum = func.coalesce(
            func.sum(
                case((ProgressEvent.kind == ProgressKind.COUNT.value, ProgressEvent.value), else_=0)
            ),
            0,
        )
        with self.session_factory() as session:
            statement = (
                select(minutes_sum, count_sum)
                .where(ProgressEvent.task_id == task_id)
                .where(ProgressEvent.user_id == user_id)
                .where(ProgressEvent.at >= to_storage_utc(start))
                .where(ProgressEvent.at < to_storage_utc(end))
            )
            minutes, count = session.exec(statement).one()
            return ProgressSums(minutes=int(minutes or 0), count=int(count or 0))

    def earliest_timestamp(self, task_id: int, user_id: int) -> Optional[datetime]:
        with self.session_factory() as session:
            statement = (
                select(func.min(ProgressEvent.at))
                .where(ProgressEvent.task_id == task_id)
                .where(ProgressEvent.user_id == user_id)
            )
            first_at = session.exec(statement).one()
            if first_at is None:
                return None
            if isinstance(first_at, str):
                first_at = datetime.fromisoformat(first_at)
            return from_storage_utc(first_at)

"""SQLModel implementation of Occurrence repository."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Iterable, Optional

from sqlalchemy import case, literal, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import Session, select

from ...logging_config import get_logger
from ...models import Occurrence, Task
from ...timeutils import from_storage_utc, to_storage_utc

logger = get_logger("infra.occurrence")

_CONFLICT_DIALECTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


def _loaded(row: Occurrence) -> Occurrence:
    if row.completed_at is not None:
        row.completed_at = from_storage_utc(row.completed_at)
    return row


def _insert_ignoring_conflicts(session: Session, rows: list[dict]) -> int:
    """Insert rows keyed by (task_id, occurred_on); existing keys are skipped silently."""

    if not rows:
        return 0
    dialect = session.get_bind().dialect.name
    insert_factory = _CONFLICT_DIALECTS.get(dialect)
    if insert_factory is not None:
        statement = (
            insert_factory(Occurrence)
            .values(rows)
            .on_conflict_do_nothing(index_elements=["task_id", "occurred_on"])
        )
        result = session.exec(statement)  # type: ignore[call-overload]
        inserted = result.rowcount if result.rowcount is not None and result.rowcount >= 0 else 0
    else:
        inserted = 0
        for row in rows:
            if session.get(Occurrence, (row["task_id"], row["occurred_on"])) is None:
                session.add(Occurrence(**row))
                inserted += 1
        session.flush()
    skipped = len(rows) - inserted
    if skipped:
        logger.debug(
            "Skipped existing occurrences",
            extra={"task_id": rows[0]["task_id"], "skipped": skipped},
        )
    return inserted


class SQLModelOccurrenceRepository:
    """SQLModel-based occurrence repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def insert_if_absent(self, task_id: int, occurred_on: date, *, user_id: int) -> None:
        self.insert_many_if_absent(task_id, [occurred_on], user_id=user_id)

    def insert_many_if_absent(
        self, task_id: int, dates: Iterable[date], *, user_id: int
    ) -> int:
        """Insert all dates in a single transaction; a failure aborts the whole batch."""
        rows = [
            {
                "task_id": task_id,
                "occurred_on": day,
                "user_id": user_id,
                "completed": False,
            }
            for day in sorted(set(dates))
        ]
        with self.session_factory() as session:
            inserted = _insert_ignoring_conflicts(session, rows)
            session.commit()
            return inserted

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
        """Upsert-then-update in one transaction.

        ``completed_at`` is stamped only when the row moves from incomplete to
        complete and cleared when un-set. ``seconds_logged`` merges by maximum.
        """
        stamp = to_storage_utc(now)
        with self.session_factory() as session:
            _insert_ignoring_conflicts(
                session,
                [
                    {
                        "task_id": task_id,
                        "occurred_on": occurred_on,
                        "user_id": user_id,
                        "completed": False,
                    }
                ],
            )

            values: dict = {"completed": completed}
            if completed:
                values["completed_at"] = case(
                    (Occurrence.completed == True, Occurrence.completed_at),  # noqa: E712
                    else_=literal(stamp, Occurrence.__table__.c.completed_at.type),
                )
            else:
                values["completed_at"] = None
            if seconds_logged is not None:
                values["seconds_logged"] = case(
                    (Occurrence.seconds_logged.is_(None), seconds_logged),  # type: ignore[union-attr]
                    (Occurrence.seconds_logged < seconds_logged, seconds_logged),
                    else_=Occurrence.seconds_logged,
                )

            session.exec(  # type: ignore[call-overload]
                update(Occurrence)
                .where(Occurrence.task_id == task_id)
                .where(Occurrence.occurred_on == occurred_on)
                .values(**values)
            )
            session.commit()

            row = session.get(Occurrence, (task_id, occurred_on))
            session.refresh(row)
            session.expunge(row)
            return _loaded(row)

    def get(self, task_id: int, occurred_on: date) -> Optional[Occurrence]:
        with self.session_factory() as session:
            obj = session.get(Occurrence, (task_id, occurred_on))
            if obj:
                session.expunge(obj)
                _loaded(obj)
            return obj

    def list_for_task(self, task_id: int) -> list[Occurrence]:
        with self.session_factory() as session:
            statement = (
                select(Occurrence)
                .where(Occurrence.task_id == task_id)
                .order_by(Occurrence.occurred_on)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return [_loaded(row) for row in rows]

    def list_for_user_between(self, user_id: int, start: date, end: date) -> list[Occurrence]:
        """Occurrences of tasks the user still owns, dated within [start, end]."""
        with self.session_factory() as session:
            statement = (
                select(Occurrence)
                .join(Task, Task.id == Occurrence.task_id)  # type: ignore[arg-type]
                .where(Task.user_id == user_id)
                .where(Occurrence.occurred_on >= start)
                .where(Occurrence.occurred_on <= end)
                .order_by(Occurrence.occurred_on, Occurrence.task_id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return [_loaded(row) for row in rows]

    def completed_days(self, task_id: int, *, user_id: int) -> list[date]:
        with self.session_factory() as session:
            statement = (
                select(Occurrence.occurred_on)
                .where(Occurrence.task_id == task_id)
                .where(Occurrence.user_id == user_id)
                .where(Occurrence.completed == True)  # noqa: E712
                .distinct()
                .order_by(Occurrence.occurred_on)  # type: ignore
            )
            return list(session.exec(statement).all())

"""SQLModel implementation of the streak state repository."""

from __future__ import annotations

from datetime import date
from typing import Callable, Optional

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import Session, select

from ...models import StreakState, Task

# Two-argument MAX is scalar in SQLite; PostgreSQL spells it GREATEST.
_UPSERT_DIALECTS = {
    "sqlite": (sqlite.insert, func.max),
    "postgresql": (postgresql.insert, func.greatest),
}


def build_upsert(
    dialect: str,
    task_id: int,
    current: int,
    best: int,
    last_done_day: Optional[date],
    *,
    reset: bool = False,
):
    """Return the insert-or-update statement for ``dialect``, or None if unsupported.

    The stored best is merged with the store's own max so concurrent writers
    cannot lower it. With ``reset`` only the current streak is touched.
    """

    entry = _UPSERT_DIALECTS.get(dialect)
    if entry is None:
        return None
    insert_factory, greatest = entry
    statement = insert_factory(StreakState).values(
        task_id=task_id,
        current_streak=current,
        best_streak=best,
        last_done_day=last_done_day,
    )
    if reset:
        set_ = {"current_streak": 0}
    else:
        set_ = {
            "current_streak": statement.excluded.current_streak,
            "best_streak": greatest(StreakState.best_streak, statement.excluded.best_streak),
            "last_done_day": statement.excluded.last_done_day,
        }
    return statement.on_conflict_do_update(index_elements=["task_id"], set_=set_)


class SQLModelStreakRepository:
    """Stores recomputed streaks; best never regresses."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get(self, task_id: int) -> Optional[StreakState]:
        with self.session_factory() as session:
            obj = session.get(StreakState, task_id)
            if obj:
                session.expunge(obj)
            return obj

    def upsert(
        self, task_id: int, current: int, best: int, last_done_day: Optional[date]
    ) -> StreakState:
        with self.session_factory() as session:
            statement = build_upsert(
                session.get_bind().dialect.name, task_id, current, best, last_done_day
            )
            if statement is not None:
                session.exec(statement)  # type: ignore[call-overload]
            else:
                state = self._locked(session, task_id)
                state.current_streak = current
                state.best_streak = max(state.best_streak or 0, best)
                state.last_done_day = last_done_day
                session.add(state)
            session.commit()
            return self._reload(session, task_id)

    def reset_current(self, task_id: int) -> StreakState:
        with self.session_factory() as session:
            statement = build_upsert(
                session.get_bind().dialect.name, task_id, 0, 0, None, reset=True
            )
            if statement is not None:
                session.exec(statement)  # type: ignore[call-overload]
            else:
                state = self._locked(session, task_id)
                state.current_streak = 0
                session.add(state)
            session.commit()
            return self._reload(session, task_id)

    def list_for_user(self, user_id: int) -> list[tuple[int, str, StreakState | None]]:
        """Left join of the user's tasks with their stored streaks."""
        with self.session_factory() as session:
            statement = (
                select(Task.id, Task.activity_name, StreakState)
                .join(StreakState, StreakState.task_id == Task.id, isouter=True)  # type: ignore[arg-type]
                .where(Task.user_id == user_id)
                .order_by(Task.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return [(task_id, name, state) for task_id, name, state in rows]

    @staticmethod
    def _locked(session: Session, task_id: int) -> StreakState:
        state = session.exec(
            select(StreakState).where(StreakState.task_id == task_id).with_for_update()
        ).first()
        if state is None:
            state = StreakState(task_id=task_id, current_streak=0, best_streak=0)
        return state

    @staticmethod
    def _reload(session: Session, task_id: int) -> StreakState:
        state = session.get(StreakState, task_id)
        session.refresh(state)
        session.expunge(state)
        return state

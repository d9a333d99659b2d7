"""SQLModel implementation of Task repository."""

from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from ...models import Occurrence, ProgressEvent, StreakState, Task
from ...timeutils import from_storage_utc, to_storage_utc


def _loaded(task: Task) -> Task:
    if task.created_at is not None:
        task.created_at = from_storage_utc(task.created_at)
    return task


class SQLModelTaskRepository:
    """SQLModel-based task repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get(self, task_id: int, *, user_id: int | None = None) -> Optional[Task]:
        """Retrieve a task by ID."""
        with self.session_factory() as session:
            statement = select(Task).where(Task.id == task_id)
            if user_id is not None:
                statement = statement.where(Task.user_id == user_id)
            obj = session.exec(statement).first()
            if obj:
                session.expunge(obj)
                _loaded(obj)
            return obj

    def list_for_user(self, user_id: int) -> list[Task]:
        with self.session_factory() as session:
            statement = select(Task).where(Task.user_id == user_id).order_by(Task.id)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return [_loaded(row) for row in rows]

    def list_all(self) -> list[Task]:
        with self.session_factory() as session:
            rows = list(session.exec(select(Task).order_by(Task.id)).all())  # type: ignore
            session.expunge_all()
            return [_loaded(row) for row in rows]

    def create(self, task: Task) -> Task:
        """Create a new task."""
        task.created_at = to_storage_utc(task.created_at)
        with self.session_factory() as session:
            session.add(task)
            session.commit()
            session.refresh(task)
            session.expunge(task)
            return _loaded(task)

    def update(self, task: Task) -> Task:
        """Update an existing task; generated occurrences are not rewritten."""
        task.created_at = to_storage_utc(task.created_at)
        with self.session_factory() as session:
            merged = session.merge(task)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return _loaded(merged)

    def delete(self, task_id: int, *, user_id: int) -> bool:
        """Delete a task together with its occurrences, progress and streak state."""
        with self.session_factory() as session:
            task = session.exec(
                select(Task).where(Task.id == task_id, Task.user_id == user_id)
            ).first()
            if task is None:
                return False
            session.exec(delete(Occurrence).where(Occurrence.task_id == task_id))
            session.exec(delete(ProgressEvent).where(ProgressEvent.task_id == task_id))
            session.exec(delete(StreakState).where(StreakState.task_id == task_id))
            session.delete(task)
            session.commit()
            return True

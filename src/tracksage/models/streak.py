"""Cached streak values per task."""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class StreakState(SQLModel, table=True):
    """Derived streak values, rewritten wholesale on each recompute."""

    __tablename__: ClassVar[str] = "streak_state"

    task_id: int = Field(foreign_key="task.id", primary_key=True)
    current_streak: int = Field(default=0, nullable=False)
    best_streak: int = Field(default=0, nullable=False)
    last_done_day: Optional[date] = Field(default=None)

"""Expected instances of a task on a calendar day."""

from __future__ import annotations

from datetime import date, datetime
from typing import ClassVar, Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class Occurrence(SQLModel, table=True):
    """One expected instance of a task; unique per task per calendar day."""

    __tablename__: ClassVar[str] = "occurrence"

    task_id: int = Field(foreign_key="task.id", primary_key=True)
    occurred_on: date = Field(primary_key=True, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    completed: bool = Field(default=False, nullable=False)
    completed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    seconds_logged: Optional[int] = Field(default=None, ge=0)

"""Append-only progress ledger entries."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import Column, DateTime, Index
from sqlmodel import Field, SQLModel


class ProgressKind(str, Enum):
    """Metric a progress event contributes to."""

    MINUTES = "minutes"
    COUNT = "count"


class ProgressEvent(SQLModel, table=True):
    """Minutes or count logged against a task at a real instant (stored in UTC)."""

    __tablename__: ClassVar[str] = "progress_event"
    __table_args__ = (
        Index("ix_progress_event_task_at", "task_id", "at"),
        Index("ix_progress_event_user_at", "user_id", "at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="task.id", nullable=False)
    user_id: int = Field(foreign_key="user.id", nullable=False)
    kind: str = Field(nullable=False, max_length=16)
    value: int = Field(nullable=False, gt=0)
    at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))

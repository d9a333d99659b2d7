"""Task (habit) definitions and repeat rules."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from ..errors import ValidationError


class Repeat(str, Enum):
    """Supported repeat rules; NONE marks a one-off task."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: "str | Repeat | None") -> "Repeat":
        """Normalize stored/inbound repeat values; empty means NONE."""

        if isinstance(value, Repeat):
            return value
        if value is None:
            return cls.NONE
        normalized = str(value).strip().lower()
        if not normalized:
            return cls.NONE
        try:
            return cls(normalized)
        except ValueError as exc:
            raise ValidationError(f"Unknown repeat value: {value!r}") from exc


class Task(SQLModel, table=True):
    """A recurring or one-off habit owned by a user."""

    __tablename__: ClassVar[str] = "task"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    activity_name: str = Field(nullable=False, max_length=120)
    timer: Optional[int] = Field(default=None, description="Target minutes per window")
    counter: Optional[int] = Field(default=None, description="Target count per window")
    deadline_date: Optional[date] = Field(default=None, index=True)
    repeat: Optional[str] = Field(default=None, max_length=16)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    @property
    def repeat_kind(self) -> Repeat:
        return Repeat.parse(self.repeat)

    @property
    def is_accumulative(self) -> bool:
        """Accumulative tasks are measured by a timer or counter target."""

        return bool(self.timer or self.counter)

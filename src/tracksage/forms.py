"""Inbound payload models for the JSON routes."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models.progress import ProgressKind
from .models.task import Repeat

FormT = TypeVar("FormT", bound=BaseModel)


def validate_payload(form_cls: type[FormT], payload: Any) -> FormT:
    """Validate ``payload`` and translate pydantic errors into ``ValidationError``."""

    try:
        return form_cls.model_validate(payload or {})
    except PydanticValidationError as exc:
        messages = []
        for error in exc.errors(include_url=False):
            loc = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
            messages.append(f"{loc}: {error.get('msg', 'Invalid value')}")
        raise ValidationError("; ".join(messages)) from exc


class TaskForm(BaseModel):
    """Create or edit a task definition."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    activity_name: str = Field(alias="activityName", min_length=1, max_length=120)
    timer: Optional[int] = Field(default=None, gt=0, description="Target minutes per window")
    counter: Optional[int] = Field(default=None, gt=0, description="Target count per window")
    deadline_date: Optional[date] = Field(default=None, alias="deadline")
    repeat: Repeat = Field(default=Repeat.NONE)

    @field_validator("timer", "counter", "deadline_date", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """Treat empty strings and zero-like blanks from forms as unset."""

        if value in ("", None):
            return None
        return value

    @field_validator("repeat", mode="before")
    @classmethod
    def normalize_repeat(cls, value: Any) -> Repeat:
        try:
            return Repeat.parse(value)
        except ValidationError as exc:
            raise ValueError(str(exc)) from exc


class ProgressForm(BaseModel):
    """A progress event posted against a task."""

    model_config = ConfigDict(populate_by_name=True)

    kind: ProgressKind = Field(alias="type")
    value: int
    at: Optional[datetime] = None

    @field_validator("value")
    @classmethod
    def reject_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("Progress value must be non-zero")
        return value


class CompletionForm(BaseModel):
    """Mark or unmark one task day."""

    model_config = ConfigDict(populate_by_name=True)

    occurred_on: date = Field(alias="date")
    completed: bool
    seconds_logged: Optional[int] = Field(default=None, ge=0)

    @field_validator("completed", mode="before")
    @classmethod
    def require_boolean(cls, value: Any) -> bool:
        if not isinstance(value, bool):
            raise ValueError("completed must be true or false")
        return value


class GenerateForm(BaseModel):
    """Parameters for an occurrence generation pass."""

    horizon_days: int = Field(default=30, ge=0, le=3660)
    anchor_date: Optional[date] = None
    task_id: Optional[int] = None

    @model_validator(mode="after")
    def anchor_needs_task(self) -> "GenerateForm":
        if self.anchor_date is not None and self.task_id is None:
            raise ValueError("anchor_date can only be given together with task_id")
        return self


__all__ = [
    "CompletionForm",
    "GenerateForm",
    "ProgressForm",
    "TaskForm",
    "validate_payload",
]

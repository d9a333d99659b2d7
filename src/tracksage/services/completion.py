"""Marking task occurrences complete or incomplete."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..domain.repositories import OccurrenceRepository, TaskRepository
from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models import Occurrence
from ..timeutils import parse_date, utcnow

logger = get_logger("services.completion")


def _validate_seconds(seconds_logged: object) -> Optional[int]:
    if seconds_logged is None:
        return None
    if isinstance(seconds_logged, bool):
        raise ValidationError("seconds_logged must be an integer")
    try:
        seconds = int(seconds_logged)  # type: ignore[call-overload]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"seconds_logged must be an integer: {seconds_logged!r}") from exc
    if seconds < 0:
        raise ValidationError("seconds_logged must not be negative")
    return seconds


def set_completion(
    task_id: int,
    occurred_on: "date | str",
    completed: bool,
    seconds_logged: Optional[int] = None,
    *,
    user_id: int,
    tasks: TaskRepository,
    occurrences: OccurrenceRepository,
    now: Optional[datetime] = None,
) -> Occurrence:
    """Record completion state for one task day, creating the occurrence if needed.

    ``completed_at`` is taken from the server clock on the transition to
    complete and kept on repeated completes; ``seconds_logged`` never decreases.
    """

    day = parse_date(occurred_on)
    if not isinstance(completed, bool):
        raise ValidationError("completed must be a boolean")
    seconds = _validate_seconds(seconds_logged)

    task = tasks.get(task_id, user_id=user_id)
    if task is None:
        raise NotFoundError(f"Task {task_id} not found")

    row = occurrences.upsert_completion(
        task_id,
        day,
        user_id=task.user_id,
        completed=completed,
        seconds_logged=seconds,
        now=now or utcnow(),
    )
    logger.info(
        "Completion recorded",
        extra={
            "task_id": task_id,
            "occurred_on": day.isoformat(),
            "completed": completed,
            "seconds_logged": row.seconds_logged,
        },
    )
    return row


__all__ = ["set_completion"]

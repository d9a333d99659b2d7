"""Occurrence generation from task repeat rules.

Each repeat kind has its own expansion function producing candidate dates
forward from an anchor. Candidates after the deadline are dropped and the
survivors are inserted idempotently: existing (task, day) rows are kept as-is,
so generation never edits or deletes what an earlier pass produced.
"""

from __future__ import annotations

from datetime import date, timedelta
from math import ceil
from typing import Callable, Optional

from ..domain.repositories import OccurrenceRepository, TaskRepository
from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models.task import Repeat, Task
from ..timeutils import add_months, add_years

logger = get_logger("services.recurrence")


def _daily(anchor: date, horizon_days: int, first: int = 0) -> list[date]:
    return [anchor + timedelta(days=step) for step in range(first, first + horizon_days + 1)]


def _weekly(anchor: date, horizon_days: int, first: int = 0) -> list[date]:
    weeks = ceil(horizon_days / 7) + 1
    return [anchor + timedelta(weeks=step) for step in range(first, first + weeks)]


def _monthly(anchor: date, horizon_days: int, first: int = 0) -> list[date]:
    # Always offset from the anchor so a clamped month (Jan 31 -> Feb 29) does not drift.
    months = ceil(horizon_days / 30) + 1
    return [add_months(anchor, step) for step in range(first, first + months)]


def _yearly(anchor: date, horizon_days: int, first: int = 0) -> list[date]:
    years = max(2, ceil(horizon_days / 365) + 1)
    return [add_years(anchor, step) for step in range(first, first + years)]


def _single(anchor: date, horizon_days: int, first: int = 0) -> list[date]:
    return [anchor]


_EXPANDERS: dict[Repeat, Callable[[date, int, int], list[date]]] = {
    Repeat.NONE: _single,
    Repeat.DAILY: _daily,
    Repeat.WEEKLY: _weekly,
    Repeat.MONTHLY: _monthly,
    Repeat.YEARLY: _yearly,
}


def occurrence_dates(
    repeat: "Repeat | str | None",
    anchor_date: Optional[date],
    horizon_days: int,
    deadline_date: Optional[date] = None,
    *,
    first_step: int = 0,
) -> list[date]:
    """Return the dates a generation pass would produce, ascending.

    Non-repeating tasks yield one date: the anchor, or the deadline when no
    anchor is given. ``first_step`` skips that many repeat cycles past the
    anchor; later dates are still offset from the anchor itself, so a
    clamped month-end never carries into the following months.
    """

    kind = Repeat.parse(repeat)
    if isinstance(horizon_days, bool) or not isinstance(horizon_days, int) or horizon_days < 0:
        raise ValidationError(f"Horizon must be a non-negative number of days: {horizon_days!r}")

    if anchor_date is None:
        if kind is not Repeat.NONE or deadline_date is None:
            raise ValidationError("An anchor date is required")
        anchor_date = deadline_date

    candidates = _EXPANDERS[kind](anchor_date, horizon_days, max(0, first_step))
    if deadline_date is not None:
        candidates = [day for day in candidates if day <= deadline_date]
    return candidates


def generate(
    task: Task,
    anchor_date: Optional[date],
    horizon_days: int,
    deadline_date: Optional[date] = None,
    *,
    repository: OccurrenceRepository,
    first_step: int = 0,
) -> int:
    """Insert the task's occurrences for the horizon; return how many were new.

    ``deadline_date`` defaults to the task's own deadline. Re-running with the
    same arguments inserts nothing.
    """

    if task.id is None:
        raise ValidationError("Task must be persisted before generating occurrences")
    deadline = deadline_date if deadline_date is not None else task.deadline_date
    dates = occurrence_dates(
        task.repeat_kind, anchor_date, horizon_days, deadline, first_step=first_step
    )
    inserted = repository.insert_many_if_absent(task.id, dates, user_id=task.user_id)
    logger.info(
        "Generated occurrences",
        extra={
            "task_id": task.id,
            "repeat": task.repeat_kind.value,
            "candidates": len(dates),
            "inserted": inserted,
        },
    )
    return inserted


def generate_for_task(
    task_id: int,
    *,
    user_id: int,
    horizon_days: int,
    anchor_date: Optional[date] = None,
    tasks: TaskRepository,
    occurrences: OccurrenceRepository,
    today: Optional[date] = None,
) -> int:
    task = tasks.get(task_id, user_id=user_id)
    if task is None:
        raise NotFoundError(f"Task {task_id} not found")
    if anchor_date is not None:
        return generate(task, anchor_date, horizon_days, repository=occurrences)
    anchor, first_step = _cycle_position(task, today or date.today())
    return generate(task, anchor, horizon_days, repository=occurrences, first_step=first_step)


def generate_for_user(
    user_id: int,
    *,
    horizon_days: int,
    tasks: TaskRepository,
    occurrences: OccurrenceRepository,
    today: Optional[date] = None,
) -> dict[int, int]:
    """Generate for every task of a user, one transaction per task.

    A store failure stops the run; tasks already processed keep their rows.
    """

    today = today or date.today()
    results: dict[int, int] = {}
    for task in tasks.list_for_user(user_id):
        anchor, first_step = _cycle_position(task, today)
        results[task.id] = generate(
            task, anchor, horizon_days, repository=occurrences, first_step=first_step
        )
    return results


def _cycle_position(task: Task, today: date) -> tuple[date, int]:
    """Return the anchor and the first cycle index due on or after ``today``.

    Repeating tasks count cycles from their creation date so they keep its
    weekday, day-of-month or day-of-year; one-off tasks anchor on their
    deadline, else on today.
    """

    kind = task.repeat_kind
    if kind is Repeat.NONE:
        return task.deadline_date or today, 0
    origin = task.created_at.date() if task.created_at else today
    if origin >= today:
        return origin, 0
    elapsed = (today - origin).days
    if kind is Repeat.DAILY:
        return origin, elapsed
    if kind is Repeat.WEEKLY:
        return origin, ceil(elapsed / 7)
    months_per_step = 1 if kind is Repeat.MONTHLY else 12
    months = (today.year - origin.year) * 12 + today.month - origin.month
    step = months // months_per_step
    while add_months(origin, step * months_per_step) < today:
        step += 1
    return origin, step


__all__ = [
    "generate",
    "generate_for_task",
    "generate_for_user",
    "occurrence_dates",
]

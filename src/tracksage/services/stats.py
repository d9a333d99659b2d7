"""Read-side rollups for dashboards and charts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterable, Optional

from ..domain.repositories import OccurrenceRepository, ProgressRepository, TaskRepository
from ..errors import ValidationError
from ..models import Occurrence, Repeat, Task
from ..timeutils import utcnow
from .progress import sum_progress
from .windows import shifted_window

PERIOD_WINDOWS = (Repeat.DAILY, Repeat.WEEKLY, Repeat.MONTHLY, Repeat.YEARLY)


def clamp_int(value: object, minimum: int, maximum: int, default: int) -> int:
    """Coerce a query value into ``[minimum, maximum]``; unparsable values use ``default``."""

    try:
        number = int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return max(minimum, min(maximum, number))


@dataclass(slots=True)
class CompletionBucket:
    """Scheduled vs completed occurrences for one day or week."""

    start: date
    total: int = 0
    done: int = 0

    @property
    def pct_done(self) -> float:
        if self.total == 0:
            return 0.0
        return round(100.0 * self.done / self.total, 1)

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "total": self.total,
            "done": self.done,
            "pct_done": self.pct_done,
        }


def _fill(buckets: dict[date, CompletionBucket], rows: Iterable[Occurrence], key) -> None:
    for row in rows:
        bucket = buckets.get(key(row.occurred_on))
        if bucket is None:
            continue
        bucket.total += 1
        if row.completed:
            bucket.done += 1


def completion_daily(
    user_id: int,
    days: int = 14,
    *,
    occurrences: OccurrenceRepository,
    today: Optional[date] = None,
) -> list[CompletionBucket]:
    """Completion percentage for each of the last ``days`` days, oldest first."""

    today = today or date.today()
    days = clamp_int(days, 1, 90, 14)
    first = today - timedelta(days=days - 1)
    buckets = {first + timedelta(days=i): CompletionBucket(start=first + timedelta(days=i)) for i in range(days)}
    _fill(buckets, occurrences.list_for_user_between(user_id, first, today), key=lambda day: day)
    return [buckets[day] for day in sorted(buckets)]


def completion_weekly(
    user_id: int,
    weeks: int = 8,
    *,
    occurrences: OccurrenceRepository,
    today: Optional[date] = None,
) -> list[CompletionBucket]:
    """Completion percentage per ISO week (Monday start) for the last ``weeks`` weeks."""

    today = today or date.today()
    weeks = clamp_int(weeks, 1, 52, 8)
    this_week = today - timedelta(days=today.weekday())
    first = this_week - timedelta(weeks=weeks - 1)
    buckets = {first + timedelta(weeks=i): CompletionBucket(start=first + timedelta(weeks=i)) for i in range(weeks)}
    rows = occurrences.list_for_user_between(user_id, first, this_week + timedelta(days=6))
    _fill(buckets, rows, key=lambda day: day - timedelta(days=day.weekday()))
    return [buckets[week] for week in sorted(buckets)]


def progress_pct(task: Task, minutes: int, count: int) -> float:
    """Fraction of the target reached, capped at 1; timer targets take precedence."""

    if task.timer and task.timer > 0:
        return min(1.0, minutes / task.timer)
    if task.counter and task.counter > 0:
        return min(1.0, count / task.counter)
    return 0.0


def _matches_period(task: Task, period: Repeat) -> bool:
    if period is Repeat.DAILY:
        return task.repeat_kind in (Repeat.NONE, Repeat.DAILY)
    return task.repeat_kind is period


def progress_for_period(
    user_id: int,
    period: "Repeat | str",
    offset: int = 0,
    *,
    tz: tzinfo = timezone.utc,
    tasks: TaskRepository,
    progress: ProgressRepository,
    now: Optional[datetime] = None,
) -> dict:
    """Per-task progress in one daily/weekly/monthly/yearly period.

    ``offset`` shifts the period (``-1`` is the previous one). Tasks whose
    deadline falls before the period starts are left out.
    """

    kind = Repeat.parse(period)
    if kind not in PERIOD_WINDOWS:
        raise ValidationError(f"Unknown stats window: {period!r}")

    window = shifted_window(kind, now or utcnow(), offset, tz)
    period_start = window.start.date()

    rows = []
    for task in sorted(tasks.list_for_user(user_id), key=lambda item: (item.activity_name, item.id)):
        if not _matches_period(task, kind):
            continue
        if task.deadline_date is not None and period_start > task.deadline_date:
            continue
        sums = sum_progress(task.id, user_id, window.start, window.end, progress=progress)
        rows.append(
            {
                "task_id": task.id,
                "activity_name": task.activity_name,
                "timer": task.timer,
                "counter": task.counter,
                "repeat": task.repeat_kind.value,
                "deadline_date": task.deadline_date.isoformat() if task.deadline_date else None,
                "progress_minutes": sums.minutes,
                "progress_count": sums.count,
                "pct": progress_pct(task, sums.minutes, sums.count),
            }
        )

    return {
        "window": kind.value,
        "offset": offset,
        "start": window.start.isoformat(),
        "end": window.end.isoformat(),
        "rows": rows,
    }


__all__ = [
    "CompletionBucket",
    "clamp_int",
    "completion_daily",
    "completion_weekly",
    "progress_for_period",
    "progress_pct",
]

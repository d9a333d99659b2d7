"""Progress ledger writes, interval sums and the per-day agenda."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Optional

from ..domain.repositories import ProgressRepository, ProgressSums, TaskRepository
from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models import ProgressEvent, ProgressKind, Repeat, Task
from ..timeutils import parse_instant, utcnow
from .windows import Window, window_bounds

logger = get_logger("services.progress")


def parse_kind(value: "str | ProgressKind | None") -> ProgressKind:
    if isinstance(value, ProgressKind):
        return value
    try:
        return ProgressKind(str(value or "").strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Unknown progress type: {value!r}") from exc


def log_progress(
    task_id: int,
    *,
    user_id: int,
    kind: "str | ProgressKind",
    value: int,
    at: "datetime | str | None" = None,
    tasks: TaskRepository,
    progress: ProgressRepository,
) -> ProgressEvent:
    """Append a progress event after checking it matches the task's metric.

    Values below 1 are raised to 1.
    """

    progress_kind = parse_kind(kind)
    try:
        amount = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Progress value must be a number: {value!r}") from exc
    if amount == 0:
        raise ValidationError("Progress value must be non-zero")
    instant = parse_instant(at)

    task = tasks.get(task_id, user_id=user_id)
    if task is None:
        raise NotFoundError(f"Task {task_id} not found")
    if progress_kind is ProgressKind.MINUTES and not task.timer:
        raise ValidationError("Task has no timer target")
    if progress_kind is ProgressKind.COUNT and not task.counter:
        raise ValidationError("Task has no counter target")

    event = progress.append(
        ProgressEvent(
            task_id=task_id,
            user_id=user_id,
            kind=progress_kind.value,
            value=max(1, amount),
            at=instant,
        )
    )
    logger.info(
        "Progress logged",
        extra={"task_id": task_id, "user_id": user_id, "kind": progress_kind.value, "value": event.value},
    )
    return event


def sum_progress(
    task_id: int,
    user_id: int,
    start: datetime,
    end: datetime,
    *,
    progress: ProgressRepository,
) -> ProgressSums:
    """Sum minutes and counts logged in ``[start, end)``."""

    if end <= start:
        return ProgressSums()
    return progress.sum_progress(task_id, user_id, start, end)


@dataclass(slots=True)
class TaskProgress:
    """Progress of one task inside the window containing a reference instant."""

    task: Task
    window: Window
    sums: ProgressSums

    @property
    def complete_timer(self) -> Optional[bool]:
        return self.sums.minutes >= self.task.timer if self.task.timer else None

    @property
    def complete_counter(self) -> Optional[bool]:
        return self.sums.count >= self.task.counter if self.task.counter else None

    @property
    def completed(self) -> bool:
        """True when any metric the task tracks has reached its target."""

        return bool(self.complete_timer) or bool(self.complete_counter)

    def to_dict(self) -> dict:
        return {
            "task_id": self.task.id,
            "activity_name": self.task.activity_name,
            "timer": self.task.timer,
            "counter": self.task.counter,
            "repeat": self.task.repeat_kind.value,
            "deadline_date": self.task.deadline_date.isoformat() if self.task.deadline_date else None,
            "progress_minutes": self.sums.minutes,
            "progress_count": self.sums.count,
            "complete_timer": self.complete_timer,
            "complete_counter": self.complete_counter,
            "completed": self.completed,
            "window_start": self.window.start.isoformat(),
            "window_end": self.window.end.isoformat(),
        }


def task_progress(
    task: Task,
    *,
    reference: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
    progress: ProgressRepository,
) -> TaskProgress:
    """Progress for ``task`` in its window containing ``reference`` (default now)."""

    window = window_bounds(task.repeat_kind, task.deadline_date, reference or utcnow(), tz)
    sums = sum_progress(task.id, task.user_id, window.start, window.end, progress=progress)
    return TaskProgress(task=task, window=window, sums=sums)


def top_up_window(
    task: Task,
    day: date,
    *,
    tz: tzinfo = timezone.utc,
    progress: ProgressRepository,
) -> list[ProgressEvent]:
    """Append whatever minutes and count the window holding ``day`` still lacks.

    The events are stamped at the window start, so a completion marked by
    hand counts toward the same window the agenda and streaks read.
    """

    reference = datetime.combine(day, datetime.min.time(), tzinfo=tz)
    current = task_progress(task, reference=reference, tz=tz, progress=progress)
    shortfalls = (
        (ProgressKind.MINUTES, task.timer, current.sums.minutes),
        (ProgressKind.COUNT, task.counter, current.sums.count),
    )
    appended: list[ProgressEvent] = []
    for kind, target, logged in shortfalls:
        if not target or logged >= target:
            continue
        appended.append(
            progress.append(
                ProgressEvent(
                    task_id=task.id,
                    user_id=task.user_id,
                    kind=kind.value,
                    value=target - logged,
                    at=current.window.start,
                )
            )
        )
    if appended:
        logger.info(
            "Window topped up",
            extra={
                "task_id": task.id,
                "user_id": task.user_id,
                "window_start": current.window.start.isoformat(),
                "events": len(appended),
            },
        )
    return appended


def is_scheduled_on(task: Task, day: date) -> bool:
    """Repeating tasks are always scheduled; one-offs only up to their deadline."""

    if task.repeat_kind is not Repeat.NONE:
        return True
    return task.deadline_date is not None and day <= task.deadline_date


def day_agenda(
    user_id: int,
    day: date,
    *,
    tz: tzinfo = timezone.utc,
    tasks: TaskRepository,
    progress: ProgressRepository,
) -> list[TaskProgress]:
    """Tasks scheduled on ``day`` with progress in the window holding that day."""

    reference = datetime.combine(day, datetime.min.time(), tzinfo=tz)
    agenda: list[TaskProgress] = []
    for task in sorted(tasks.list_for_user(user_id), key=lambda item: item.id, reverse=True):
        if not is_scheduled_on(task, day):
            continue
        agenda.append(task_progress(task, reference=reference, tz=tz, progress=progress))
    return agenda


__all__ = [
    "TaskProgress",
    "day_agenda",
    "is_scheduled_on",
    "log_progress",
    "parse_kind",
    "sum_progress",
    "task_progress",
    "top_up_window",
]

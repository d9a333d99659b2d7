"""Streak calculations for boolean and accumulative tasks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterable, Optional

from ..domain.repositories import (
    OccurrenceRepository,
    ProgressRepository,
    StreakRepository,
    TaskRepository,
)
from ..logging_config import get_logger
from ..models import Repeat, Task
from ..timeutils import utcnow
from .progress import sum_progress
from .windows import deadline_end, next_window, window_bounds, window_success

logger = get_logger("services.streaks")


@dataclass(frozen=True, slots=True)
class StreakResult:
    current: int
    best: int
    last_done: Optional[date]

    def to_dict(self) -> dict:
        return {
            "current_streak": self.current,
            "best_streak": self.best,
            "last_done_day": self.last_done.isoformat() if self.last_done else None,
        }


def compute_streaks(days: Iterable[date], *, today: date | None = None) -> tuple[int, int]:
    """Return (current_streak, longest_streak) from completed calendar days.

    Consecutive days form a run. The current streak is the run ending at the
    latest completed day up to ``today``, provided that day is today or
    yesterday; anything older means the streak is already broken.
    """

    today = today or date.today()
    hits = sorted(set(days))

    # Longest streak: sweep through sorted days, counting consecutive runs.
    longest = 0
    run = 0
    last_day: date | None = None
    for day in hits:
        if last_day is not None and day == last_day + timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = day

    past = [day for day in hits if day <= today]
    if not past or today - past[-1] > timedelta(days=1):
        return 0, longest

    current = 1
    cursor = past[-1]
    for day in reversed(past[:-1]):
        if day != cursor - timedelta(days=1):
            break
        current += 1
        cursor = day
    return current, longest


def current_streak(
    task: Task,
    user_id: int,
    *,
    occurrences: OccurrenceRepository,
    today: date | None = None,
) -> int:
    current, _ = compute_streaks(occurrences.completed_days(task.id, user_id=user_id), today=today)
    return current


def best_streak(
    task: Task,
    user_id: int,
    *,
    occurrences: OccurrenceRepository,
    today: date | None = None,
) -> int:
    _, longest = compute_streaks(occurrences.completed_days(task.id, user_id=user_id), today=today)
    return longest


def recompute_boolean_streak(
    task: Task,
    user_id: int,
    *,
    occurrences: OccurrenceRepository,
    streaks: StreakRepository,
    today: date | None = None,
) -> StreakResult:
    """Recompute from completed occurrences and cache the result."""

    days = occurrences.completed_days(task.id, user_id=user_id)
    current, longest = compute_streaks(days, today=today)
    last_done = max(days) if days else None
    state = streaks.upsert(task.id, current, longest, last_done)
    return StreakResult(current=current, best=state.best_streak, last_done=last_done)


def recompute_accumulative_streak(
    task: Task,
    user_id: int,
    *,
    tz: tzinfo = timezone.utc,
    threshold: float = 1.0,
    progress: ProgressRepository,
    streaks: StreakRepository,
    now: Optional[datetime] = None,
) -> StreakResult:
    """Walk every window from the first logged progress to the current window.

    A window succeeds when the summed progress meets the target scaled by
    ``threshold``; a window without progress breaks the run. Non-repeating
    tasks step one day at a time and stop at their deadline. The returned
    best is the stored best after the write, which never decreases.
    """

    first_at = progress.earliest_timestamp(task.id, user_id)
    if first_at is None:
        state = streaks.reset_current(task.id)
        return StreakResult(current=0, best=state.best_streak, last_done=None)

    kind = task.repeat_kind
    now = now or utcnow()
    current_window = window_bounds(kind, task.deadline_date, now, tz)
    stop = (
        deadline_end(task.deadline_date, tz)
        if kind is Repeat.NONE and task.deadline_date is not None
        else None
    )

    current = 0
    best = 0
    last_done: Optional[date] = None
    walked = 0
    window = window_bounds(kind, task.deadline_date, first_at, tz)
    while window.start < current_window.end:
        if stop is not None and window.start >= stop:
            break
        sums = sum_progress(task.id, user_id, window.start, window.end, progress=progress)
        if window_success(task, sums, threshold):
            current += 1
            best = max(best, current)
            last_done = window.last_day
        else:
            current = 0
        logger.debug(
            "Streak window evaluated",
            extra={
                "task_id": task.id,
                "window_start": window.start.isoformat(),
                "minutes": sums.minutes,
                "count": sums.count,
                "current": current,
            },
        )
        walked += 1
        window = next_window(window, kind, task.deadline_date, tz)

    state = streaks.upsert(task.id, current, best, last_done)
    logger.info(
        "Accumulative streak recomputed",
        extra={"task_id": task.id, "windows": walked, "current": current, "best": state.best_streak},
    )
    return StreakResult(current=current, best=state.best_streak, last_done=last_done)


def recompute_task_streak(
    task: Task,
    user_id: int,
    *,
    tz: tzinfo = timezone.utc,
    threshold: float = 1.0,
    occurrences: OccurrenceRepository,
    progress: ProgressRepository,
    streaks: StreakRepository,
    now: Optional[datetime] = None,
) -> StreakResult:
    """Pick the streak algorithm matching how the task is measured."""

    now = now or utcnow()
    if task.is_accumulative:
        return recompute_accumulative_streak(
            task, user_id, tz=tz, threshold=threshold, progress=progress, streaks=streaks, now=now
        )
    return recompute_boolean_streak(
        task,
        user_id,
        occurrences=occurrences,
        streaks=streaks,
        today=now.astimezone(tz).date(),
    )


def recompute_for_user(
    user_id: int,
    *,
    tz: tzinfo = timezone.utc,
    threshold: float = 1.0,
    tasks: TaskRepository,
    occurrences: OccurrenceRepository,
    progress: ProgressRepository,
    streaks: StreakRepository,
    now: Optional[datetime] = None,
) -> dict[int, StreakResult]:
    return {
        task.id: recompute_task_streak(
            task,
            user_id,
            tz=tz,
            threshold=threshold,
            occurrences=occurrences,
            progress=progress,
            streaks=streaks,
            now=now,
        )
        for task in tasks.list_for_user(user_id)
    }


def _ranked(user_id: int, streaks: StreakRepository, attribute: str) -> list[dict]:
    rows = []
    for task_id, name, state in streaks.list_for_user(user_id):
        value = getattr(state, attribute, 0) if state is not None else 0
        if value > 0:
            rows.append({"task_id": task_id, "activity_name": name, "streak_days": value})
    rows.sort(key=lambda row: (row["streak_days"], row["task_id"]), reverse=True)
    return rows


def current_streaks(user_id: int, *, streaks: StreakRepository) -> list[dict]:
    """Tasks with a positive current streak, longest first."""

    return _ranked(user_id, streaks, "current_streak")


def best_streaks(user_id: int, *, streaks: StreakRepository) -> list[dict]:
    """Tasks with a positive best streak, longest first."""

    return _ranked(user_id, streaks, "best_streak")


def overall_streak(user_id: int, *, streaks: StreakRepository) -> dict:
    """Largest current and best streak across all of the user's tasks."""

    current = 0
    best = 0
    for _, _, state in streaks.list_for_user(user_id):
        if state is None:
            continue
        current = max(current, state.current_streak)
        best = max(best, state.best_streak)
    return {"current_streak_days": current, "best_streak_days": best}


__all__ = [
    "StreakResult",
    "best_streak",
    "best_streaks",
    "compute_streaks",
    "current_streak",
    "current_streaks",
    "overall_streak",
    "recompute_accumulative_streak",
    "recompute_boolean_streak",
    "recompute_for_user",
    "recompute_task_streak",
]

"""Aggregation windows for accumulative tasks.

A window is the half-open span ``[start, end)`` over which progress is summed
and success evaluated for one repeat cycle. Bounds are aware datetimes in the
caller's time zone; day/week/month/year steps are wall-clock steps in that
zone, so a window always starts at local midnight even across DST changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from ..domain.repositories.progress import ProgressSums
from ..models.task import Repeat, Task
from ..timeutils import add_months, add_years


@dataclass(frozen=True, slots=True)
class Window:
    """Half-open interval ``[start, end)``."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant.astimezone(self.start.tzinfo) < self.end

    @property
    def last_day(self) -> date:
        """Calendar day of the window's final instant."""

        return (self.end - timedelta(milliseconds=1)).date()


def _local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _localize(reference: datetime, tz: tzinfo) -> datetime:
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    return reference.astimezone(tz)


def deadline_end(deadline_date: date, tz: tzinfo) -> datetime:
    """Exclusive end of the deadline day (its end-of-day plus 1ms)."""

    return _local_midnight(deadline_date + timedelta(days=1), tz)


def window_bounds(
    repeat: "Repeat | str | None",
    deadline_date: Optional[date],
    reference: datetime,
    tz: tzinfo = timezone.utc,
) -> Window:
    """Return the window of ``repeat`` containing ``reference`` in zone ``tz``.

    Non-repeating tasks with a deadline run from the reference's local day
    through the deadline inclusive; without a deadline they fall back to a
    single-day window.
    """

    kind = Repeat.parse(repeat)
    today = _localize(reference, tz).date()

    if kind is Repeat.DAILY:
        start_day, end_day = today, today + timedelta(days=1)
    elif kind is Repeat.WEEKLY:
        start_day = today - timedelta(days=today.weekday())
        end_day = start_day + timedelta(weeks=1)
    elif kind is Repeat.MONTHLY:
        start_day = today.replace(day=1)
        end_day = add_months(start_day, 1)
    elif kind is Repeat.YEARLY:
        start_day = today.replace(month=1, day=1)
        end_day = add_years(start_day, 1)
    elif deadline_date is not None:
        return Window(_local_midnight(today, tz), deadline_end(deadline_date, tz))
    else:
        start_day, end_day = today, today + timedelta(days=1)

    return Window(_local_midnight(start_day, tz), _local_midnight(end_day, tz))


def next_window(
    window: Window,
    repeat: "Repeat | str | None",
    deadline_date: Optional[date],
    tz: tzinfo = timezone.utc,
) -> Window:
    """Advance one repeat cycle; non-repeating tasks step forward one day."""

    kind = Repeat.parse(repeat)
    start_day = window.start.date()
    if kind is Repeat.DAILY:
        return window_bounds(kind, None, _local_midnight(start_day + timedelta(days=1), tz), tz)
    if kind is Repeat.WEEKLY:
        return window_bounds(kind, None, _local_midnight(start_day + timedelta(weeks=1), tz), tz)
    if kind is Repeat.MONTHLY:
        return window_bounds(kind, None, _local_midnight(add_months(start_day, 1), tz), tz)
    if kind is Repeat.YEARLY:
        return window_bounds(kind, None, _local_midnight(add_years(start_day, 1), tz), tz)
    return window_bounds(None, deadline_date, _local_midnight(start_day + timedelta(days=1), tz), tz)


def shifted_window(
    repeat: "Repeat | str",
    reference: datetime,
    offset: int,
    tz: tzinfo = timezone.utc,
) -> Window:
    """Window ``offset`` cycles away from the one containing ``reference``."""

    kind = Repeat.parse(repeat)
    if kind is Repeat.NONE:
        kind = Repeat.DAILY
    anchor = window_bounds(kind, None, reference, tz).start.date()
    if kind is Repeat.DAILY:
        shifted = anchor + timedelta(days=offset)
    elif kind is Repeat.WEEKLY:
        shifted = anchor + timedelta(weeks=offset)
    elif kind is Repeat.MONTHLY:
        shifted = add_months(anchor, offset)
    else:
        shifted = add_years(anchor, offset)
    return window_bounds(kind, None, _local_midnight(shifted, tz), tz)


def window_success(task: Task, sums: ProgressSums, threshold: float = 1.0) -> bool:
    """Decide whether a window met the task's target.

    With both a timer and a counter target, meeting either one is enough.
    Tasks with neither target never succeed here.
    """

    timer_met = bool(task.timer) and sums.minutes >= threshold * task.timer
    counter_met = bool(task.counter) and sums.count >= threshold * task.counter

    if task.timer and task.counter:
        return timer_met or counter_met
    if task.timer:
        return timer_met
    if task.counter:
        return counter_met
    return False


__all__ = [
    "Window",
    "deadline_end",
    "next_window",
    "shifted_window",
    "window_bounds",
    "window_success",
]

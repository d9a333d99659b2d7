"""Service module exports."""

from . import completion, progress, recurrence, stats, streaks, tasks, windows

__all__ = [
    "completion",
    "progress",
    "recurrence",
    "stats",
    "streaks",
    "tasks",
    "windows",
]

"""Blueprint exports."""

from . import habits, stats, streaks, tasks

__all__ = [
    "habits",
    "stats",
    "streaks",
    "tasks",
]

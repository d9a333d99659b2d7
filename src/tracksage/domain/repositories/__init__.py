"""Repository protocol definitions for domain layer."""

from .occurrence import OccurrenceRepository
from .progress import ProgressRepository, ProgressSums
from .streak import StreakRepository
from .task import TaskRepository

__all__ = [
    "OccurrenceRepository",
    "ProgressRepository",
    "ProgressSums",
    "StreakRepository",
    "TaskRepository",
]

"""Concrete repository implementations using SQLModel."""

from .occurrence import SQLModelOccurrenceRepository
from .progress import SQLModelProgressRepository
from .streak import SQLModelStreakRepository
from .task import SQLModelTaskRepository

__all__ = [
    "SQLModelOccurrenceRepository",
    "SQLModelProgressRepository",
    "SQLModelStreakRepository",
    "SQLModelTaskRepository",
]

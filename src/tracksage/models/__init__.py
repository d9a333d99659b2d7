"""SQLModel table exports."""

from .occurrence import Occurrence
from .progress import ProgressEvent, ProgressKind
from .streak import StreakState
from .task import Repeat, Task
from .user import User

__all__ = [
    "Occurrence",
    "ProgressEvent",
    "ProgressKind",
    "Repeat",
    "StreakState",
    "Task",
    "User",
]

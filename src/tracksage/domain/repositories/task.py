"""Task repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.task import Task


class TaskRepository(Protocol):
    """Repository for managing task definitions."""

    def get(self, task_id: int, *, user_id: int | None = None) -> Optional[Task]:
        """Retrieve a task by ID, optionally scoped to its owner."""
        ...

    def list_for_user(self, user_id: int) -> list[Task]:
        """List all tasks owned by a user."""
        ...

    def list_all(self) -> list[Task]:
        """List every task across users."""
        ...

    def create(self, task: Task) -> Task:
        """Create a new task."""
        ...

    def update(self, task: Task) -> Task:
        """Update an existing task."""
        ...

    def delete(self, task_id: int, *, user_id: int) -> bool:
        """Delete a task and its dependent rows; return whether it existed."""
        ...

"""Task definition management."""

from __future__ import annotations

from datetime import date
from typing import Iterable

from ..domain.repositories import TaskRepository
from ..errors import NotFoundError
from ..forms import TaskForm
from ..logging_config import get_logger
from ..models import Repeat, Task

logger = get_logger("services.tasks")


def task_sort_key(task: Task) -> tuple[bool, date, int]:
    """Order by deadline with undated tasks last, then by id."""

    return (
        task.deadline_date is None,
        task.deadline_date or date.max,
        task.id if task.id is not None else 0,
    )


def ordered(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=task_sort_key)


def create_task(user_id: int, form: TaskForm, *, tasks: TaskRepository) -> Task:
    task = tasks.create(
        Task(
            user_id=user_id,
            activity_name=form.activity_name,
            timer=form.timer,
            counter=form.counter,
            deadline_date=form.deadline_date,
            repeat=None if form.repeat is Repeat.NONE else form.repeat.value,
        )
    )
    logger.info("Task created", extra={"task_id": task.id, "user_id": user_id})
    return task


def update_task(task_id: int, user_id: int, form: TaskForm, *, tasks: TaskRepository) -> Task:
    """Edit a task's definition; existing occurrences keep the shape they were generated with."""

    task = tasks.get(task_id, user_id=user_id)
    if task is None:
        raise NotFoundError(f"Task {task_id} not found")
    task.activity_name = form.activity_name
    task.timer = form.timer
    task.counter = form.counter
    task.deadline_date = form.deadline_date
    task.repeat = None if form.repeat is Repeat.NONE else form.repeat.value
    return tasks.update(task)


def delete_task(task_id: int, user_id: int, *, tasks: TaskRepository) -> None:
    if not tasks.delete(task_id, user_id=user_id):
        raise NotFoundError(f"Task {task_id} not found")
    logger.info("Task deleted", extra={"task_id": task_id, "user_id": user_id})


def list_tasks(user_id: int, *, tasks: TaskRepository) -> list[Task]:
    return ordered(tasks.list_for_user(user_id))


__all__ = [
    "create_task",
    "delete_task",
    "list_tasks",
    "ordered",
    "task_sort_key",
    "update_task",
]

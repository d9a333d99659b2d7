"""Task definition, progress logging and generation routes."""

from __future__ import annotations

from datetime import datetime

from flask import jsonify

from ...forms import GenerateForm, ProgressForm, TaskForm, validate_payload
from ...services import progress as progress_service
from ...services import recurrence, streaks
from ...services import tasks as task_service
from ..helpers import app_context, current_user_id, json_payload, request_timezone
from . import bp


@bp.get("/")
def list_tasks():
    """List the user's tasks with progress in each task's current window."""

    ctx = app_context()
    user_id = current_user_id()
    tz = request_timezone()
    rows = [
        progress_service.task_progress(task, tz=tz, progress=ctx.progress_repo).to_dict()
        for task in task_service.list_tasks(user_id, tasks=ctx.task_repo)
    ]
    return jsonify(rows)


@bp.post("/")
def create_task():
    ctx = app_context()
    user_id = current_user_id()
    form = validate_payload(TaskForm, json_payload())
    task = task_service.create_task(user_id, form, tasks=ctx.task_repo)
    return jsonify({"ok": True, "id": task.id}), 201


@bp.put("/<int:task_id>")
def update_task(task_id: int):
    ctx = app_context()
    user_id = current_user_id()
    form = validate_payload(TaskForm, json_payload())
    task = task_service.update_task(task_id, user_id, form, tasks=ctx.task_repo)
    return jsonify({"ok": True, "id": task.id})


@bp.delete("/<int:task_id>")
def delete_task(task_id: int):
    ctx = app_context()
    task_service.delete_task(task_id, current_user_id(), tasks=ctx.task_repo)
    return jsonify({"ok": True})


@bp.post("/<int:task_id>/progress")
def log_progress(task_id: int):
    """Append progress and refresh the task's streak."""

    ctx = app_context()
    user_id = current_user_id()
    form = validate_payload(ProgressForm, json_payload())
    event = progress_service.log_progress(
        task_id,
        user_id=user_id,
        kind=form.kind,
        value=form.value,
        at=form.at,
        tasks=ctx.task_repo,
        progress=ctx.progress_repo,
    )
    task = ctx.task_repo.get(task_id, user_id=user_id)
    result = streaks.recompute_accumulative_streak(
        task,
        user_id,
        tz=request_timezone(),
        threshold=ctx.threshold,
        progress=ctx.progress_repo,
        streaks=ctx.streak_repo,
    )
    return jsonify({"ok": True, "id": event.id, "streak": result.to_dict()}), 201


@bp.post("/generate")
def generate_occurrences():
    """Generate occurrences for one task or for every task of the user."""

    ctx = app_context()
    user_id = current_user_id()
    payload = {"horizon_days": ctx.config.GENERATION_HORIZON_DAYS, **json_payload()}
    form = validate_payload(GenerateForm, payload)
    today = datetime.now(request_timezone()).date()
    if form.task_id is not None:
        inserted = {
            form.task_id: recurrence.generate_for_task(
                form.task_id,
                user_id=user_id,
                horizon_days=form.horizon_days,
                anchor_date=form.anchor_date,
                tasks=ctx.task_repo,
                occurrences=ctx.occurrence_repo,
                today=today,
            )
        }
    else:
        inserted = recurrence.generate_for_user(
            user_id,
            horizon_days=form.horizon_days,
            tasks=ctx.task_repo,
            occurrences=ctx.occurrence_repo,
            today=today,
        )
    return jsonify({"ok": True, "inserted": {str(key): value for key, value in inserted.items()}})

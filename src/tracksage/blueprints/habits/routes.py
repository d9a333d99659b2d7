"""Day agenda and completion routes."""

from __future__ import annotations

from datetime import datetime

from flask import jsonify, request

from ...errors import NotFoundError
from ...forms import CompletionForm, validate_payload
from ...services import completion, streaks
from ...services import progress as progress_service
from ...timeutils import parse_date
from ..helpers import app_context, current_user_id, json_payload, request_timezone
from . import bp


def _occurrence_dict(row) -> dict:
    return {
        "task_id": row.task_id,
        "date": row.occurred_on.isoformat(),
        "completed": row.completed,
        "completed_at": row.completed_at.isoformat() if row.completed_at else None,
        "seconds_logged": row.seconds_logged,
    }


@bp.get("/day")
def day_agenda():
    """Tasks scheduled on ``?date=`` with progress in the matching window."""

    ctx = app_context()
    user_id = current_user_id()
    day = parse_date(request.args.get("date"))
    rows = progress_service.day_agenda(
        user_id,
        day,
        tz=request_timezone(),
        tasks=ctx.task_repo,
        progress=ctx.progress_repo,
    )
    return jsonify({"date": day.isoformat(), "rows": [row.to_dict() for row in rows]})


@bp.put("/<int:task_id>/complete")
def set_completion(task_id: int):
    """Mark or unmark a task day, then refresh the task's streak.

    Completing an accumulative task tops up its window to the targets.
    """

    ctx = app_context()
    user_id = current_user_id()
    form = validate_payload(CompletionForm, json_payload())
    row = completion.set_completion(
        task_id,
        form.occurred_on,
        form.completed,
        form.seconds_logged,
        user_id=user_id,
        tasks=ctx.task_repo,
        occurrences=ctx.occurrence_repo,
    )
    task = ctx.task_repo.get(task_id, user_id=user_id)
    tz = request_timezone()
    if task.is_accumulative:
        if form.completed:
            progress_service.top_up_window(
                task, form.occurred_on, tz=tz, progress=ctx.progress_repo
            )
        streaks.recompute_accumulative_streak(
            task,
            user_id,
            tz=tz,
            threshold=ctx.threshold,
            progress=ctx.progress_repo,
            streaks=ctx.streak_repo,
        )
    else:
        streaks.recompute_boolean_streak(
            task,
            user_id,
            occurrences=ctx.occurrence_repo,
            streaks=ctx.streak_repo,
            today=datetime.now(tz).date(),
        )
    return jsonify({"ok": True, "occurrence": _occurrence_dict(row)})


@bp.get("/<int:task_id>/occurrences")
def list_occurrences(task_id: int):
    ctx = app_context()
    user_id = current_user_id()
    if ctx.task_repo.get(task_id, user_id=user_id) is None:
        raise NotFoundError(f"Task {task_id} not found")
    rows = ctx.occurrence_repo.list_for_task(task_id)
    return jsonify([_occurrence_dict(row) for row in rows])

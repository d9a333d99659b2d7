"""Streak routes."""

from __future__ import annotations

from datetime import datetime

from flask import jsonify

from ...services import streaks
from ..helpers import app_context, current_user_id, request_timezone
from . import bp


@bp.get("/current")
def current():
    """Per-task current streaks, hiding tasks without one."""

    ctx = app_context()
    return jsonify(streaks.current_streaks(current_user_id(), streaks=ctx.streak_repo))


@bp.get("/best")
def best():
    ctx = app_context()
    return jsonify(streaks.best_streaks(current_user_id(), streaks=ctx.streak_repo))


@bp.get("/overall")
def overall():
    ctx = app_context()
    return jsonify(streaks.overall_streak(current_user_id(), streaks=ctx.streak_repo))


@bp.get("/<int:task_id>")
def task_streak(task_id: int):
    """Recompute and return one task's streak; unknown tasks read as zero."""

    ctx = app_context()
    user_id = current_user_id()
    task = ctx.task_repo.get(task_id, user_id=user_id)
    if task is None:
        return jsonify({"task_id": task_id, "current_streak": 0, "best_streak": 0, "last_done_day": None})
    tz = request_timezone()
    result = streaks.recompute_task_streak(
        task,
        user_id,
        tz=tz,
        threshold=ctx.threshold,
        occurrences=ctx.occurrence_repo,
        progress=ctx.progress_repo,
        streaks=ctx.streak_repo,
        now=datetime.now(tz),
    )
    return jsonify({"task_id": task_id, **result.to_dict()})


@bp.post("/recompute")
def recompute_all():
    ctx = app_context()
    user_id = current_user_id()
    results = streaks.recompute_for_user(
        user_id,
        tz=request_timezone(),
        threshold=ctx.threshold,
        tasks=ctx.task_repo,
        occurrences=ctx.occurrence_repo,
        progress=ctx.progress_repo,
        streaks=ctx.streak_repo,
    )
    return jsonify({str(task_id): result.to_dict() for task_id, result in results.items()})

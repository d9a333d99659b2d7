"""Dashboard statistics routes."""

from __future__ import annotations

from datetime import datetime

from flask import jsonify, request

from ...services import stats
from ..helpers import app_context, current_user_id, request_timezone
from . import bp


@bp.get("/completion/daily")
def completion_daily():
    """GET /stats/completion/daily?days=14"""

    ctx = app_context()
    buckets = stats.completion_daily(
        current_user_id(),
        stats.clamp_int(request.args.get("days"), 1, 90, 14),
        occurrences=ctx.occurrence_repo,
        today=datetime.now(request_timezone()).date(),
    )
    return jsonify([bucket.to_dict() for bucket in buckets])


@bp.get("/completion/weekly")
def completion_weekly():
    ctx = app_context()
    buckets = stats.completion_weekly(
        current_user_id(),
        stats.clamp_int(request.args.get("weeks"), 1, 52, 8),
        occurrences=ctx.occurrence_repo,
        today=datetime.now(request_timezone()).date(),
    )
    return jsonify([bucket.to_dict() for bucket in buckets])


@bp.get("/progress/<window>")
def progress(window: str):
    """Per-task progress pie data for one period; ``?offset=-1`` is the previous period."""

    ctx = app_context()
    offset = stats.clamp_int(request.args.get("offset"), -3660, 3660, 0)
    payload = stats.progress_for_period(
        current_user_id(),
        window,
        offset,
        tz=request_timezone(),
        tasks=ctx.task_repo,
        progress=ctx.progress_repo,
    )
    return jsonify(payload)

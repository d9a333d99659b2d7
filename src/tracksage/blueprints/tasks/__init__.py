"""Tasks blueprint package."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("tasks", __name__, url_prefix="/tasks")

from . import routes  # noqa: E402,F401 - import routes for registration

__all__ = ["bp"]

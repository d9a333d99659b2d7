"""Request helpers shared by the JSON blueprints."""

from __future__ import annotations

from typing import Any
from zoneinfo import ZoneInfo

from flask import current_app, request

from ..context import AppContext
from ..errors import ValidationError


def app_context() -> AppContext:
    """Return the AppContext attached by ``create_app``."""

    return current_app.extensions["tracksage"]


def json_payload() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("JSON body must be an object")
    return payload


def current_user_id() -> int:
    """User id supplied by the authenticating layer in front of these routes."""

    raw = (
        request.headers.get("X-User-Id")
        or request.args.get("user_id")
        or request.args.get("userId")
        or json_payload().get("user_id")
        or json_payload().get("userId")
    )
    try:
        user_id = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError("user_id required") from exc
    if user_id <= 0:
        raise ValidationError("user_id required")
    return user_id


def request_timezone() -> ZoneInfo:
    return app_context().timezone(request.args.get("tz") or request.headers.get("X-Timezone"))

"""TrackSage application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask, jsonify

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig
from .context import create_app_context
from .errors import NotFoundError, StoreUnavailable, TrackerError, ValidationError
from .logging_config import get_logger, setup_logging

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}

_ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    StoreUnavailable: 503,
}

logger = get_logger("app")


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    yield "tracksage.blueprints.tasks"
    yield "tracksage.blueprints.habits"
    yield "tracksage.blueprints.streaks"
    yield "tracksage.blueprints.stats"


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_obj = _resolve_config(config_name)()
    app.config.from_object(config_obj)
    app.config["TRACKSAGE_CONFIG"] = config_obj

    setup_logging(config_obj)
    app.extensions["tracksage"] = create_app_context(config_obj)

    _register_blueprints(app)
    _register_error_handlers(app)
    _cli.init_app(app)

    if config_obj.SCHEDULER_ENABLED:
        from .scheduler import create_scheduler

        app.extensions["tracksage_scheduler"] = create_scheduler(
            app.extensions["tracksage"], auto_start=True
        )

    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(TrackerError)
    def handle_tracker_error(exc: TrackerError):
        status = next(
            (code for cls, code in _ERROR_STATUS.items() if isinstance(exc, cls)),
            500,
        )
        if status >= 500:
            logger.error("Request failed", extra={"kind": exc.kind}, exc_info=exc)
        else:
            logger.info("Request rejected", extra={"kind": exc.kind, "status": status})
        return jsonify({"error": exc.kind, "message": str(exc)}), status


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app", "create_app_context"]

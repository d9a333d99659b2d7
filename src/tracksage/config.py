"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from .errors import ValidationError

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    """Read an integer setting, keeping the default for malformed values."""

    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


def resolve_timezone(name: str | None, default: str = "UTC") -> ZoneInfo:
    """Return a ZoneInfo for ``name`` or raise ValidationError for unknown zones."""

    key = (name or default).strip()
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f"Unknown time zone: {key!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "TrackSage"
    DB_FILENAME = "tracksage.db"
    TESTING = False

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("TRACKSAGE_SECRET_KEY", "replace-me")
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("TRACKSAGE_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("TRACKSAGE_DATABASE_URL", self._build_sqlite_url())
        self.DEFAULT_TIMEZONE = os.getenv("TRACKSAGE_TIMEZONE", "UTC")
        self.GENERATION_HORIZON_DAYS = _env_int("TRACKSAGE_HORIZON_DAYS", 30)
        self.STREAK_THRESHOLD = _env_float("TRACKSAGE_STREAK_THRESHOLD", 1.0)
        self.SCHEDULER_ENABLED = _env_bool("TRACKSAGE_SCHEDULER", default=False)
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("TRACKSAGE_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("TRACKSAGE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def timezone(self) -> ZoneInfo:
        """Return the configured default time zone."""

        return resolve_timezone(self.DEFAULT_TIMEZONE)

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            engine_options["connect_args"] = {"check_same_thread": False}
        else:
            engine_options.update({"pool_pre_ping": True, "pool_recycle": 1800})
        return engine_options


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True


class TestConfig(BaseConfig):
    """Configuration used by the test suite."""

    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.SCHEDULER_ENABLED = False

"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from sqlmodel import Session

from .config import BaseConfig, resolve_timezone
from .infra.database import create_db_engine, create_session_factory, init_database
from .infra.repositories import (
    SQLModelOccurrenceRepository,
    SQLModelProgressRepository,
    SQLModelStreakRepository,
    SQLModelTaskRepository,
)


@dataclass
class AppContext:
    """Configuration, session factory and repositories shared by routes and jobs."""

    config: BaseConfig
    session_factory: Callable[[], Session]

    task_repo: SQLModelTaskRepository
    occurrence_repo: SQLModelOccurrenceRepository
    progress_repo: SQLModelProgressRepository
    streak_repo: SQLModelStreakRepository

    engine: Optional[object] = None

    def timezone(self, name: Optional[str] = None) -> ZoneInfo:
        """Resolve a caller-supplied zone, falling back to the configured default."""

        return resolve_timezone(name, default=self.config.DEFAULT_TIMEZONE)

    @property
    def threshold(self) -> float:
        return self.config.STREAK_THRESHOLD


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    return AppContext(
        config=config,
        session_factory=session_factory,
        task_repo=SQLModelTaskRepository(session_factory),
        occurrence_repo=SQLModelOccurrenceRepository(session_factory),
        progress_repo=SQLModelProgressRepository(session_factory),
        streak_repo=SQLModelStreakRepository(session_factory),
        engine=engine,
    )

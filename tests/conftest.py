"""Pytest configuration and shared fixtures for TrackSage tests.

This module provides database fixtures, test data factories, and a Flask
client so domain logic, repositories and routes can be tested without
touching a real application database.
"""

from __future__ import annotations

import tempfile
from datetime import date, datetime, timezone
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine, select

# Import all models to ensure they're registered with SQLModel metadata
from tracksage.infra.database import create_session_factory
from tracksage.infra.repositories import (
    SQLModelOccurrenceRepository,
    SQLModelProgressRepository,
    SQLModelStreakRepository,
    SQLModelTaskRepository,
)
from tracksage.models import ProgressEvent, ProgressKind, Task, User

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Session for direct inspection of rows written by repositories."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the one the application context builds.

    A default user is bootstrapped and exposed as ``factory.user``.
    """
    factory = create_session_factory(db_engine)

    with factory() as session:
        existing = session.exec(select(User).where(User.username == "tester")).first()
        if existing is None:
            existing = User(username="tester")
            session.add(existing)
            session.commit()
            session.refresh(existing)
        session.expunge(existing)
    factory.user = existing  # type: ignore[attr-defined]

    return factory


@pytest.fixture
def user(session_factory) -> User:
    """Default user for scoping data."""
    return session_factory.user


@pytest.fixture
def other_user(session_factory) -> User:
    with session_factory() as session:
        row = User(username="someone-else")
        session.add(row)
        session.commit()
        session.refresh(row)
        session.expunge(row)
        return row


# =============================================================================
# Repositories
# =============================================================================


@pytest.fixture
def task_repo(session_factory):
    return SQLModelTaskRepository(session_factory)


@pytest.fixture
def occurrence_repo(session_factory):
    return SQLModelOccurrenceRepository(session_factory)


@pytest.fixture
def progress_repo(session_factory):
    return SQLModelProgressRepository(session_factory)


@pytest.fixture
def streak_repo(session_factory):
    return SQLModelStreakRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def task_factory(task_repo, user):
    """Factory for creating persisted tasks.

    Returns:
        Callable: Function that creates and persists Task instances
    """

    def _create_task(
        activity_name: str = "Read",
        *,
        repeat: str | None = None,
        timer: int | None = None,
        counter: int | None = None,
        deadline_date: date | None = None,
        created_at: datetime | None = None,
        owner: User | None = None,
    ) -> Task:
        owner = owner or user
        task = Task(
            user_id=owner.id,
            activity_name=activity_name,
            repeat=repeat,
            timer=timer,
            counter=counter,
            deadline_date=deadline_date,
        )
        if created_at is not None:
            task.created_at = created_at
        return task_repo.create(task)

    return _create_task


@pytest.fixture
def progress_factory(progress_repo):
    """Factory appending progress events to the ledger.

    ``at`` accepts a datetime (naive means UTC) and defaults to now.
    """

    def _log(
        task: Task,
        value: int,
        *,
        kind: ProgressKind = ProgressKind.MINUTES,
        at: datetime | None = None,
    ) -> ProgressEvent:
        if at is None:
            at = datetime.now(timezone.utc)
        elif at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        return progress_repo.append(
            ProgressEvent(task_id=task.id, user_id=task.user_id, kind=kind.value, value=value, at=at)
        )

    return _log


# =============================================================================
# Flask application
# =============================================================================


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Application built with the testing config and an isolated data dir."""
    monkeypatch.setenv("TRACKSAGE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("TRACKSAGE_DATABASE_URL", raising=False)
    monkeypatch.delenv("TRACKSAGE_TIMEZONE", raising=False)
    monkeypatch.setenv("TRACKSAGE_DEV_MODE", "true")

    from tracksage import create_app

    flask_app = create_app("testing")
    ctx = flask_app.extensions["tracksage"]
    with ctx.session_factory() as session:
        row = User(username="api-user")
        session.add(row)
        session.commit()
        session.refresh(row)
        flask_app.config["TEST_USER_ID"] = row.id

    yield flask_app

    ctx.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """Headers identifying the test user to the JSON routes."""
    return {"X-User-Id": str(app.config["TEST_USER_ID"])}

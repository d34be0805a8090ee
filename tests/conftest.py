"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
Every test gets its own users, so tests never share streak state.
"""
import os
from datetime import date, datetime, timezone

SQLITE_URL = "sqlite:///./test_streak_engine.db"
os.environ.setdefault("DATABASE_URL", SQLITE_URL)
os.environ.setdefault("DEFAULT_TIMEZONE", "UTC")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from streak_engine.db.base import Base, get_db
from streak_engine.main import app
from streak_engine.models import User
from streak_engine.services.notifications import get_notifier
from streak_engine.services.streak_lifecycle import ensure_streak_if_committed

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Commitment instant used by most scenarios: local midnight in UTC.
T0 = datetime(2026, 3, 1, 0, 0, tzinfo=timezone.utc)


class RecordingNotifier:
    def __init__(self):
        self.calls: list[tuple[int, str, str]] = []

    def notify_milestone(self, day: int, title: str, meaning: str) -> None:
        self.calls.append((day, title, meaning))


class FailingNotifier:
    def notify_milestone(self, day: int, title: str, meaning: str) -> None:
        raise RuntimeError("push service down")


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def client(db, notifier):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make(
        display_name: str = "Tester",
        timezone_key: str | None = None,
        signed_at: datetime | None = None,
        target_date: date | None = None,
    ) -> User:
        user = User(
            display_name=display_name,
            timezone=timezone_key,
            commitment_signed_at=signed_at,
            commitment_date=target_date,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture()
def user(make_user):
    """A user who has not signed the commitment."""
    return make_user()


@pytest.fixture()
def committed_user(db, make_user):
    """Signed at T0 with the first streak already ensured."""
    u = make_user(signed_at=T0)
    ensure_streak_if_committed(db, u)
    return u

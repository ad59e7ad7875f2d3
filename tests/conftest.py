"""Pytest bootstrap for project imports."""

from pathlib import Path
import os
import sys

# Settings are read at import time; give the test run a throwaway database.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SESSION_TIMEZONE", "UTC")

# Ensure project root is on sys.path so `import app` works
PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.database import Base  # noqa: E402
from app import models  # noqa: E402
from app.crud import user as user_crud  # noqa: E402
from app.models.connection import ConnectionStatus  # noqa: E402
from app.services.notification_service import NotificationChannel, PresenceRegistry  # noqa: E402


class RecordingHandle:
    """Connection handle that keeps every delivered message."""

    def __init__(self):
        self.messages = []

    def deliver(self, message: dict) -> None:
        self.messages.append(message)

    def events(self, name: str):
        return [m for m in self.messages if m.get("event") == name]


@pytest.fixture
def db_session():
    """In-memory database session"""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def channel():
    return NotificationChannel(PresenceRegistry())


@pytest.fixture
def online(channel):
    """Put a user on the channel with a recording handle."""

    def _online(user):
        handle = RecordingHandle()
        channel.connect(user.id, handle)
        handle.messages.clear()
        return handle

    return _online


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(name: str = None, email: str = None, *, teaches=(), learns=()):
        counter["n"] += 1
        n = counter["n"]
        user = models.User(
            name=name or f"User {n}",
            email=email or f"user{n}@test.edu",
            password_hash="hash",
            role="student",
            is_active=True,
        )
        db_session.add(user)
        db_session.flush()
        for entry in teaches:
            title, level = entry if isinstance(entry, tuple) else (entry, "advanced")
            skill = user_crud.get_or_create_skill(db_session, title)
            user_crud.upsert_user_skill(
                db_session,
                user_id=user.id,
                skill_id=skill.id,
                skill_type="teach",
                proficiency_level=level,
            )
        for title in learns:
            skill = user_crud.get_or_create_skill(db_session, title)
            user_crud.upsert_user_skill(
                db_session,
                user_id=user.id,
                skill_id=skill.id,
                skill_type="learn",
                proficiency_level="beginner",
            )
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def connect(db_session):
    """Create an accepted connection between two users."""

    def _connect(user_a, user_b):
        low, high = sorted((user_a.id, user_b.id))
        request = models.ConnectionRequest(
            from_user_id=user_a.id,
            to_user_id=user_b.id,
            status=ConnectionStatus.ACCEPTED.value,
            user_low_id=low,
            user_high_id=high,
        )
        db_session.add(request)
        db_session.commit()
        return request

    return _connect

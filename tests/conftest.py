"""Shared pytest fixtures."""

import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from kambaz_quizzes.api.deps import get_now
from kambaz_quizzes.db import models  # noqa: F401
from kambaz_quizzes.db.session import Base, get_db
from kambaz_quizzes.main import app
from kambaz_quizzes.schemas.user import Actor, Role

# In-memory SQLite shared across the whole run through a static pool
SQLALCHEMY_TEST_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False,
)
TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class Clock:
    """Mutable stand-in for ``get_now``."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(scope="function")
def db():
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestSession()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture(scope="function")
def client(db: Session, clock: Clock):
    """FastAPI test client with the DB and the clock overridden."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = clock

    # TrustedHostMiddleware would reject the 'testserver' host
    app.user_middleware = [m for m in app.user_middleware if "TrustedHost" not in str(m)]

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def student() -> Actor:
    return Actor(user_id=uuid.uuid4(), role=Role.STUDENT)


@pytest.fixture
def faculty() -> Actor:
    return Actor(user_id=uuid.uuid4(), role=Role.FACULTY)

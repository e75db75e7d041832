"""
Shared pytest fixtures for the AuthGate test suite.

Uses an in-memory SQLite database (one static connection shared across
threads) in place of PostgreSQL.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from authgate.config import Settings
from authgate.db.connection import build_engine
from authgate.db.models import Base
from authgate.db.store import NewUser, SqlCredentialStore
from authgate.main import create_app
from authgate.passwords import hash_password
from authgate.tokens import TokenIssuer

TEST_SECRET = "test-secret-key-for-tests-only-0123456789"
OTHER_SECRET = "a-completely-different-signing-key-9876543210"
FAST_ROUNDS = 4


class FrozenClock:
    """Callable clock for TokenIssuer whose time tests move by hand."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


class FakeSettings:
    """Minimal settings object for audit tests."""

    AUDIT_LOG_EMAILS = False


@pytest.fixture()
def settings():
    return Settings(
        JWT_SECRET_KEY=TEST_SECRET,
        DATABASE_URL="sqlite://",
        DB_AUTO_CREATE=True,
        BCRYPT_ROUNDS=FAST_ROUNDS,
        _env_file=None,
    )


@pytest.fixture()
def db_session():
    """In-memory SQLite session for unit tests."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, expire_on_commit=False)
    session = Session()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture()
def store(db_session):
    return SqlCredentialStore(db_session)


@pytest.fixture()
def clock():
    return FrozenClock()


@pytest.fixture()
def issuer():
    return TokenIssuer(TEST_SECRET)


@pytest.fixture()
def test_user(store):
    """Create and return a test user in the in-memory DB."""
    return store.create(
        NewUser(
            name="Test User",
            email="test@example.com",
            password_hash=hash_password("TestPass123!", rounds=FAST_ROUNDS),
        )
    )


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client

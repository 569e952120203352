"""
Test configuration and fixtures for Gatehouse.

Implements the transaction rollback pattern:
- Session-scoped database engine
- Function-scoped transactional session with automatic rollback
- TestClient with database dependency override
- Authenticated client fixtures
"""

import os
from typing import Generator
from datetime import datetime, timedelta, timezone
import secrets

# Keep importing the app from requiring a live PostgreSQL server
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gatehouse.config import settings
from gatehouse.database import Base, get_db
from gatehouse.main import app
from gatehouse.models import User, Session as UserSession


# =============================================================================
# Database Fixtures
# =============================================================================


def get_test_database_url() -> str:
    """
    Get the test database URL.

    TEST_DATABASE_URL points the suite at a real PostgreSQL database; otherwise
    an in-memory SQLite database is used. Each test runs in a transaction that
    is rolled back afterwards, so no test data persists either way.
    """
    return os.environ.get("TEST_DATABASE_URL", "sqlite://")


@pytest.fixture(scope="session")
def test_engine():
    """Engine shared by the whole run, with the users and sessions tables."""
    database_url = get_test_database_url()

    if database_url.startswith("sqlite"):
        # One shared connection, usable from the TestClient's worker thread
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(database_url)

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(test_engine) -> Generator[Session, None, None]:
    """
    Session bound to an outer transaction that is rolled back after the test.

    Commits made by the code under test (login, logout, purge) leave the
    outer transaction open, so nothing written here outlives the test.
    """
    connection = test_engine.connect()
    transaction = connection.begin()

    TestingSessionLocal = sessionmaker(bind=connection)
    session = TestingSessionLocal()

    # Reopen a savepoint whenever the code under test commits
    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(session, transaction):
        if transaction.nested and not transaction._parent.nested:
            session.begin_nested()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


# =============================================================================
# TestClient Fixtures
# =============================================================================


def _override_db(db: Session):
    def override_get_db():
        try:
            yield db
        finally:
            pass  # closed by the db fixture

    return override_get_db


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """Anonymous client that talks to the app through the test transaction."""
    app.dependency_overrides[get_db] = _override_db(db)

    with TestClient(app) as test_client:
        # Set default Referer so CSRF Origin middleware allows requests
        test_client.headers["referer"] = "http://testserver/"
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Authentication Fixtures
# =============================================================================


@pytest.fixture
def test_user(db: Session) -> User:
    """User "testuser" with password "testpassword123"."""
    import bcrypt

    password_hash = bcrypt.hashpw(
        "testpassword123".encode("utf-8"), bcrypt.gensalt()
    ).decode("utf-8")

    user = User(username="testuser", password_hash=password_hash)
    db.add(user)
    db.flush()
    return user


@pytest.fixture
def test_session(db: Session, test_user: User) -> UserSession:
    """Thirty-day session for ``test_user``."""
    session = UserSession(
        id=secrets.token_urlsafe(32),
        user_id=test_user.id,
        expires_at=datetime.now(timezone.utc) + timedelta(days=30),
        user_agent="pytest-test-client",
        ip_address="127.0.0.1",
    )
    db.add(session)
    db.flush()
    return session


@pytest.fixture
def auth_client(
    db: Session, test_session: UserSession
) -> Generator[TestClient, None, None]:
    """Client carrying the auth_session cookie of ``test_session``."""
    app.dependency_overrides[get_db] = _override_db(db)

    with TestClient(app) as test_client:
        test_client.cookies.set(settings.session_cookie_name, test_session.id)
        # Set default Referer so CSRF Origin middleware allows requests
        test_client.headers["referer"] = "http://testserver/"
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# pytest markers
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "security: marks tests as security tests (deselect with '-m not security')",
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")

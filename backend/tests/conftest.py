"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["CORS_ORIGINS"] = '["http://localhost:3000"]'
os.environ["ADMIN_EMAIL"] = "admin@test.com"
os.environ["ADMIN_PASSWORD"] = "TestAdmin123!"
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.pop("SENTRY_DSN", None)

from authentication.auth import create_access_token, get_password_hash  # noqa: E402
from repositories.database import Base, get_db  # noqa: E402
import repositories.db_models as db_models  # noqa: E402

# Test database engine (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh in-memory database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session."""
    return db_session


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with overridden database dependency."""
    from main import app
    from helpers.rate_limiter import limiter

    # Reset rate limiter storage before each test to prevent rate limit errors
    limiter.reset()

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _make_user(db_session, email: str, username: str, **kwargs) -> db_models.User:
    user = db_models.User(
        email=email,
        username=username,
        display_name=username.title(),
        hashed_password=get_password_hash(kwargs.pop("password", "password123")),
        is_active=kwargs.pop("is_active", True),
        is_global_admin=kwargs.pop("is_global_admin", False),
        **kwargs,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def test_user(db_session) -> db_models.User:
    """Create a test user."""
    return _make_user(
        db_session, "test@example.com", "testuser", password="testpassword123"
    )


@pytest.fixture
def other_user(db_session) -> db_models.User:
    """Create another test user (for permission tests)."""
    return _make_user(
        db_session, "other@example.com", "otheruser", password="otherpassword123"
    )


@pytest.fixture
def admin_user(db_session) -> db_models.User:
    """Create a global admin user."""
    return _make_user(
        db_session,
        "admin@example.com",
        "adminuser",
        password="adminpassword123",
        is_global_admin=True,
    )


@pytest.fixture
def test_book(db_session) -> db_models.Book:
    """Create a finished series with known chapter and volume counts."""
    book = db_models.Book(title="Test Manga", type="manga", chapters=100, volumes=10)
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def ongoing_book(db_session) -> db_models.Book:
    """Create an ongoing series (chapter and volume counts unknown)."""
    book = db_models.Book(title="Ongoing Manhwa", type="manhwa")
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def tracking(db_session, test_user, test_book) -> db_models.BookTracking:
    """Put test_book in test_user's library as plan to read."""
    entry = db_models.BookTracking(
        user_id=test_user.id,
        book_id=test_book.id,
        status=db_models.TrackingStatus.PLAN_TO_READ,
    )
    db_session.add(entry)
    db_session.commit()
    db_session.refresh(entry)
    return entry


@pytest.fixture
def auth_headers(test_user) -> dict:
    """Get authentication headers for test user."""
    token = create_access_token(data={"sub": test_user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_auth_headers(admin_user) -> dict:
    """Get authentication headers for admin user."""
    token = create_access_token(data={"sub": admin_user.email})
    return {"Authorization": f"Bearer {token}"}

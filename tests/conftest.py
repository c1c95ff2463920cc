"""
Pytest configuration and fixtures for Postline API tests.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from postline.auth import create_tokens, get_password_hash
from postline.database import Database
from postline.limiter import limiter
from postline.main import create_app
from postline.models.post import Post
from postline.models.user import User
from postline.services.scheduled_posts import ScheduledPostStore
from postline.timeutils import utcnow

# Disable rate limiting for tests
limiter.enabled = False


@pytest.fixture(scope="function")
def database():
    """Fresh in-memory database for each test, shared across sessions."""
    database = Database("sqlite:///:memory:", poolclass=StaticPool)
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture(scope="function")
def db(database):
    """Session for seeding and inspecting data."""
    session = database.session()
    yield session
    session.close()


@pytest.fixture(scope="function")
def app(database):
    return create_app(database=database, start_scheduler=False)


@pytest.fixture(scope="function")
def client(app):
    """Create a test client."""
    with TestClient(app) as c:
        yield c


def _make_user(db, email: str, password: str, display_name: str) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        display_name=display_name,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def test_user(db):
    """Create a test user."""
    return _make_user(db, "test@example.com", "testpassword123", "Test User")


@pytest.fixture(scope="function")
def other_user(db):
    """A second user who must never see test_user's records."""
    return _make_user(db, "other@example.com", "otherpassword123", "Other User")


def bearer(user: User) -> dict:
    access_token, _ = create_tokens(user.id)
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture(scope="function")
def auth_headers(test_user):
    """Get auth headers for the test user."""
    return bearer(test_user)


@pytest.fixture(scope="function")
def other_headers(other_user):
    return bearer(other_user)


@pytest.fixture(scope="function")
def make_scheduled_post(db):
    """Factory for scheduled posts due ``minutes`` from now (negative = already due)."""
    def _make(user, minutes=-1, content="hello", **kwargs):
        return ScheduledPostStore(db).create(
            user_id=user.id,
            content=content,
            scheduled_at=utcnow() + timedelta(minutes=minutes),
            **kwargs,
        )
    return _make


@pytest.fixture(scope="function")
def count_posts(database):
    """Count live posts, optionally for one scheduled post, in a fresh session."""
    def _count(scheduled_post_id=None, user_id=None):
        query = select(func.count()).select_from(Post)
        if scheduled_post_id is not None:
            query = query.where(Post.scheduled_post_id == scheduled_post_id)
        if user_id is not None:
            query = query.where(Post.user_id == user_id)
        with database.session_scope() as session:
            return session.scalar(query)
    return _count


@pytest.fixture(scope="function")
def fetch_scheduled_post(database):
    """Re-read a scheduled post in a fresh session."""
    def _fetch(scheduled_post_id):
        with database.session_scope() as session:
            return ScheduledPostStore(session).get_by_id(scheduled_post_id)
    return _fetch

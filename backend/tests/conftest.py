"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
from datetime import timedelta
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
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["CORS_ORIGINS"] = '["http://localhost:3000"]'
os.environ["AUTO_CREATE_DB"] = "false"
os.environ.pop("SENTRY_DSN", None)

from authentication.auth import create_user_token, get_password_hash  # noqa: E402
from helpers.time_utils import utc_now  # noqa: E402
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

# bcrypt at the production cost factor makes fixture setup slow
TEST_PASSWORD_HASH = get_password_hash("password123")


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
    from helpers.rate_limiter import limiter
    from main import app

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


def _make_user(db_session, **fields) -> db_models.User:
    fields.setdefault("hashed_password", TEST_PASSWORD_HASH)
    user = db_models.User(**fields)
    user.badges.append(db_models.UserBadge(badge_type=db_models.MembershipTier.BRONZE))
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def test_user(db_session) -> db_models.User:
    """Create a bronze member."""
    return _make_user(db_session, name="Test User", email="test@example.com")


@pytest.fixture
def other_user(db_session) -> db_models.User:
    """Create a second bronze member."""
    return _make_user(db_session, name="Other User", email="other@example.com")


@pytest.fixture
def admin_user(db_session) -> db_models.User:
    """Create an admin."""
    return _make_user(
        db_session,
        name="Admin User",
        email="admin@example.com",
        role=db_models.UserRole.ADMIN,
    )


@pytest.fixture
def gold_user(db_session) -> db_models.User:
    """Create a member whose gold membership runs for another 30 days."""
    user = _make_user(
        db_session,
        name="Gold User",
        email="gold@example.com",
        membership=db_models.MembershipTier.GOLD,
        membership_expiry=utc_now() + timedelta(days=30),
    )
    user.badges.append(db_models.UserBadge(badge_type=db_models.MembershipTier.GOLD))
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def make_post(db_session):
    """Factory fixture to create posts directly in the database."""

    def _make_post(
        author: db_models.User,
        title: str = "Test Post",
        tags: tuple[str, ...] = ("python",),
        visibility: db_models.PostVisibility = db_models.PostVisibility.PUBLIC,
        **fields,
    ) -> db_models.Post:
        post = db_models.Post(
            title=title,
            description=fields.pop("description", "A post used in tests"),
            author_id=author.id,
            visibility=visibility,
            post_tags=[
                db_models.PostTag(name=name, position=i) for i, name in enumerate(tags)
            ],
            **fields,
        )
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make_post


@pytest.fixture
def test_post(make_post, test_user) -> db_models.Post:
    """A public post by test_user tagged python and fastapi."""
    return make_post(test_user, title="Hello Forum", tags=("python", "fastapi"))


@pytest.fixture
def private_post(make_post, test_user) -> db_models.Post:
    return make_post(
        test_user, title="Private Notes", visibility=db_models.PostVisibility.PRIVATE
    )


@pytest.fixture
def test_comment(db_session, test_post, other_user) -> db_models.Comment:
    """A comment by other_user on test_post."""
    comment = db_models.Comment(
        post_id=test_post.id, author_id=other_user.id, content="Nice post!"
    )
    db_session.add(comment)
    db_session.commit()
    db_session.refresh(comment)
    return comment


@pytest.fixture
def test_tag(db_session, admin_user) -> db_models.Tag:
    """A registered tag named python with no usage yet."""
    tag = db_models.Tag(
        name="python",
        display_name="Python",
        description="The Python language",
        created_by=admin_user.id,
    )
    db_session.add(tag)
    db_session.commit()
    db_session.refresh(tag)
    return tag


@pytest.fixture
def make_announcement(db_session, admin_user):
    """Factory fixture to create announcements directly in the database."""

    def _make_announcement(title: str = "Welcome", **fields) -> db_models.Announcement:
        announcement = db_models.Announcement(
            title=title,
            description=fields.pop("description", "An announcement used in tests"),
            author_id=admin_user.id,
            **fields,
        )
        db_session.add(announcement)
        db_session.commit()
        db_session.refresh(announcement)
        return announcement

    return _make_announcement


def _headers(user: db_models.User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def auth_headers(test_user) -> dict:
    return _headers(test_user)


@pytest.fixture
def other_auth_headers(other_user) -> dict:
    return _headers(other_user)


@pytest.fixture
def admin_auth_headers(admin_user) -> dict:
    return _headers(admin_user)


@pytest.fixture
def gold_auth_headers(gold_user) -> dict:
    return _headers(gold_user)

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
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RECONCILIATION_ENABLED"] = "false"

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

# Hashing once keeps user factories fast
TEST_PASSWORD = "testpassword123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


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


@pytest.fixture
def make_user(db_session):
    """Factory fixture creating users."""

    def _make_user(
        handle: str,
        is_enrolled: bool = True,
        profile_visibility: str = db_models.ProfileVisibility.CLUB_MEMBERS.value,
        is_active: bool = True,
    ) -> db_models.User:
        user = db_models.User(
            email=f"{handle}@club.example.edu",
            unique_id=handle,
            name=handle.replace("_", " ").title(),
            hashed_password=TEST_PASSWORD_HASH,
            is_enrolled=is_enrolled,
            is_active=is_active,
            profile_visibility=profile_visibility,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def test_user(make_user) -> db_models.User:
    """Enrolled club member."""
    return make_user("test_user")


@pytest.fixture
def other_user(make_user) -> db_models.User:
    """A second enrolled club member."""
    return make_user("other_user")


@pytest.fixture
def guest_user(make_user) -> db_models.User:
    """Registered user who is not on the club roster."""
    return make_user("guest_user", is_enrolled=False)


def bearer_headers(user: db_models.User) -> dict:
    token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Build bearer headers for any user."""
    return bearer_headers


@pytest.fixture
def auth_headers(test_user) -> dict:
    """Get authentication headers for test user."""
    return bearer_headers(test_user)


@pytest.fixture
def other_auth_headers(other_user) -> dict:
    return bearer_headers(other_user)


@pytest.fixture
def guest_auth_headers(guest_user) -> dict:
    return bearer_headers(guest_user)


@pytest.fixture
def make_content(db_session):
    """Factory fixture creating content items of any type."""

    def _make_content(
        author: db_models.User,
        content_type: db_models.ContentType = db_models.ContentType.NEWS,
        visibility: str = db_models.Visibility.PUBLIC.value,
        **fields,
    ):
        if content_type == db_models.ContentType.NEWS:
            item = db_models.News(title=fields.pop("title", "Campus news"), **fields)
        elif content_type == db_models.ContentType.EVENT:
            item = db_models.Event(title=fields.pop("title", "Club meetup"), **fields)
        elif content_type == db_models.ContentType.RESOURCE:
            item = db_models.Resource(
                title=fields.pop("title", "Study guide"), **fields
            )
        else:
            item = db_models.SocialPost(
                content=fields.pop("content", "Hello club"), **fields
            )
        item.author_id = author.id
        item.visibility = visibility
        db_session.add(item)
        db_session.commit()
        db_session.refresh(item)
        return item

    return _make_content


@pytest.fixture
def public_news(make_content, test_user) -> db_models.News:
    """Public news item authored by test_user."""
    return make_content(test_user)


@pytest.fixture
def make_group(db_session):
    """Factory fixture creating a group with its creator as active member."""

    def _make_group(
        creator: db_models.User,
        name: str = "Robotics",
        privacy: db_models.GroupPrivacy = db_models.GroupPrivacy.PUBLIC,
    ) -> db_models.Group:
        group = db_models.Group(
            name=name, privacy=privacy, created_by=creator.id, member_count=1
        )
        db_session.add(group)
        db_session.flush()
        db_session.add(
            db_models.GroupMembership(
                group_id=group.id,
                user_id=creator.id,
                status=db_models.MembershipStatus.ACTIVE,
                role=db_models.MembershipRole.CREATOR,
                permissions=int(db_models.GroupPermission.all()),
            )
        )
        db_session.commit()
        db_session.refresh(group)
        return group

    return _make_group


@pytest.fixture
def add_member(db_session):
    """Factory fixture adding a membership row."""

    def _add_member(
        group: db_models.Group,
        user: db_models.User,
        status: db_models.MembershipStatus = db_models.MembershipStatus.ACTIVE,
        role: db_models.MembershipRole = db_models.MembershipRole.MEMBER,
        permissions: db_models.GroupPermission | None = None,
    ) -> db_models.GroupMembership:
        if permissions is None:
            permissions = db_models.GroupPermission.for_role(role)
        membership = db_models.GroupMembership(
            group_id=group.id,
            user_id=user.id,
            status=status,
            role=role,
            permissions=int(permissions),
        )
        db_session.add(membership)
        if status == db_models.MembershipStatus.ACTIVE:
            group.member_count += 1
        db_session.commit()
        db_session.refresh(membership)
        return membership

    return _add_member


@pytest.fixture
def make_follow(db_session):
    """Factory fixture creating a relationship edge directly."""

    def _make_follow(
        follower: db_models.User,
        following: db_models.User,
        status: db_models.FollowStatus = db_models.FollowStatus.ACCEPTED,
    ) -> db_models.Follow:
        edge = db_models.Follow(
            follower_id=follower.id, following_id=following.id, status=status
        )
        db_session.add(edge)
        db_session.commit()
        db_session.refresh(edge)
        return edge

    return _make_follow

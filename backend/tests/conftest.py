"""Test configuration and fixtures for the friendships backend tests."""

import os
import sys
import pathlib

import pytest
from sqlmodel import Session, create_engine
from sqlmodel.pool import StaticPool

BACKEND_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Set test environment before importing backend modules
os.environ["TESTING_MODE"] = "True"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["FRIENDSHIPS_TABLE"] = "friendships"
os.environ["FRIENDSHIP_GROUPS_TABLE"] = "user_friendship_groups"
os.environ["FRIENDSHIP_GROUPS"] = "acquaintances=0,close_friends=1,family=2"
os.environ["NOTIFY_NOOP_TRANSITIONS"] = "True"

GROUPS = {"acquaintances": 0, "close_friends": 1, "family": 2}


@pytest.fixture(autouse=True)
def test_engine():
    """A fresh in-memory database for every test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    from models.common import create_tables

    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def test_session(test_engine):
    """Create a test database session."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture
def make_users(test_session):
    """Factory creating n users with ids u1, u2, ... (continuing across calls)."""
    from models.user import User

    created = []

    def _make(n: int = 1) -> list[User]:
        users = []
        for _ in range(n):
            index = len(created) + 1
            user = User(
                id=f"u{index}",
                name=f"User {index}",
                email=f"user{index}@example.com",
                username=f"user{index}",
            )
            test_session.add(user)
            created.append(user)
            users.append(user)
        test_session.commit()
        return users

    return _make


@pytest.fixture
def received_events():
    return []


@pytest.fixture
def dispatcher(received_events):
    from services.events import EventDispatcher

    def record(event, actor, target):
        received_events.append((event, actor.id, target.id))

    return EventDispatcher(record)


@pytest.fixture
def service(test_session, dispatcher):
    from services.friendship import FriendshipService

    return FriendshipService(test_session, groups=GROUPS, events=dispatcher)


@pytest.fixture
def befriended(service):
    """Make a and b friends: a sends, b accepts."""

    def _befriend(a, b):
        assert service.befriend(a, b)
        assert service.accept_friend_request(b, a) == 1

    return _befriend

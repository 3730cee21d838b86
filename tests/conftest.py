# tests/conftest.py
import os

# Must be set before progressly.db.session builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from progressly.db.base import Base
from progressly.db.session import enable_sqlite_foreign_keys, get_db
from progressly.main import app
from progressly.models import Subscription, User
from progressly.utils.auth import create_access_token

# In-memory SQLite shared by every connection for the duration of a test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session() -> Session:
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """TestClient whose requests share the test's session."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(email=None, role="user", name=None):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            name=name or f"User {counter['n']}",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user(email="creator@example.com", name="Creator")


@pytest.fixture
def other_user(make_user):
    return make_user(email="other@example.com", name="Other")


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role="admin", name="Admin")


@pytest.fixture
def subscribe(db_session):
    """Give a user a live paid subscription on the given tier."""
    def _subscribe(user, tier, days=30):
        subscription = Subscription(
            user_id=user.id,
            plan_tier=tier,
            status="active",
            stripe_price_id=f"price_{tier}",
            current_period_end=datetime.utcnow() + timedelta(days=days),
        )
        db_session.add(subscription)
        db_session.commit()
        return subscription

    return _subscribe


def auth_headers(user) -> dict:
    token = create_access_token({"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers

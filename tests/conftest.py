"""Pytest configuration and fixtures"""
import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from masterlist.database import Base, get_db
from masterlist.main import app
from masterlist.models.user import User
from masterlist.utils.activity import change_feed
from masterlist.utils.credentials import CredentialStore
from masterlist.utils.jwt_utils import create_session_token

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_PASSWORD = "admin-pass-123"
MODERATOR_PASSWORD = "mod-pass-123"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_change_feed():
    change_feed.clear()
    yield
    change_feed.clear()


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database session override"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db: Session, **overrides) -> User:
    record = {
        "email": "someone@example.com",
        "username": "someone",
        "password": "password-123",
        "role": "moderator",
        "active": True,
    }
    record.update(overrides)
    store = CredentialStore(db)
    return store.find_by_uid(store.insert(record))


def bearer(user: User) -> dict:
    token, _ = create_session_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_user(db: Session) -> User:
    return make_user(
        db, email="admin@example.com", username="admin", password=ADMIN_PASSWORD, role="administrator"
    )


@pytest.fixture
def moderator_user(db: Session) -> User:
    return make_user(
        db, email="mod@example.com", username="mod", password=MODERATOR_PASSWORD, role="moderator"
    )


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    """Bearer headers for an administrator session"""
    return bearer(admin_user)


@pytest.fixture
def moderator_headers(moderator_user: User) -> dict:
    """Bearer headers for a moderator session"""
    return bearer(moderator_user)


@pytest.fixture
def key_headers() -> dict:
    """Control-plane key headers for the flag endpoints"""
    return {"X-Admin-Key": os.getenv("ADMIN_API_KEY", "admin-secret-key-change-in-production")}


@pytest.fixture
def sample_character() -> dict:
    return {
        "masterlist_number": "ML-001",
        "owner": "alice",
        "artist": "bob",
        "primary_biome": "Forest",
        "rarity": "Common",
        "status": "Owned",
        "image_url": "https://drive.google.com/file/d/abc/view",
    }

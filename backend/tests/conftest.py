"""Shared test fixtures for the Atelier backend test suite.

Tests run against a throwaway SQLite file. Every test starts from freshly
created tables, and MEDIA_ROOT points at the test's tmp_path so uploaded
payloads never leave the sandbox.
"""

import os
import tempfile

# Force auth off and use the test database before any app imports.
_TEST_DB = os.path.join(tempfile.mkdtemp(prefix="atelier-tests-"), "test.db")
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", f"sqlite:///{_TEST_DB}")
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient

from atelier.database import Base, get_db, engine, SessionLocal
from atelier.main import app
from atelier.core.auth import AuthContext
from atelier.core.token_factory import create_token
from atelier.core.config import settings
from atelier.middleware.request_context import rate_limiter
from atelier.services.storage import LocalMediaStorage

ADMIN = AuthContext(user_id="test-admin", role="admin")


@pytest.fixture(autouse=True)
def _clean_tables():
    """Recreate every table before each test for isolation."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def media_root(tmp_path, monkeypatch):
    root = tmp_path / "media"
    monkeypatch.setattr(settings, "media_root", str(root))
    return root


@pytest.fixture()
def storage(media_root) -> LocalMediaStorage:
    return LocalMediaStorage(media_root)


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    rate_limiter.reset()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers() -> dict:
    """Valid admin JWT headers (used when auth is enabled)."""
    token = create_token(
        subject="test-user",
        role="admin",
        secret=settings.jwt_secret_key,
    )
    return {"Authorization": f"Bearer {token}"}


def make_category(name: str = "Technology", **overrides) -> dict:
    """Factory for category creation payloads."""
    payload = {"name": name}
    payload.update(overrides)
    return payload


def create_category(client, name: str = "Technology", **overrides) -> dict:
    resp = client.post("/api/categories", json=make_category(name, **overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_folder(client, name: str, parent_id=None) -> dict:
    resp = client.post("/api/media/folders", json={"name": name, "parent_id": parent_id})
    assert resp.status_code == 201, resp.text
    return resp.json()


def upload_file(client, name: str = "photo.jpg", content: bytes = b"jpeg-bytes",
                mime: str = "image/jpeg", folder_id=None) -> dict:
    data = {"folder_id": str(folder_id)} if folder_id is not None else {}
    resp = client.post("/api/media", files={"file": (name, content, mime)}, data=data)
    assert resp.status_code == 201, resp.text
    return resp.json()

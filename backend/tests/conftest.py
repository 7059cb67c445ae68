"""Pytest fixtures — a temporary SQLite database and a small catalog per test."""
import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from eventgate.config import Settings
from eventgate.database import Base, make_engine, make_session_factory
from eventgate.main import create_app
from eventgate.services.rsvp_store import RSVPStore

# Import all models so they register with Base.metadata
from eventgate.models.rsvp import RSVP  # noqa: F401

TEST_SECRET = "test-signing-secret-that-is-long-enough-for-hs256"

TEST_EVENTS = [
    {
        "id": "midnight-gala",
        "title": "Midnight Gala",
        "date": "2024-09-15",
        "time": "23:00",
        "location": "The Obsidian Ballroom",
        "theme": "theme",
        "password": "shadows",
        "description": "Shadows dance with light.",
    },
    {
        "id": "golden-circle",
        "title": "The Golden Circle",
        "date": "2024-10-01",
        "time": "20:00",
        "location": "Private Residence",
        "theme": "theme",
        "password": "midas",
    },
]


@pytest.fixture(scope="function")
def catalog_file(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(json.dumps(TEST_EVENTS), encoding="utf-8")
    return path


@pytest.fixture(scope="function")
def settings(tmp_path, catalog_file):
    """Settings for a throwaway SQLite file, cheap bcrypt and no login delay."""
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        JWT_SECRET=TEST_SECRET,
        BCRYPT_ROUNDS=4,
        FAILED_LOGIN_DELAY_SECONDS=0,
        EVENT_CATALOG_PATH=str(catalog_file),
    )


@pytest.fixture(scope="function")
def db_engine(settings):
    """Create a fresh SQLite engine for each test."""
    engine = make_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine) -> Session:
    session = make_session_factory(db_engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def store(db) -> RSVPStore:
    return RSVPStore(db)


@pytest.fixture(scope="function")
def app(settings):
    return create_app(settings, configure_logging=False)


@pytest.fixture(scope="function")
def client(app):
    """TestClient running the app lifespan (creates the SQLite tables)."""
    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def submit_rsvp(client: TestClient, event_id: str, guest_name: str, status: str, **kwargs) -> dict:
    """Helper — POST /api/rsvp and return response JSON."""
    resp = client.post("/api/rsvp", json={
        "eventId": event_id,
        "guestName": guest_name,
        "status": status,
    }, **kwargs)
    assert resp.status_code == 200, resp.text
    return resp.json()


def login(client: TestClient, password: str = "shadows") -> dict:
    """Helper — POST /api/auth/login and return response JSON."""
    resp = client.post("/api/auth/login", json={"password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()

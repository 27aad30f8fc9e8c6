"""Pytest fixtures — throw-away SQLite database for fast, isolated tests."""
import os
from datetime import datetime, timedelta

SQLITE_URL = "sqlite:///./test.db"

# Must be set before the app (and its engine) is imported.
os.environ["DATABASE_URL"] = SQLITE_URL
os.environ["ARCHIVAL_SWEEP_ENABLED"] = "false"

import pytest  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from groupride.database import Base, get_db  # noqa: E402
from groupride.main import app  # noqa: E402

# Import all models so they register with Base.metadata
from groupride.models.user import User                    # noqa: F401,E402
from groupride.models.ride import Ride                    # noqa: F401,E402
from groupride.models.participant import RideParticipant  # noqa: F401,E402
from groupride.models.comment import RideComment          # noqa: F401,E402


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: create users and rides via the API, return the JSON response dict
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, username: str = "rider", is_admin: bool = False) -> dict:
    """Helper — POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={"username": username, "is_admin": is_admin})
    assert resp.status_code == 201, resp.text
    return resp.json()


def ride_payload(owner_id: str, date_time=None, **overrides) -> dict:
    """A valid ride creation body; ``overrides`` replace or add fields."""
    if date_time is None:
        date_time = datetime.now() + timedelta(days=3)
    payload = {
        "title": "Saturday Hains Point Loop",
        "dateTime": date_time.isoformat() if isinstance(date_time, datetime) else date_time,
        "distance": 30,
        "difficulty": "C",
        "maxRiders": 10,
        "ownerId": owner_id,
        "address": "Dupont Circle, Washington DC",
        "latitude": 38.9096,
        "longitude": -77.0434,
        "rideType": "ROAD",
        "pace": 16.5,
        "terrain": "FLAT",
        "route_url": "https://ridewithgps.com/routes/123",
        "description": "No-drop social pace.",
    }
    payload.update(overrides)
    return payload


def create_test_ride(client: TestClient, owner_id: str, **overrides) -> dict:
    """Helper — POST /api/rides and return response JSON."""
    resp = client.post("/api/rides/", json=ride_payload(owner_id, **overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()

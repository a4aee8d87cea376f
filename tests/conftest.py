"""Shared test fixtures."""
import os

os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient

from drs_care.config import Settings
from drs_care.logging_config import setup_structured_logging
from drs_care.store import RecordStore

SENDER = "clinic@drscare.test"


class RecordingTransport:
    """Mail transport that keeps every message it is given."""

    def __init__(self):
        self.sent = []

    def send(self, message):
        self.sent.append(message)


@pytest.fixture(scope="session", autouse=True)
def structured_logging():
    setup_structured_logging(log_level="DEBUG")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite:///:memory:",
        access_token_secret="test-secret",
        sender_email=SENDER,
    )


@pytest.fixture
def store():
    """RecordStore with in-memory database."""
    record_store = RecordStore(database_url="sqlite:///:memory:")
    yield record_store
    record_store.close()


@pytest.fixture
def seeded_store(store):
    store.add_service("Cleaning", ["9am", "10am"])
    store.add_service("Cavity Protection", ["9am", "10am", "11am"])
    return store


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def client(settings, seeded_store, transport):
    """FastAPI test client wired to the in-memory store."""
    from drs_care.api_server import create_app

    app = create_app(settings=settings, store=seeded_store, transport=transport)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_header(client):
    """Build an Authorization header for an email using the app's token service."""
    def _header(email: str) -> dict:
        token = client.app.state.token_service.issue(email)
        return {"Authorization": f"Bearer {token}"}
    return _header


@pytest.fixture
def admin_email(seeded_store):
    email = "admin@drscare.test"
    seeded_store.upsert_user(email, {"name": "Admin"})
    seeded_store.set_user_role(email, "admin")
    return email

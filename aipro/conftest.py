# aipro/conftest.py
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from aipro.core.config import Settings
from aipro.core.container import build_services
from aipro.core.store import RecordStore
from aipro.features.ai.service import AIClient
from aipro.tests.mocks import FakeGroq, FrozenClock

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass-123"
TEST_SECRET = "test-secret-key"


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Minimum bcrypt cost so registration-heavy tests stay quick."""
    monkeypatch.setattr("aipro.features.users.service.BCRYPT_ROUNDS", 4)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    """In-memory record store, fresh per test."""
    record_store = RecordStore.open("sqlite://")
    yield record_store
    record_store.close()


@pytest.fixture
def file_store(tmp_path):
    """File-backed record store for tests that touch it from many threads."""
    record_store = RecordStore.open(f"sqlite:///{tmp_path / 'records.db'}")
    yield record_store
    record_store.close()


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        ENV="test",
        GROQ_API_KEY=None,
        AUTH_SECRET_KEY=TEST_SECRET,
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
    )


@pytest.fixture
def fake_groq():
    return FakeGroq()


@pytest.fixture
def services(test_settings, store, clock, fake_groq):
    return build_services(
        settings_obj=test_settings,
        store=store,
        clock=clock,
        ai=AIClient("gsk_test", client=fake_groq),
    )


@pytest.fixture
def client(services):
    from aipro.main import create_app

    with TestClient(create_app(services)) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register a user over HTTP and return (user json, auth headers)."""

    def _register(email: str = "alice@example.com", password: str = "secret123", username: str = "alice"):
        resp = client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return body["user"], {"Authorization": f"Bearer {body['access_token']}"}

    return _register


@pytest.fixture
def admin_headers(client):
    resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}

"""
tests/conftest.py -- Shared test fixtures for Roster unit and integration tests.

This module provides:
  - db / directory / clock / sessions / auth_service / mail: unit-level
    fixtures over a private per-test SQLite file
  - api_client: TestClient over the real app with a patched lifespan

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs the app on a different thread than the
test. Plain :memory: DBs are per-connection and would present a blank schema
to that thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

BCRYPT_ROUNDS must be set before any auth module import: auth.credentials
hashes its timing dummy at import time using the cached settings.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta

# CRITICAL: set before any auth/core import so get_settings() picks them up.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SESSION_SWEEP_INTERVAL_SECONDS", "0")

import pytest
from fastapi.testclient import TestClient

from api.main import app, build_services
from auth.directory import UserDirectory
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import Database
from tests.factories import FakeClock, FakeMailChannel, make_user

# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db(tmp_path) -> Generator[Database, None, None]:
    # A file, not :memory:, because the invitation service and action handlers
    # reach the store from worker threads, and :memory: is per-connection.
    database = Database(f"sqlite:///{tmp_path / 'roster.db'}")
    yield database
    database.close()


@pytest.fixture
def directory(db: Database) -> UserDirectory:
    return UserDirectory(db)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sessions(db: Database, clock: FakeClock) -> SessionStore:
    return SessionStore(db, timeout=timedelta(hours=24), clock=clock)


@pytest.fixture
def auth_service(directory: UserDirectory, sessions: SessionStore) -> AuthService:
    return AuthService(directory, sessions)


@pytest.fixture
def mail() -> FakeMailChannel:
    return FakeMailChannel()


# ---------------------------------------------------------------------------
# API fixture -- one TestClient per test module
# ---------------------------------------------------------------------------


@dataclass
class ApiHarness:
    client: TestClient
    token: str
    mail: FakeMailChannel
    db: Database

    def call(self, action: str, **params) -> dict:
        """POST a form-encoded action and return the decoded envelope."""
        resp = self.client.post("/api/v1/exec", data={"action": action, **params})
        assert resp.status_code == 200, resp.text
        return resp.json()


def _patch_lifespan(db: Database, mail: FakeMailChannel):
    """Return a lifespan that wires the test database and fake mail into app.state.

    No sweep task is started; tests that need a sweep call it directly.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        build_services(app, db)
        app.state.invitation_service.mail = mail
        app.state.sweep_task = None
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness with a client, an admin session token and the fake mail channel.

    The admin user is "testadmin" / "Testpass123" (active). Each test module
    gets its own named in-memory database.
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    database = Database(f"sqlite:///file:roster_{suffix}?mode=memory&cache=shared&uri=true")
    mail = FakeMailChannel()

    make_user(
        UserDirectory(database),
        username="testadmin",
        password="Testpass123",
        email="admin@example.com",
        role="admin",
        full_name="Test Admin",
    )
    token = SessionStore(database).create("admin-token-0001", "testadmin").token

    app.router.lifespan_context = _patch_lifespan(database, mail)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(client=client, token=token, mail=mail, db=database)

    database.close()

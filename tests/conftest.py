"""
tests/conftest.py -- Shared test fixtures for the irrigation account API.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + activity
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - stores: (user_store, activity_store) for service-level tests
  - api_client: TestClient over the real app with isolated stores

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

DEBUG must be set before any auth/core import so get_settings() auto-generates
SECRET_KEY in dev mode instead of raising ValueError. LOGIN_RATE_LIMIT is
raised so the suite's many logins never trip the per-IP limiter.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from activity.store import ActivityStore
from api.main import app
from auth.store import UserStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, ActivityStore]:
    """Create isolated named shared-memory SQLite stores.

    Both stores share one in-memory database, as they share DATABASE_URL in
    production. db_suffix keeps separate fixtures from seeing each other's rows.
    """
    url = f"sqlite:///file:test_irrigation_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(url), ActivityStore(url)


def _patch_lifespan(user_store: UserStore, activity_store: ActivityStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.activity_store = activity_store
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[tuple[UserStore, ActivityStore], None, None]:
    """Fresh (user_store, activity_store) pair per test."""
    user_store, activity_store = _make_test_stores(uuid.uuid4().hex)
    yield user_store, activity_store
    activity_store.close()
    user_store.close()


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """TestClient over the real app with module-scoped isolated stores.

    Tests that register accounts should use unique emails (see unique_email)
    since the database lives for the whole module.
    """
    user_store, activity_store = _make_test_stores(uuid.uuid4().hex)
    app.router.lifespan_context = _patch_lifespan(user_store, activity_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    activity_store.close()
    user_store.close()


@pytest.fixture
def unique_email() -> str:
    return f"user-{uuid.uuid4().hex[:12]}@example.com"


@pytest.fixture
def register_and_login(api_client: TestClient):
    """Return a helper that registers an account via the API and returns its bearer token."""

    def _register_and_login(email: str, password: str = "pw1-secret") -> str:
        resp = api_client.post("/api/auth/register", json={"email": email, "password": password})
        assert resp.status_code == 201, resp.text
        resp = api_client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["token"]

    return _register_and_login

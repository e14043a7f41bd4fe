"""
tests/conftest.py -- Shared test fixtures for PolicyLab.

This module provides:
  - make_auth_service(): a fully wired AuthService over an isolated in-memory DB
  - db_url: function-scoped isolated database URL
  - service: function-scoped AuthService for unit tests
  - api_client: TestClient with a registered user and a bearer token

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
TestClient fixture because TestClient runs sync route handlers in a thread
pool. Plain :memory: DBs are per-connection and would present a blank schema
to each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

Environment must be set before any core/api import:
  DEBUG=true          -- get_settings() auto-generates SECRET_KEY
  BCRYPT_ROUNDS=4     -- minimum bcrypt cost keeps the suite fast
  *_RATE_LIMIT        -- high limits so the suite never trips the throttle
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any project import so get_settings() sees them.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("REGISTER_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app, build_auth_service
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import get_settings

TEST_SECRET_KEY = "test-signing-key-0123456789abcdef0123456789"

ALICE_IDENTITY = "alice@example.com"
ALICE_PASSWORD = "Secret123"
ALICE_NAME = "Alice"


# ---------------------------------------------------------------------------
# Service helpers
# ---------------------------------------------------------------------------


def memory_db_url(name: str) -> str:
    """Named shared-memory SQLite URL, unique per call site."""
    return f"sqlite:///file:test_auth_{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def make_auth_service(db_url: str | None = None, ttl_seconds: int = 3600) -> AuthService:
    store = UserStore(db_url or memory_db_url("unit"))
    return AuthService(
        store=store,
        hasher=PasswordHasher(rounds=4),
        issuer=TokenIssuer(secret_key=TEST_SECRET_KEY, ttl_seconds=ttl_seconds),
    )


@pytest.fixture
def db_url() -> str:
    """Isolated in-memory database URL for one test."""
    return memory_db_url("unit")


@pytest.fixture
def service(db_url) -> Generator[AuthService, None, None]:
    """Fresh AuthService with an empty store for each test."""
    svc = make_auth_service(db_url)
    yield svc
    svc.store.close()


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(settings, store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    Wires a pre-created test store into app.state so TestClient routes see an
    isolated test DB rather than the on-disk database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.user_store = store
        app.state.auth = build_auth_service(settings, store)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    Alice is registered through the API and logged in once; the returned
    token is used in Authorization headers.
    """
    settings = get_settings()
    store = UserStore(memory_db_url("api"))
    app.router.lifespan_context = _patch_lifespan(settings, store)

    # base_url must match TrustedHostMiddleware's allowed hosts.
    with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
        resp = client.post(
            "/api/v1/auth/register",
            json={"identity": ALICE_IDENTITY, "password": ALICE_PASSWORD, "display_name": ALICE_NAME},
        )
        assert resp.status_code == 201, resp.text
        uid = resp.json()["id"]
        resp = client.post("/api/v1/auth/login", json={"identity": ALICE_IDENTITY, "password": ALICE_PASSWORD})
        assert resp.status_code == 200, resp.text
        yield client, resp.json()["access_token"], uid

    store.close()

"""
tests/test_api_routes.py -- Integration tests for the auth REST routes.

These tests exercise the full stack: FastAPI routing -> bearer guard ->
AuthService -> UserStore -> response model serialization -> error envelope.

Fixtures used (from conftest.py):
  - api_client: (client, token, uid) -- alice@example.com / Secret123 is
    registered and logged in before the first test runs.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from auth.errors import StoreUnavailable
from core.config import get_settings

IDENTITY = "alice@example.com"
PASSWORD = "Secret123"


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestRegister:
    def test_register_returns_public_view(self, api_client: tuple[TestClient, str, int]) -> None:
        """POST /register returns 201 with id, identity and display_name only."""
        client, _token, _uid = api_client
        resp = client.post(
            "/api/v1/auth/register",
            json={"identity": "bob@example.com", "password": "Hunter22", "display_name": "Bob"},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert set(data) == {"id", "identity", "display_name"}
        assert data["identity"] == "bob@example.com"
        assert data["display_name"] == "Bob"

    def test_register_duplicate_conflict(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _token, _uid = api_client
        resp = client.post(
            "/api/v1/auth/register",
            json={"identity": IDENTITY, "password": "Another1", "display_name": "Impostor"},
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "duplicate_identity"

    def test_register_weak_password(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _token, _uid = api_client
        resp = client.post(
            "/api/v1/auth/register",
            json={"identity": "carol@example.com", "password": "weak", "display_name": "Carol"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_input"

    def test_register_missing_field_is_422_without_echo(self, api_client: tuple[TestClient, str, int]) -> None:
        """Body validation errors use the envelope and never echo the submitted password."""
        client, _token, _uid = api_client
        long_password = "Leak" + "9" * 300
        resp = client.post(
            "/api/v1/auth/register",
            json={"identity": "dave@example.com", "password": long_password},
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"
        assert long_password not in resp.text

    def test_register_disabled(self, api_client: tuple[TestClient, str, int], monkeypatch) -> None:
        client, _token, _uid = api_client
        disabled = client.app.state.settings.model_copy(update={"self_registration_enabled": False})
        monkeypatch.setattr(client.app.state, "settings", disabled)
        resp = client.post(
            "/api/v1/auth/register",
            json={"identity": "erin@example.com", "password": "Secret123", "display_name": "Erin"},
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "registration_disabled"


class TestLogin:
    def test_login_valid_credentials(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _token, uid = api_client
        resp = client.post("/api/v1/auth/login", json={"identity": IDENTITY, "password": PASSWORD})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["access_token"]
        assert data["token_type"] == "bearer"
        assert data["id"] == uid
        assert data["identity"] == IDENTITY
        assert data["display_name"] == "Alice"
        assert "password_hash" not in data
        assert resp.headers["cache-control"] == "no-store"

    def test_wrong_password_and_unknown_identity_look_the_same(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _token, _uid = api_client
        wrong = client.post("/api/v1/auth/login", json={"identity": IDENTITY, "password": "wrong"})
        unknown = client.post("/api/v1/auth/login", json={"identity": "ghost@example.com", "password": "wrong"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert wrong.json()["error"]["code"] == "invalid_credentials"


class TestGuardedRoutes:
    def test_profile_requires_token(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/v1/auth/profile")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_profile_with_token(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, uid = api_client
        resp = client.get("/api/v1/auth/profile", headers=_bearer(token))
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"id": uid, "identity": IDENTITY, "display_name": "Alice"}

    def test_session_claims(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, uid = api_client
        resp = client.get("/api/v1/auth/session", headers=_bearer(token))
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["subject_id"] == uid
        assert data["expires_at"] > data["issued_at"]

    def test_expired_token(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _token, uid = api_client
        expired = client.app.state.auth.issuer.issue(uid, ttl=-60)
        resp = client.get("/api/v1/auth/profile", headers=_bearer(expired))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "token_expired"

    def test_tampered_token(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _uid = api_client
        header, payload, signature = token.split(".")
        i = len(signature) // 2
        flipped = signature[:i] + ("A" if signature[i] != "A" else "B") + signature[i + 1 :]
        resp = client.get("/api/v1/auth/profile", headers=_bearer(f"{header}.{payload}.{flipped}"))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "token_invalid"

    def test_non_bearer_scheme_rejected(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _uid = api_client
        resp = client.get("/api/v1/auth/session", headers={"Authorization": f"Basic {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_token_for_deleted_subject(self, api_client: tuple[TestClient, str, int]) -> None:
        """A validly signed token whose subject has no record cannot read a profile."""
        client, _token, _uid = api_client
        orphan = client.app.state.auth.issuer.issue(987654)
        resp = client.get("/api/v1/auth/profile", headers=_bearer(orphan))
        assert resp.status_code == 401


@pytest.fixture
def fresh_limiter():
    """Empty the shared limiter's counters before and after a test."""
    limiter.reset()
    yield limiter
    limiter.reset()


class TestErrorEnvelope:
    def test_login_rate_limited(self, api_client: tuple[TestClient, str, int], fresh_limiter, monkeypatch) -> None:
        """Once the per-IP login limit is spent, login answers 429 with Retry-After."""
        client, _token, _uid = api_client
        monkeypatch.setattr(get_settings(), "login_rate_limit", "2/minute")
        codes = [
            client.post("/api/v1/auth/login", json={"identity": IDENTITY, "password": "wrong"}).status_code
            for _ in range(2)
        ]
        assert codes == [401, 401]
        resp = client.post("/api/v1/auth/login", json={"identity": IDENTITY, "password": PASSWORD})
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limited"
        assert int(resp.headers["retry-after"]) > 0

    def test_register_rate_limited(self, api_client: tuple[TestClient, str, int], fresh_limiter, monkeypatch) -> None:
        client, _token, _uid = api_client
        monkeypatch.setattr(get_settings(), "register_rate_limit", "1/minute")
        body = {"identity": IDENTITY, "password": "Another1", "display_name": "Again"}
        assert client.post("/api/v1/auth/register", json=body).status_code == 409
        resp = client.post("/api/v1/auth/register", json=body)
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limited"

    def test_unknown_route_uses_envelope(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/v1/nope")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "http_404"

    def test_wrong_method_uses_envelope(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/v1/auth/login")
        assert resp.status_code == 405
        assert resp.json()["error"]["code"] == "http_405"
        assert "POST" in resp.headers["allow"]

    def test_store_unavailable_is_503(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _token, _uid = api_client
        with patch.object(client.app.state.user_store, "find_by_identity", side_effect=StoreUnavailable()):
            resp = client.post("/api/v1/auth/login", json={"identity": IDENTITY, "password": PASSWORD})
        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "store_unavailable"

    def test_unexpected_error_is_generic_500(self, api_client: tuple[TestClient, str, int]) -> None:
        """An untyped crash returns a generic body; the exception text stays in the server log."""
        client, _token, _uid = api_client
        # app.state is already wired by the module client, so no lifespan is needed here.
        quiet = TestClient(client.app, base_url="http://localhost", raise_server_exceptions=False)
        with patch.object(client.app.state.auth, "login", side_effect=RuntimeError("connection string leaked")):
            resp = quiet.post("/api/v1/auth/login", json={"identity": IDENTITY, "password": PASSWORD})
        assert resp.status_code == 500
        assert resp.json() == {
            "error": {"code": "internal_error", "message": "An unexpected error occurred.", "detail": None}
        }
        assert "leaked" not in resp.text

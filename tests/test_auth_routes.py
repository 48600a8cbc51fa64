"""
tests/test_auth_routes.py -- Integration tests for /api/auth/*.

These tests exercise the full stack: FastAPI routing -> auth service ->
UserStore/ActivityStore -> response model serialization.

Coverage:
  - register: 201 {id, email}, duplicate 409, missing fields 400, bad email 400
  - register: email is stored lowercase, hash never returned
  - login: 200 {token, user}, wrong password and unknown email identical 401
  - login: Cache-Control no-store, token decodes to the user's identity
  - /me: 401 without or with a bad token, 200 with a valid one
  - over-long passwords: 401 on login, 400 on register, never echoed back
  - register and login answer 429 with Retry-After past LOGIN_RATE_LIMIT
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from auth.tokens import create_access_token, decode_access_token
from core.config import get_settings


class TestRegister:
    def test_register_then_duplicate_then_login(self, api_client: TestClient) -> None:
        """The canonical walkthrough: 201, 409, 401 "Invalid credentials", 200 with token."""
        resp = api_client.post("/api/auth/register", json={"email": "a@x.com", "password": "pw1"})
        assert resp.status_code == 201, resp.text
        assert resp.json()["email"] == "a@x.com"

        resp = api_client.post("/api/auth/register", json={"email": "a@x.com", "password": "pw2"})
        assert resp.status_code == 409, resp.text
        assert resp.json()["error"]["code"] == "conflict"

        resp = api_client.post("/api/auth/login", json={"email": "a@x.com", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Invalid credentials"

        resp = api_client.post("/api/auth/login", json={"email": "a@x.com", "password": "pw1"})
        assert resp.status_code == 200, resp.text
        assert resp.json()["token"]

    def test_register_returns_only_id_and_email(self, api_client: TestClient, unique_email: str) -> None:
        resp = api_client.post(
            "/api/auth/register",
            json={"email": unique_email, "password": "pw1", "name": "Ana"},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert set(data) == {"id", "email"}
        assert isinstance(data["id"], int)

    def test_register_lowercases_email(self, api_client: TestClient, unique_email: str) -> None:
        resp = api_client.post("/api/auth/register", json={"email": unique_email.upper(), "password": "pw1"})
        assert resp.status_code == 201
        assert resp.json()["email"] == unique_email

        # Same address in a different case is the same identity
        resp = api_client.post("/api/auth/register", json={"email": unique_email, "password": "pw1"})
        assert resp.status_code == 409

    def test_register_missing_password(self, api_client: TestClient, unique_email: str) -> None:
        resp = api_client.post("/api/auth/register", json={"email": unique_email})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_register_missing_email(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/auth/register", json={"password": "pw1"})
        assert resp.status_code == 400

    def test_register_blank_fields(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/auth/register", json={"email": "  ", "password": ""})
        assert resp.status_code == 400

    def test_register_malformed_email(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/auth/register", json={"email": "not-an-email", "password": "pw1"})
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid email address"

    def test_register_non_json_body(self, api_client: TestClient) -> None:
        resp = api_client.post(
            "/api/auth/register",
            content=b"email=a",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400


class TestLogin:
    def test_login_response_shape(self, api_client: TestClient, unique_email: str) -> None:
        api_client.post("/api/auth/register", json={"email": unique_email, "password": "pw1", "name": "Ana"})
        resp = api_client.post("/api/auth/login", json={"email": unique_email, "password": "pw1"})
        assert resp.status_code == 200
        data = resp.json()
        assert set(data) == {"token", "user"}
        assert data["user"]["email"] == unique_email
        assert data["user"]["name"] == "Ana"
        assert data["user"]["roles"] == ["user"]
        assert "password_hash" not in data["user"]

    def test_login_sets_no_store(self, api_client: TestClient, unique_email: str) -> None:
        api_client.post("/api/auth/register", json={"email": unique_email, "password": "pw1"})
        resp = api_client.post("/api/auth/login", json={"email": unique_email, "password": "pw1"})
        assert resp.headers["cache-control"] == "no-store"

    def test_login_token_carries_identity(self, api_client: TestClient, unique_email: str) -> None:
        reg = api_client.post("/api/auth/register", json={"email": unique_email, "password": "pw1"}).json()
        token = api_client.post("/api/auth/login", json={"email": unique_email, "password": "pw1"}).json()["token"]
        payload = decode_access_token(token)
        assert payload is not None
        assert payload["user_id"] == reg["id"]
        assert payload["email"] == unique_email
        assert payload["roles"] == ["user"]

    def test_login_is_case_insensitive_on_email(self, api_client: TestClient, unique_email: str) -> None:
        api_client.post("/api/auth/register", json={"email": unique_email, "password": "pw1"})
        resp = api_client.post("/api/auth/login", json={"email": unique_email.upper(), "password": "pw1"})
        assert resp.status_code == 200

    def test_wrong_password_and_unknown_email_are_indistinguishable(
        self, api_client: TestClient, unique_email: str
    ) -> None:
        api_client.post("/api/auth/register", json={"email": unique_email, "password": "pw1"})
        wrong_pw = api_client.post("/api/auth/login", json={"email": unique_email, "password": "nope"})
        unknown = api_client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "pw1"})
        assert wrong_pw.status_code == unknown.status_code == 401
        assert wrong_pw.json() == unknown.json()

    def test_login_missing_fields(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/auth/login", json={})
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Invalid credentials"


class TestMe:
    def test_me_unauthenticated(self, api_client: TestClient) -> None:
        resp = api_client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_me_garbage_token(self, api_client: TestClient) -> None:
        resp = api_client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 401

    def test_me_wrong_scheme(self, api_client: TestClient, register_and_login, unique_email: str) -> None:
        token = register_and_login(unique_email)
        resp = api_client.get("/api/auth/me", headers={"Authorization": f"Token {token}"})
        assert resp.status_code == 401

    def test_me_expired_token(self, api_client: TestClient, unique_email: str) -> None:
        reg = api_client.post("/api/auth/register", json={"email": unique_email, "password": "pw1"}).json()
        token = create_access_token(reg["id"], unique_email, ["user"], expire_seconds=-60)
        resp = api_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_me_token_for_missing_user(self, api_client: TestClient) -> None:
        token = create_access_token(987654, "gone@example.com", ["user"])
        resp = api_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_me_authenticated(self, api_client: TestClient, register_and_login, unique_email: str) -> None:
        token = register_and_login(unique_email)
        resp = api_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["email"] == unique_email
        assert data["roles"] == ["user"]


class TestLongPasswords:
    LONG_PASSWORD = "S3cretPassw0rd-" * 20

    def test_login_long_password_is_invalid_credentials(self, api_client: TestClient, unique_email: str) -> None:
        api_client.post("/api/auth/register", json={"email": unique_email, "password": "pw1"})
        for email in (unique_email, "ghost@example.com"):
            resp = api_client.post("/api/auth/login", json={"email": email, "password": self.LONG_PASSWORD})
            assert resp.status_code == 401, resp.text
            assert resp.json()["error"]["message"] == "Invalid credentials"
            assert self.LONG_PASSWORD not in resp.text

    def test_register_long_password_rejected_without_echo(self, api_client: TestClient, unique_email: str) -> None:
        resp = api_client.post("/api/auth/register", json={"email": unique_email, "password": self.LONG_PASSWORD})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"
        assert self.LONG_PASSWORD not in resp.text

    def test_validation_error_does_not_echo_input(self, api_client: TestClient, unique_email: str) -> None:
        resp = api_client.post("/api/auth/login", json={"email": unique_email, "password": 987654321})
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "validation_error"
        assert "body.password" in error["detail"]
        assert "987654321" not in resp.text


class TestRateLimit:
    @pytest.fixture
    def low_limit(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "login_rate_limit", "2/minute")
        limiter.reset()
        yield
        limiter.reset()

    def test_login_limited_with_retry_after(self, api_client: TestClient, low_limit) -> None:
        for _ in range(2):
            assert api_client.post("/api/auth/login", json={}).status_code == 401

        resp = api_client.post("/api/auth/login", json={})
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limited"
        assert resp.headers["Retry-After"] == "60"

    def test_register_limited(self, api_client: TestClient, low_limit) -> None:
        for _ in range(2):
            assert api_client.post("/api/auth/register", json={}).status_code == 400
        assert api_client.post("/api/auth/register", json={}).status_code == 429

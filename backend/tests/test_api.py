"""HTTP tests for the /auth endpoints and the bearer-token guard."""

import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from authgate import auth_service
from authgate.auth import get_credential_store
from authgate.auth_service import ENCODING_MESSAGE
from authgate.db.models import User
from authgate.errors import StoreUnavailableError, UNAUTHORIZED_MESSAGE
from authgate.tokens import TokenIssuer

from conftest import OTHER_SECRET, TEST_SECRET

ANA = {"name": "Ana", "email": "a@x.com", "password": "secret123"}

JSON_HEADERS = {"Content-Type": "application/json"}


def _raw_json_with_surrogate(body: dict, field: str) -> bytes:
    # httpx cannot encode a lone surrogate, so the escape is written by hand.
    fields = {**body, field: "PLACEHOLDER"}
    return json.dumps(fields).replace("PLACEHOLDER", "x\\ud800").encode("ascii")


def _register(client, body=None):
    return client.post("/auth/register", json=body or ANA)


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _count_users(app) -> int:
    with app.state.session_factory() as db:
        return db.scalar(select(func.count()).select_from(User))


class TestEndToEnd:
    def test_register_profile_login(self, client):
        resp = _register(client)
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "User registered successfully"
        token = body["token"]

        resp = client.get("/auth/profile", headers=_bearer(token))
        assert resp.status_code == 200
        profile = resp.json()
        assert profile["name"] == "Ana"
        assert profile["email"] == "a@x.com"
        assert uuid.UUID(profile["id"])
        assert "password" not in profile
        assert "password_hash" not in profile

        resp = client.post("/auth/login", json={"email": "a@x.com", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json() == {"message": "Invalid email or password"}

    def test_login_returns_working_token(self, client):
        _register(client)
        resp = client.post("/auth/login", json={"email": "a@x.com", "password": "secret123"})
        assert resp.status_code == 200
        assert resp.json()["message"] == "Login successful"

        profile = client.get("/auth/profile", headers=_bearer(resp.json()["token"]))
        assert profile.status_code == 200
        assert profile.json()["email"] == "a@x.com"


class TestRegister:
    def test_duplicate_email_conflict(self, client, app):
        assert _register(client).status_code == 201
        resp = _register(client, {**ANA, "name": "Someone Else"})
        assert resp.status_code == 409
        assert resp.json() == {"message": "User already exists with this email"}
        assert _count_users(app) == 1

    @pytest.mark.parametrize("missing", ["name", "email", "password"])
    def test_missing_field(self, client, missing):
        body = {k: v for k, v in ANA.items() if k != missing}
        resp = _register(client, body)
        assert resp.status_code == 400
        assert resp.json() == {"message": "Name, email, and password are required"}

    def test_empty_field(self, client):
        resp = _register(client, {**ANA, "password": ""})
        assert resp.status_code == 400

    def test_no_body(self, client):
        resp = client.post("/auth/register")
        assert resp.status_code == 400
        assert resp.json() == {"message": "Name, email, and password are required"}

    @pytest.mark.parametrize("field", ["name", "email", "password"])
    def test_lone_surrogate_rejected(self, client, app, field):
        body = {"name": "Ana", "email": "a@x.com", "password": "secret123"}
        raw = _raw_json_with_surrogate(body, field)
        resp = client.post("/auth/register", content=raw, headers=JSON_HEADERS)
        assert resp.status_code == 400
        assert resp.json() == {"message": ENCODING_MESSAGE}
        assert _count_users(app) == 0

    def test_non_string_field(self, client):
        resp = _register(client, {**ANA, "email": 42})
        assert resp.status_code == 400
        assert "message" in resp.json()

    def test_store_failure_is_500(self, client, app):
        class FailingStore:
            def find_by_email(self, email):
                raise StoreUnavailableError()

        app.dependency_overrides[get_credential_store] = lambda: FailingStore()
        resp = _register(client)
        assert resp.status_code == 500
        assert resp.json() == {"message": "Something went wrong during registration"}


class TestLogin:
    def test_wrong_password_and_unknown_email_identical(self, client):
        _register(client)
        wrong = client.post("/auth/login", json={"email": "a@x.com", "password": "nope"})
        unknown = client.post("/auth/login", json={"email": "ghost@x.com", "password": "secret123"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()

    def test_missing_fields(self, client):
        resp = client.post("/auth/login", json={"email": "a@x.com"})
        assert resp.status_code == 400
        assert resp.json() == {"message": "Email and password are required"}

    def test_no_body(self, client):
        resp = client.post("/auth/login")
        assert resp.status_code == 400
        assert resp.json() == {"message": "Email and password are required"}

    @pytest.mark.parametrize("field", ["email", "password"])
    def test_lone_surrogate_rejected(self, client, field):
        _register(client)
        raw = _raw_json_with_surrogate({"email": "a@x.com", "password": "secret123"}, field)
        resp = client.post("/auth/login", content=raw, headers=JSON_HEADERS)
        assert resp.status_code == 400
        assert resp.json() == {"message": ENCODING_MESSAGE}

    def test_unknown_email_burns_configured_work_factor(self, client, settings, monkeypatch):
        seen = []
        monkeypatch.setattr(
            auth_service, "burn_verification",
            lambda password, rounds=None: seen.append(rounds),
        )
        resp = client.post("/auth/login", json={"email": "ghost@x.com", "password": "secret123"})
        assert resp.status_code == 401
        assert seen == [settings.BCRYPT_ROUNDS]

    def test_store_failure_is_500(self, client, app):
        class FailingStore:
            def find_by_email(self, email):
                raise StoreUnavailableError()

        app.dependency_overrides[get_credential_store] = lambda: FailingStore()
        resp = client.post("/auth/login", json={"email": "a@x.com", "password": "x"})
        assert resp.status_code == 500
        assert resp.json() == {"message": "Something went wrong during login"}


class TestProfileGuard:
    @pytest.fixture()
    def user_id(self, client):
        token = _register(client).json()["token"]
        return TokenIssuer(TEST_SECRET).validate(token).subject_id

    def _assert_unauthorized(self, resp):
        assert resp.status_code == 401
        assert resp.json() == {"message": UNAUTHORIZED_MESSAGE}
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_no_token(self, client):
        self._assert_unauthorized(client.get("/auth/profile"))

    def test_non_bearer_scheme(self, client):
        self._assert_unauthorized(
            client.get("/auth/profile", headers={"Authorization": "Basic dXNlcjpwYXNz"})
        )

    def test_expired_token(self, client, user_id):
        two_days_ago = datetime.now(timezone.utc) - timedelta(days=2)
        token = TokenIssuer(TEST_SECRET, clock=lambda: two_days_ago).issue(user_id)
        self._assert_unauthorized(client.get("/auth/profile", headers=_bearer(token)))

    def test_token_from_other_key(self, client, user_id):
        token = TokenIssuer(OTHER_SECRET).issue(user_id)
        self._assert_unauthorized(client.get("/auth/profile", headers=_bearer(token)))

    def test_tampered_token(self, client):
        token = _register(client).json()["token"]
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload[:-2] + ("AA" if payload[-2:] != "AA" else "BB"), signature])
        self._assert_unauthorized(client.get("/auth/profile", headers=_bearer(tampered)))

    def test_garbage_token(self, client):
        self._assert_unauthorized(client.get("/auth/profile", headers=_bearer("garbage")))

    def test_all_rejections_share_one_shape(self, client, user_id):
        expired = TokenIssuer(
            TEST_SECRET, clock=lambda: datetime.now(timezone.utc) - timedelta(days=2)
        ).issue(user_id)
        responses = [
            client.get("/auth/profile"),
            client.get("/auth/profile", headers=_bearer(expired)),
            client.get("/auth/profile", headers=_bearer(TokenIssuer(OTHER_SECRET).issue(user_id))),
        ]
        assert len({(r.status_code, r.text) for r in responses}) == 1

    def test_valid_token_for_deleted_user(self, client):
        token = TokenIssuer(TEST_SECRET).issue(uuid.uuid4())
        resp = client.get("/auth/profile", headers=_bearer(token))
        assert resp.status_code == 404
        assert resp.json() == {"message": "User not found"}


class TestErrorFallback:
    def test_unexpected_error_is_generic_500(self, app):
        class ExplodingStore:
            def find_by_email(self, email):
                raise RuntimeError("boom")

        app.dependency_overrides[get_credential_store] = lambda: ExplodingStore()
        with TestClient(app, raise_server_exceptions=False) as client:
            resp = _register(client)
        assert resp.status_code == 500
        assert "boom" not in resp.text


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "database": True}

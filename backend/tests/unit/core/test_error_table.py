"""Tests for the central error-kind to HTTP mapping."""

from __future__ import annotations

import pytest
from marshmallow import Schema, fields

from accounts.core.config import TestingConfig
from accounts.core.errors import SERVICE_ERROR_TABLE, status_for
from accounts.factory import create_app
from accounts.services._shared import errors as svc
from accounts.services.container import EXTENSION_KEY


class _Strict(Schema):
    name = fields.String(required=True)


class _Unmapped(svc.ServiceError):
    pass


class _UnmappedAuth(svc.AuthError):
    pass


RAISERS = {
    "credentials": lambda: svc.InvalidCredentials(svc.CredentialFailure.USER_NOT_FOUND),
    "banned": lambda: svc.UserBanned("spam"),
    "scope": lambda: svc.MissingScope("access"),
    "storage": lambda: svc.StorageFailure("connection to 10.0.0.5 refused"),
    "conflict": lambda: svc.ConflictError("User", "username already exists"),
    "crash": lambda: RuntimeError("secret internals"),
}


@pytest.fixture(scope="module")
def error_client(app):
    """Separate app whose extra routes raise each error kind."""
    error_app = create_app(
        TestingConfig,
        services=app.extensions[EXTENSION_KEY],
        instance_relative_config=False,
    )

    @error_app.get("/boom/<kind>")
    def boom(kind):
        raise RAISERS[kind]()

    @error_app.post("/validate")
    def validate():
        _Strict().load({})
        return "", 204

    return error_app.test_client()


class TestStatusFor:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (
                svc.InvalidCredentials(svc.CredentialFailure.WRONG_PASSWORD),
                (401, "invalid_credentials"),
            ),
            (svc.ExpiredToken(), (401, "token_expired")),
            (svc.SignatureInvalid(), (401, "invalid_signature")),
            (svc.InvalidRefreshToken(), (401, "invalid_refresh_token")),
            (svc.InvalidAccessToken(), (401, "invalid_access_token")),
            (svc.Unauthorized(), (401, "unauthorized")),
            (svc.UserBanned(), (403, "user_banned")),
            (svc.MissingScope("refresh"), (403, "missing_scope")),
            (svc.SessionNotBelongToUser(), (403, "session_not_owned")),
            (svc.SessionNotFound(), (404, "session_not_found")),
            (svc.SessionAlreadyRevoked(), (400, "session_already_revoked")),
            (svc.InvalidActivationToken(), (400, "invalid_activation_token")),
            (svc.InvalidSessionId(), (400, "invalid_session_id")),
            (svc.NotFoundError("User", "x"), (404, "not_found")),
            (svc.ConflictError("User", "taken"), (409, "conflict")),
            (svc.ResetPasswordThrottled(), (429, "reset_password_throttled")),
            (svc.PasswordHashingFailure(), (500, "password_hashing_failure")),
            (svc.StorageFailure(), (500, "storage_failure")),
            (svc.ClockError(), (500, "clock_error")),
        ],
    )
    def test_every_kind_has_a_status_and_code(self, error, expected):
        assert status_for(error) == expected

    def test_subclass_without_row_inherits_parent_entry(self):
        assert status_for(_UnmappedAuth()) == (401, "unauthorized")
        assert status_for(_Unmapped()) == (500, "internal_server_error")

    def test_every_concrete_error_kind_is_listed(self):
        kinds = {
            value
            for value in vars(svc).values()
            if isinstance(value, type)
            and issubclass(value, svc.ServiceError)
            and value not in (svc.ServiceError, svc.AuthError)
        }

        assert kinds <= set(SERVICE_ERROR_TABLE)


class TestRendering:
    def test_service_error_as_problem_json(self, error_client):
        resp = error_client.get("/boom/banned", headers={"X-Request-ID": "req-123"})

        assert resp.status_code == 403
        assert resp.mimetype == "application/problem+json"
        body = resp.get_json()
        assert body["code"] == "user_banned"
        assert body["title"] == "Forbidden"
        assert body["detail"] == "User is banned: spam"
        assert body["instance"] == "/boom/banned"
        assert body["request_id"] == "req-123"
        assert resp.headers["X-Request-ID"] == "req-123"

    def test_credential_failures_do_not_leak_the_reason(self, error_client):
        body = error_client.get("/boom/credentials").get_json()

        assert body["code"] == "invalid_credentials"
        assert "user_not_found" not in str(body)

    def test_storage_failure_hides_internal_detail(self, error_client):
        resp = error_client.get("/boom/storage")

        assert resp.status_code == 500
        assert resp.get_json()["detail"] == "Unexpected error"
        assert "10.0.0.5" not in resp.get_data(as_text=True)

    def test_conflict(self, error_client):
        resp = error_client.get("/boom/conflict")

        assert resp.status_code == 409
        assert resp.get_json()["detail"] == "Conflict on User: username already exists"

    def test_unhandled_exception(self, error_client):
        resp = error_client.get("/boom/crash")

        assert resp.status_code == 500
        assert resp.get_json()["code"] == "internal_server_error"
        assert "secret internals" not in resp.get_data(as_text=True)

    def test_validation_error(self, error_client):
        resp = error_client.post("/validate", json={})

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["code"] == "validation_error"
        assert "name" in body["details"]["errors"]

    def test_unknown_route(self, error_client):
        resp = error_client.get("/api/v1/nowhere")

        assert resp.status_code == 404
        body = resp.get_json()
        assert body["code"] == "not_found"
        assert body["detail"] == "Route '/api/v1/nowhere' not found"
        assert body["request_id"]

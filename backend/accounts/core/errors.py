"""Centralized JSON (RFC 7807) error handling for the API.

Every service error kind maps to exactly one HTTP status and stable code in
:data:`SERVICE_ERROR_TABLE`. Services never see HTTP; routes never catch
service errors; the single handler registered here renders them.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from accounts.core.logger import ensure_request_id
from accounts.services._shared import errors as svc

log = logging.getLogger(__name__)


#: Error kind -> (HTTP status, machine-readable code). Lookup walks the MRO,
#: so a subclass without its own entry inherits its parent's.
SERVICE_ERROR_TABLE: dict[type[svc.ServiceError], tuple[int, str]] = {
    # 401
    svc.InvalidCredentials: (HTTPStatus.UNAUTHORIZED, "invalid_credentials"),
    svc.ExpiredToken: (HTTPStatus.UNAUTHORIZED, "token_expired"),
    svc.SignatureInvalid: (HTTPStatus.UNAUTHORIZED, "invalid_signature"),
    svc.InvalidRefreshToken: (HTTPStatus.UNAUTHORIZED, "invalid_refresh_token"),
    svc.InvalidAccessToken: (HTTPStatus.UNAUTHORIZED, "invalid_access_token"),
    svc.Unauthorized: (HTTPStatus.UNAUTHORIZED, "unauthorized"),
    svc.PasswordMismatch: (HTTPStatus.UNAUTHORIZED, "password_mismatch"),
    svc.InvalidResetToken: (HTTPStatus.UNAUTHORIZED, "invalid_reset_token"),
    # 403
    svc.UserBanned: (HTTPStatus.FORBIDDEN, "user_banned"),
    svc.MissingScope: (HTTPStatus.FORBIDDEN, "missing_scope"),
    svc.SessionNotBelongToUser: (HTTPStatus.FORBIDDEN, "session_not_owned"),
    # 404
    svc.SessionNotFound: (HTTPStatus.NOT_FOUND, "session_not_found"),
    svc.NotFoundError: (HTTPStatus.NOT_FOUND, "not_found"),
    # 400
    svc.SessionAlreadyRevoked: (HTTPStatus.BAD_REQUEST, "session_already_revoked"),
    svc.InvalidActivationToken: (HTTPStatus.BAD_REQUEST, "invalid_activation_token"),
    svc.InvalidSessionId: (HTTPStatus.BAD_REQUEST, "invalid_session_id"),
    # 409
    svc.ConflictError: (HTTPStatus.CONFLICT, "conflict"),
    # 429
    svc.ResetPasswordThrottled: (HTTPStatus.TOO_MANY_REQUESTS, "reset_password_throttled"),
    # 500
    svc.PasswordHashingFailure: (HTTPStatus.INTERNAL_SERVER_ERROR, "password_hashing_failure"),
    svc.StorageFailure: (HTTPStatus.INTERNAL_SERVER_ERROR, "storage_failure"),
    svc.ClockError: (HTTPStatus.INTERNAL_SERVER_ERROR, "clock_error"),
    # Fallbacks for kinds without their own row
    svc.AuthError: (HTTPStatus.UNAUTHORIZED, "unauthorized"),
    svc.ServiceError: (HTTPStatus.INTERNAL_SERVER_ERROR, "internal_server_error"),
}

#: Kinds whose message may hide an internal cause; clients get a generic detail.
_OPAQUE_KINDS: tuple[type[svc.ServiceError], ...] = (
    svc.StorageFailure,
    svc.PasswordHashingFailure,
    svc.ClockError,
)


def status_for(exc: svc.ServiceError) -> tuple[int, str]:
    """
    Resolve the HTTP status and code of a service error.

    :param exc: Raised service error.
    :returns: ``(status, code)`` of the closest class in the table.
    """
    for klass in type(exc).__mro__:
        entry = SERVICE_ERROR_TABLE.get(klass)  # type: ignore[call-overload]
        if entry is not None:
            return int(entry[0]), entry[1]
    return int(HTTPStatus.INTERNAL_SERVER_ERROR), "internal_server_error"


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        413: "payload_too_large",
        415: "unsupported_media_type",
        422: "unprocessable_entity",
        429: "too_many_requests",
        500: "internal_server_error",
    }
    return mapping.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary.
    :rtype: dict
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path,
        "code": code,
    }
    if details:
        problem["details"] = details
    problem["request_id"] = ensure_request_id()
    return problem


def _problem_response(problem: dict[str, Any], status: int) -> tuple[Response, int]:
    """
    Return a Flask response with ``application/problem+json`` media type.

    :param problem: Problem details payload.
    :param status: HTTP status code.
    :returns: Response and status tuple.
    """
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp, status


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    4xx responses are logged as warnings without traceback; 5xx as errors
    with ``exc_info``.
    """

    @app.errorhandler(svc.ServiceError)
    def handle_service_error(err: svc.ServiceError):
        status, code = status_for(err)
        if status >= 500:
            message = "Unexpected error" if isinstance(err, _OPAQUE_KINDS) else err.message
            log.error(
                "service error: kind=%s status=%s",
                type(err).__name__,
                status,
                exc_info=err,
                extra={"event": "http.error", "endpoint": request.endpoint},
            )
        else:
            message = err.message
            log.warning(
                "service error: kind=%s status=%s msg=%s",
                type(err).__name__,
                status,
                err.message,
                extra={"event": "http.error", "endpoint": request.endpoint},
            )
        problem = _as_problem(status=status, code=code, message=message)
        return _problem_response(problem, status)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        problem = _as_problem(status=status, code=error_code, message=message)
        level = log.error if status >= 500 else log.warning
        level("HTTPException: code=%s status=%s detail=%s", error_code, status, message)
        return _problem_response(problem, status)

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        problem = _as_problem(
            status=HTTPStatus.BAD_REQUEST,
            code="validation_error",
            message="Validation failed",
            details={"errors": err.messages},
        )
        log.warning("ValidationError: endpoint=%s", request.endpoint)
        return _problem_response(problem, HTTPStatus.BAD_REQUEST)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        problem = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
        )
        log.error("Unhandled exception", exc_info=err)
        return _problem_response(problem, HTTPStatus.INTERNAL_SERVER_ERROR)


__all__ = ["SERVICE_ERROR_TABLE", "init_app", "status_for"]

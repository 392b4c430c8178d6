"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic**: they never import Flask or HTTP
helpers. Each concrete class is one error kind; the translation to an HTTP
status and machine-readable code lives in a single table in
``accounts/core/errors.py`` and is consulted at the HTTP boundary only.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, *markers: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name (``uq_users_username``) while
    SQLite reports the column (``users.username``); pass both.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :param markers: Constraint names or ``table.column`` strings to look for.
    :returns: ``True`` if the driver message mentions any marker.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return any(marker.lower() in message for marker in markers)


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Subclasses set ``default_message``; it is the client-safe ``detail`` used
    when the error is rendered at the HTTP boundary.
    """

    default_message = "Service error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message


class AuthError(ServiceError):
    """Base class for credential, token and session errors."""

    default_message = "Authentication failed"


# --------------------------------------------------------------------------- #
# Generic domain errors
# --------------------------------------------------------------------------- #


@dataclass(eq=False)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __post_init__(self) -> None:
        ServiceError.__init__(self, f"{self.entity} not found: {self.key}")


@dataclass(eq=False)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __post_init__(self) -> None:
        ServiceError.__init__(self, f"Conflict on {self.entity}: {self.detail}")


class StorageFailure(ServiceError):
    """Wraps any error raised by the backing store; the transaction was rolled back."""

    default_message = "Storage failure"


class PasswordHashingFailure(ServiceError):
    """The password hashing backend could not produce a hash."""

    default_message = "Password hashing failed"


# --------------------------------------------------------------------------- #
# Credentials
# --------------------------------------------------------------------------- #


class CredentialFailure(enum.Enum):
    """Internal reason behind :class:`InvalidCredentials` (never sent to clients)."""

    USER_NOT_FOUND = "user_not_found"
    PASSWORD_NOT_SET = "password_not_set"
    WRONG_PASSWORD = "wrong_password"


class InvalidCredentials(AuthError):
    """
    Bad username/password pair.

    The message is identical whatever the reason, so callers cannot tell an
    unknown username from a wrong password.

    :param reason: Internal failure reason, available for logging.
    :type reason: CredentialFailure
    """

    default_message = "Invalid username or password."

    def __init__(self, reason: CredentialFailure) -> None:
        super().__init__()
        self.reason = reason


class UserBanned(AuthError):
    """The account is banned; ``reason`` is surfaced to the client."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason or "Reason not specified"
        super().__init__(f"User is banned: {self.reason}")


class PasswordMismatch(AuthError):
    default_message = "Current password does not match."


# --------------------------------------------------------------------------- #
# Tokens
# --------------------------------------------------------------------------- #


class SignatureInvalid(AuthError):
    """The token is tampered, malformed or signed with another key."""

    default_message = "Invalid token signature."


class ExpiredToken(AuthError):
    """The token is structurally valid but its expiry has passed."""

    default_message = "Token has expired."


class MissingScope(AuthError):
    """The token lacks a scope required by the operation."""

    def __init__(self, scope: str) -> None:
        self.scope = scope
        super().__init__(f"Token is missing required scope '{scope}'.")


class ClockError(AuthError):
    default_message = "System clock is unavailable."


class InvalidRefreshToken(AuthError):
    default_message = "Invalid refresh token."


class InvalidResetToken(AuthError):
    default_message = "Invalid password reset token."


# --------------------------------------------------------------------------- #
# Sessions
# --------------------------------------------------------------------------- #


class Unauthorized(AuthError):
    """The request carries no usable credential."""

    default_message = "Unauthorized."


class InvalidAccessToken(Unauthorized):
    """The token's session was superseded, signed out or revoked."""

    default_message = "Access token is no longer valid."


class SessionNotFound(AuthError):
    default_message = "Session not found."


class SessionAlreadyRevoked(AuthError):
    default_message = "Session already revoked."


class SessionNotBelongToUser(AuthError):
    default_message = "Session does not belong to the user."


class InvalidSessionId(ServiceError):
    """A session id that is not a UUID."""

    default_message = "Invalid session ID."


# --------------------------------------------------------------------------- #
# Account flows
# --------------------------------------------------------------------------- #


class InvalidActivationToken(ServiceError):
    default_message = "Invalid activation token."


class ResetPasswordThrottled(ServiceError):
    """A reset email was sent recently; the cooldown has not elapsed."""

    default_message = "Reset password token already sent."

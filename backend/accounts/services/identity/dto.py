# accounts/services/identity/dto.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for account registration.

    :param username: Desired username (3 to 16 characters).
    :type username: str
    :param email: Email address; activated later through the emailed link.
    :type email: str
    :param password: Raw password (6 to 32 characters).
    :type password: str
    """

    username: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class ActivateEmailIn:
    """
    :param user_id: Owner of the email.
    :type user_id: uuid.UUID
    :param token: Activation token from the emailed link.
    :type token: uuid.UUID
    """

    user_id: uuid.UUID
    token: uuid.UUID


@dataclass(frozen=True, slots=True)
class PasswordChangeIn:
    current_password: str
    new_password: str


@dataclass(frozen=True, slots=True)
class PasswordResetIn:
    """
    :param token: Signed reset token (scope ``reset-password``).
    :type token: str
    :param new_password: Raw replacement password.
    :type new_password: str
    """

    token: str
    new_password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserOut:
    """
    Account view returned by registration and ``me``.

    :param id: User id.
    :param username: Username.
    :param email: Email address, ``None`` when the user has none.
    :param email_active: Whether the address was activated.
    :param created_at: Account creation time.
    """

    id: uuid.UUID
    username: str
    email: str | None
    email_active: bool
    created_at: datetime


# ------------------------------ Settings ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AccountSettings:
    """
    Account-flow settings.

    :param public_url: Base URL of the client application for emailed links.
    :type public_url: str
    :param reset_token_ttl_seconds: Lifetime of password reset tokens.
    :type reset_token_ttl_seconds: int
    :param reset_cooldown_seconds: Minimum delay between reset emails.
    :type reset_cooldown_seconds: int
    """

    public_url: str = "http://localhost:5173"
    reset_token_ttl_seconds: int = 3_600
    reset_cooldown_seconds: int = 3_600

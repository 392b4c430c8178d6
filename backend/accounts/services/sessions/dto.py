# accounts/services/sessions/dto.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SignInIn:
    """
    Input DTO for sign-in.

    :param username: Account username.
    :type username: str
    :param password: Raw password (to be verified).
    :type password: str
    :param ip: Client address.
    :type ip: str | None
    :param user_agent: Raw ``User-Agent`` header.
    :type user_agent: str | None
    """

    username: str
    password: str
    ip: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for session refresh.

    :param refresh_token: Refresh token returned by sign-in.
    :type refresh_token: str
    :param ip: Client address.
    :type ip: str | None
    :param user_agent: Raw ``User-Agent`` header.
    :type user_agent: str | None
    """

    refresh_token: str
    ip: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True, slots=True)
class SessionListIn:
    """
    Query for the active sessions of a user.

    ``ip``, ``os``, ``device`` and ``browser`` are substring filters.
    """

    page: int = 1
    per_page: int = 10
    ip: str | None = None
    os: str | None = None
    device: str | None = None
    browser: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SessionTokensOut:
    """
    Credentials returned by sign-in and refresh.

    :param access_token: Access token (scope ``access``, subject = user id).
    :param refresh_token: Refresh token (scope ``refresh``, subject = session id).
    :param expires_in: Access token lifetime in seconds.
    :param token_type: Always ``"Bearer"``.
    :param username: Username of the signed-in user.
    :param user_id: Id of the signed-in user.
    :param session_id: Id of the session row created for ``access_token``.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    username: str
    user_id: uuid.UUID
    session_id: uuid.UUID
    token_type: str = "Bearer"


@dataclass(frozen=True, slots=True)
class SessionOut:
    id: uuid.UUID
    ip: str
    os: str
    device: str
    browser: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class SessionPageOut:
    """
    One page of active sessions, newest first.
    """

    items: list[SessionOut]
    total_items: int
    total_pages: int
    page: int
    per_page: int
    has_next_page: bool
    has_previous_page: bool


# ------------------------------ Policy ------------------------------------ #


@dataclass(frozen=True, slots=True)
class SessionPolicy:
    """
    Token lifetime and listing policy.

    :param access_ttl_seconds: Access token lifetime; refresh tokens live twice as long.
    :type access_ttl_seconds: int
    :param rotate_refresh_tokens: Issue a new refresh token on every refresh.
    :type rotate_refresh_tokens: bool
    :param max_per_page: Upper bound for ``page`` and ``per_page``.
    :type max_per_page: int
    """

    access_ttl_seconds: int = 43_200
    rotate_refresh_tokens: bool = False
    max_per_page: int = 99

    @property
    def refresh_ttl_seconds(self) -> int:
        return self.access_ttl_seconds * 2

"""Access guard: turn an ``Authorization`` header into an authenticated identity.

The guard runs on every authenticated request and caches nothing. A token is
accepted only when its signature and expiry check out, its user exists and
is not banned, and the session row holding that exact token is active.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from accounts.models.session import TokenType
from accounts.services._shared.dto import AuthenticatedIdentity
from accounts.services._shared.errors import InvalidAccessToken, Unauthorized, UserBanned
from accounts.services._shared.ports.token_codec import ACCESS_SCOPE, TokenCodec
from accounts.uow import SQLAlchemyReadOnlyUnitOfWork, UnitOfWork

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True, slots=True)
class GuardDeps:
    """
    Collaborators of :func:`authenticate`.

    :param codec: Token codec verifying the bearer token.
    :type codec: TokenCodec
    :param uow_factory: Builds the unit of work used for user and session lookups.
    :type uow_factory: Callable[[], UnitOfWork]
    """

    codec: TokenCodec
    uow_factory: Callable[[], UnitOfWork] = field(default=SQLAlchemyReadOnlyUnitOfWork)


def extract_bearer(header_value: str | None) -> str:
    """
    Return the token of a ``Bearer <token>`` header value.

    :raises Unauthorized: Header missing, wrong scheme or empty token.
    """
    if not header_value:
        raise Unauthorized("Missing Authorization header.")
    if not header_value.startswith(BEARER_PREFIX):
        raise Unauthorized("Invalid Authorization header format.")
    token = header_value[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized("Invalid Authorization header format.")
    return token


def authenticate(header_value: str | None, deps: GuardDeps) -> AuthenticatedIdentity:
    """
    Authenticate a request from its raw ``Authorization`` header.

    :param header_value: Raw header value, ``None`` when absent.
    :param deps: Codec and unit-of-work factory.
    :returns: Identity carrying the verified claims and the raw token.
    :raises Unauthorized: Bad header, or the token's user does not exist.
    :raises SignatureInvalid: Tampered or malformed token.
    :raises ExpiredToken: Token past its expiry.
    :raises MissingScope: Token without the ``access`` scope.
    :raises UserBanned: The user is banned.
    :raises InvalidAccessToken: No active session row holds the token.
    """
    token = extract_bearer(header_value)
    claims = deps.codec.verify_scope(token, ACCESS_SCOPE)

    try:
        user_id = uuid.UUID(claims.subject)
    except ValueError as exc:
        raise Unauthorized("Cannot validate the token user.") from exc

    with deps.uow_factory() as uow:
        user = uow.users.get(user_id)
        if user is None:
            raise Unauthorized("Cannot validate the token user.")
        if user.ban:
            raise UserBanned(user.ban_reason)

        record = uow.sessions.find_by_user_and_token(
            user_id, token, TokenType.ACCESS, active=True
        )
        if record is None:
            raise InvalidAccessToken()

        return AuthenticatedIdentity(
            user_id=user_id,
            username=user.username,
            session_id=record.id,
            claims=claims,
            token=token,
        )

# comments in English; reST docstrings strict
from __future__ import annotations

import uuid
from dataclasses import dataclass

from accounts.services._shared.ports.token_codec import ClaimSet


@dataclass(frozen=True, slots=True)
class AuthenticatedIdentity:
    """
    Result of a successful access check.

    :param user_id: Authenticated user.
    :type user_id: uuid.UUID
    :param username: Username at the time of the check.
    :type username: str
    :param session_id: Session row backing the presented token.
    :type session_id: uuid.UUID
    :param claims: Verified claim set of the token.
    :type claims: ClaimSet
    :param token: Raw token string, needed to locate the exact session row.
    :type token: str
    """

    user_id: uuid.UUID
    username: str
    session_id: uuid.UUID
    claims: ClaimSet
    token: str

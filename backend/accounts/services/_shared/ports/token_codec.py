from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

# Scope strings embedded in issued tokens
ACCESS_SCOPE = "access"
REFRESH_SCOPE = "refresh"
RESET_PASSWORD_SCOPE = "reset-password"


@dataclass(frozen=True, slots=True)
class ClaimSet:
    """
    Decoded payload of a signed token.

    :param subject: User id, session id or reset token depending on the scope.
    :type subject: str
    :param expires_at: Absolute expiry, unix seconds.
    :type expires_at: int
    :param scopes: Capabilities granted by the token.
    :type scopes: frozenset[str]
    :param token_id: Random per-token identifier (``jti``).
    :type token_id: str
    """

    subject: str
    expires_at: int
    scopes: frozenset[str]
    token_id: str

    def has_scope(self, scope: str) -> bool:
        return scope in self.scopes


class TokenCodec(Protocol):
    """Port for issuing and verifying signed, expiring claim sets."""

    def issue(self, subject: str, scopes: Iterable[str], ttl_seconds: int) -> str: ...

    def verify(self, token: str) -> ClaimSet: ...

    def verify_scope(self, token: str, required_scope: str) -> ClaimSet: ...

    def verify_scopes(self, token: str, required_scopes: Iterable[str]) -> ClaimSet: ...

"""PyJWT adapter implementing the token codec port."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Any

import jwt

from accounts.services._shared.errors import ExpiredToken, MissingScope, SignatureInvalid
from accounts.services._shared.ports.clock import Clock
from accounts.services._shared.ports.token_codec import ClaimSet, TokenCodec

SUPPORTED_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})


class JWTTokenCodec(TokenCodec):
    """
    Sign and verify HMAC JWTs carrying ``sub``, ``exp``, ``scopes`` and ``jti``.

    Expiry is checked against the injected clock *after* the signature and
    structure, so an expired token is reported as :class:`ExpiredToken` and
    never as :class:`SignatureInvalid`. A token is expired from its ``exp``
    second onwards.

    ``exp`` is whole seconds counted from the floored issue second, so the
    boundary is conservative: a token may be reported expired up to one
    second before ``ttl_seconds`` have fully elapsed, never after.

    The secret and algorithm are fixed at construction; the codec holds no
    other state and is safe to share across threads.

    :param secret: Symmetric signing key.
    :param clock: Source of the current time.
    :param algorithm: One of ``HS256``, ``HS384``, ``HS512``.
    """

    def __init__(self, *, secret: str, clock: Clock, algorithm: str = "HS256") -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty.")
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm: {algorithm}")
        self._secret = secret
        self._algorithm = algorithm
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue(self, subject: str, scopes: Iterable[str], ttl_seconds: int) -> str:
        """
        Sign a new claim set expiring ``ttl_seconds`` from now.

        :param subject: Token subject (user id, session id or reset token).
        :param scopes: Scope strings granted by the token.
        :param ttl_seconds: Lifetime in seconds (must be positive).
        :returns: Compact JWS string.
        :raises ClockError: If the clock cannot be read.
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive.")
        now = int(self._clock.now().timestamp())
        payload: dict[str, Any] = {
            "sub": str(subject),
            "exp": now + int(ttl_seconds),
            "scopes": sorted(set(scopes)),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    # ------------------------------------------------------------------ #
    # Verify
    # ------------------------------------------------------------------ #

    def verify(self, token: str) -> ClaimSet:
        """
        Decode ``token`` and return its claims.

        :raises SignatureInvalid: Tampered, malformed or foreign-key token.
        :raises ExpiredToken: Valid token whose expiry has passed.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "require": ["sub", "exp"]},
            )
        except jwt.InvalidTokenError as exc:
            raise SignatureInvalid() from exc

        claims = self._to_claims(payload)
        if int(self._clock.now().timestamp()) >= claims.expires_at:
            raise ExpiredToken()
        return claims

    def verify_scope(self, token: str, required_scope: str) -> ClaimSet:
        """
        Verify ``token`` and require ``required_scope`` in its scope set.

        :raises MissingScope: If the scope is absent.
        """
        return self.verify_scopes(token, (required_scope,))

    def verify_scopes(self, token: str, required_scopes: Iterable[str]) -> ClaimSet:
        """Verify ``token`` and require every scope in ``required_scopes``."""
        claims = self.verify(token)
        for scope in required_scopes:
            if not claims.has_scope(scope):
                raise MissingScope(scope)
        return claims

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _to_claims(payload: dict[str, Any]) -> ClaimSet:
        subject = payload.get("sub")
        expires_at = payload.get("exp")
        scopes = payload.get("scopes", [])
        token_id = payload.get("jti", "")
        if (
            not isinstance(subject, str)
            or not subject
            or isinstance(expires_at, bool)
            or not isinstance(expires_at, int)
            or not isinstance(scopes, list)
            or not all(isinstance(s, str) for s in scopes)
            or not isinstance(token_id, str)
        ):
            raise SignatureInvalid("Malformed token claims.")
        return ClaimSet(
            subject=subject,
            expires_at=expires_at,
            scopes=frozenset(scopes),
            token_id=token_id,
        )

# accounts/services/sessions/service.py
from __future__ import annotations

import logging
import uuid
from typing import NoReturn

from accounts.infra.user_agent import parse_client
from accounts.models.session import TokenType, UserSession
from accounts.services._shared.base import BaseService
from accounts.services._shared.dto import AuthenticatedIdentity
from accounts.services._shared.errors import (
    CredentialFailure,
    InvalidAccessToken,
    InvalidCredentials,
    InvalidRefreshToken,
    MissingScope,
    SessionAlreadyRevoked,
    SessionNotBelongToUser,
    SessionNotFound,
    Unauthorized,
    UserBanned,
)
from accounts.services._shared.ports.clock import Clock
from accounts.services._shared.ports.password_authority import PasswordAuthority
from accounts.services._shared.ports.token_codec import ACCESS_SCOPE, REFRESH_SCOPE, TokenCodec
from accounts.services.sessions.dto import (
    RefreshIn,
    SessionListIn,
    SessionOut,
    SessionPageOut,
    SessionPolicy,
    SessionTokensOut,
    SignInIn,
)

log = logging.getLogger(__name__)


class SessionService(BaseService):
    """
    Session lifecycle: sign-in, refresh, sign-out and revocation.

    A signed access token is honored only while the session row storing that
    exact token is active. This service alone decides when such rows are
    created or deactivated; every multi-row change runs in one unit of work.

    Lifecycle of a session row::

        issued (active) --refresh--> superseded (inactive)
                        --sign-out / revoke / revoke-all--> revoked (inactive)
                        --ttl elapses--> expired (token rejected by the codec)
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        passwords: PasswordAuthority,
        policy: SessionPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param codec: Token codec used to sign and verify credentials.
        :param passwords: Password authority used to check sign-in passwords.
        :param policy: Token lifetimes and listing limits.
        :param clock: Time source for session timestamps.
        """
        super().__init__(clock=clock)
        self.codec = codec
        self.passwords = passwords
        self.policy = policy or SessionPolicy()

    # ------------------------------------------------------------------ #
    # Sign-in
    # ------------------------------------------------------------------ #

    def sign_in(self, dto: SignInIn) -> SessionTokensOut:
        """
        Check credentials and open a new session.

        :param dto: Sign-in input.
        :returns: Access token, refresh token and session metadata.
        :raises InvalidCredentials: Unknown user, missing password or wrong password.
        :raises UserBanned: Valid credentials for a banned account.
        """
        with self.ro_uow() as uow:
            user = uow.users.get_by_username(dto.username)
            if user is None:
                self._reject(CredentialFailure.USER_NOT_FOUND)
            record = uow.passwords.get_by_user(user.id)
            if record is None:
                self._reject(CredentialFailure.PASSWORD_NOT_SET)
            user_id, username = user.id, user.username
            banned, ban_reason = user.ban, user.ban_reason
            stored_hash = record.hash

        if not self.passwords.verify(dto.password, stored_hash):
            self._reject(CredentialFailure.WRONG_PASSWORD)
        if banned:
            log.warning(
                "auth.sign_in.banned",
                extra={"event": "auth.sign_in", "user_id": str(user_id), "reason": "banned"},
            )
            raise UserBanned(ban_reason)

        session_id = uuid.uuid4()
        access_token = self._issue_access(user_id)
        refresh_token = self._issue_refresh(session_id)

        with self.rw_uow() as uow:
            uow.sessions.insert(self._new_session(session_id, user_id, access_token, dto))

        log.info(
            "auth.sign_in",
            extra={"event": "auth.sign_in", "user_id": str(user_id), "session_id": str(session_id)},
        )
        return SessionTokensOut(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.policy.access_ttl_seconds,
            username=username,
            user_id=user_id,
            session_id=session_id,
        )

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> SessionTokensOut:
        """
        Supersede the session bound to a refresh token with a new one.

        The old row is deactivated and the new row inserted in the same
        transaction. Unless refresh rotation is enabled the presented refresh
        token is returned unchanged; it stays bound to the superseded session.

        :param dto: Refresh input.
        :returns: New access token and session metadata.
        :raises SignatureInvalid: Tampered or malformed token.
        :raises ExpiredToken: Refresh token past its expiry.
        :raises InvalidRefreshToken: Token without the ``refresh`` scope or with a bad subject.
        :raises InvalidAccessToken: The bound session is no longer active.
        """
        try:
            claims = self.codec.verify_scope(dto.refresh_token, REFRESH_SCOPE)
        except MissingScope as exc:
            raise InvalidRefreshToken() from exc
        old_session_id = self._parse_uuid(claims.subject, InvalidRefreshToken)

        new_session_id = uuid.uuid4()
        with self.rw_uow() as uow:
            old = uow.sessions.find_by_id(
                old_session_id, for_update=True, token_type=TokenType.ACCESS, active=True
            )
            if old is None:
                raise InvalidAccessToken()
            user = uow.users.get(old.user_id)
            if user is None:
                raise InvalidAccessToken()
            if user.ban:
                raise UserBanned(user.ban_reason)
            user_id, username = user.id, user.username

            uow.sessions.deactivate(old)

            access_token = self._issue_access(user_id)
            refresh_token = (
                self._issue_refresh(new_session_id)
                if self.policy.rotate_refresh_tokens
                else dto.refresh_token
            )
            uow.sessions.insert(self._new_session(new_session_id, user_id, access_token, dto))

        log.info(
            "auth.refresh",
            extra={
                "event": "auth.refresh",
                "user_id": str(user_id),
                "session_id": str(new_session_id),
            },
        )
        return SessionTokensOut(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.policy.access_ttl_seconds,
            username=username,
            user_id=user_id,
            session_id=new_session_id,
        )

    # ------------------------------------------------------------------ #
    # Sign-out & revocation
    # ------------------------------------------------------------------ #

    def sign_out(self, identity: AuthenticatedIdentity) -> None:
        """
        Deactivate the session row holding the presented access token.

        :raises Unauthorized: No active row matches the token.
        """
        with self.rw_uow() as uow:
            record = uow.sessions.find_by_user_and_token(
                identity.user_id, identity.token, TokenType.ACCESS, active=True
            )
            if record is None:
                raise Unauthorized("Session not found.")
            uow.sessions.deactivate(record)
            session_id = record.id

        log.info(
            "auth.sign_out",
            extra={
                "event": "auth.sign_out",
                "user_id": str(identity.user_id),
                "session_id": str(session_id),
            },
        )

    def revoke(self, user_id: uuid.UUID, session_id: uuid.UUID | None = None) -> int:
        """
        Revoke one session of ``user_id``, or all of them when ``session_id`` is ``None``.

        :returns: Number of sessions deactivated.
        :raises SessionNotFound: No session with that id exists.
        :raises SessionNotBelongToUser: The session belongs to another user.
        :raises SessionAlreadyRevoked: The session is already inactive.
        """
        if session_id is None:
            return self.revoke_all(user_id)

        with self.rw_uow() as uow:
            record = uow.sessions.find_by_id(session_id, for_update=True)
            if record is None:
                raise SessionNotFound()
            if record.user_id != user_id:
                raise SessionNotBelongToUser()
            if not record.active:
                raise SessionAlreadyRevoked()
            uow.sessions.deactivate(record)

        log.info(
            "auth.revoke",
            extra={"event": "auth.revoke", "user_id": str(user_id), "session_id": str(session_id)},
        )
        return 1

    def revoke_all(self, user_id: uuid.UUID) -> int:
        """Deactivate every session of ``user_id``. Idempotent."""
        with self.rw_uow() as uow:
            count = uow.sessions.bulk_deactivate(user_id)

        log.info("auth.revoke_all", extra={"event": "auth.revoke_all", "user_id": str(user_id)})
        return count

    # ------------------------------------------------------------------ #
    # Listing
    # ------------------------------------------------------------------ #

    def list_sessions(self, user_id: uuid.UUID, dto: SessionListIn) -> SessionPageOut:
        """Return one page of the active sessions of ``user_id``, newest first."""
        pagination = self.ensure_pagination(
            page=dto.page, limit=dto.per_page, max_value=self.policy.max_per_page
        )
        search = {"ip": dto.ip, "os": dto.os, "device": dto.device, "browser": dto.browser}
        with self.ro_uow() as uow:
            page = uow.sessions.paginate(user_id, pagination, search=search)
            items = [self._to_session_out(record) for record in page.items]

        return SessionPageOut(
            items=items,
            total_items=page.total,
            total_pages=page.total_pages,
            page=page.page,
            per_page=page.limit,
            has_next_page=page.has_next,
            has_previous_page=page.has_previous,
        )

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _issue_access(self, user_id: uuid.UUID) -> str:
        return self.codec.issue(str(user_id), [ACCESS_SCOPE], self.policy.access_ttl_seconds)

    def _issue_refresh(self, session_id: uuid.UUID) -> str:
        return self.codec.issue(str(session_id), [REFRESH_SCOPE], self.policy.refresh_ttl_seconds)

    def _new_session(
        self,
        session_id: uuid.UUID,
        user_id: uuid.UUID,
        access_token: str,
        dto: SignInIn | RefreshIn,
    ) -> UserSession:
        client = parse_client(dto.ip, dto.user_agent)
        now = self.now_utc()
        return UserSession(
            id=session_id,
            user_id=user_id,
            token=access_token,
            token_type=TokenType.ACCESS,
            ip=client.ip,
            os=client.os,
            device=client.device,
            browser=client.browser,
            active=True,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def _reject(reason: CredentialFailure) -> NoReturn:
        log.warning(
            "auth.sign_in.rejected",
            extra={"event": "auth.sign_in", "reason": reason.value},
        )
        raise InvalidCredentials(reason)

    @staticmethod
    def _parse_uuid(value: str, error: type[Exception]) -> uuid.UUID:
        try:
            return uuid.UUID(value)
        except ValueError as exc:
            raise error() from exc

    @staticmethod
    def _to_session_out(record: UserSession) -> SessionOut:
        return SessionOut(
            id=record.id,
            ip=record.ip,
            os=record.os,
            device=record.device,
            browser=record.browser,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

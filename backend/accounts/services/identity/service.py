"""
IdentityService
===============

Account flows around the session core:

- Registration (user + inactive email + password in one transaction) and
  email activation.
- ``me`` view, username change and password change.
- Password reset: a throttled request that emails a signed reset link, then
  the reset itself.

The activation email goes out after the registration commits. The reset
email is sent inside its transaction so a delivery failure leaves no
dangling reset token.
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from urllib.parse import urlencode

from sqlalchemy.exc import IntegrityError

from accounts.models.user import User, UserEmail, UserPassword
from accounts.services._shared.base import BaseService, as_utc
from accounts.services._shared.errors import (
    ConflictError,
    InvalidActivationToken,
    InvalidResetToken,
    NotFoundError,
    PasswordMismatch,
    ResetPasswordThrottled,
    violates,
)
from accounts.services._shared.ports.clock import Clock
from accounts.services._shared.ports.mailer import Mailer, OutgoingMail
from accounts.services._shared.ports.password_authority import PasswordAuthority
from accounts.services._shared.ports.token_codec import RESET_PASSWORD_SCOPE, TokenCodec
from accounts.services.identity.dto import (
    AccountSettings,
    ActivateEmailIn,
    PasswordChangeIn,
    PasswordResetIn,
    RegisterIn,
    UserOut,
)

log = logging.getLogger(__name__)


class IdentityService(BaseService):
    """
    Application service for the user aggregate.
    """

    def __init__(
        self,
        *,
        passwords: PasswordAuthority,
        codec: TokenCodec,
        mailer: Mailer,
        settings: AccountSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        :param passwords: Password authority used to hash and verify passwords.
        :param codec: Token codec used for password reset tokens.
        :param mailer: Outgoing mail port.
        :param settings: Public URL and reset policy.
        :param clock: Time source for the reset cooldown.
        """
        super().__init__(clock=clock)
        self.passwords = passwords
        self.codec = codec
        self.mailer = mailer
        self.settings = settings or AccountSettings()

    # --------------------------------------------------------------------- #
    # Registration
    # --------------------------------------------------------------------- #

    def register(self, dto: RegisterIn) -> UserOut:
        """
        Create a user with an inactive email and a password, then email the activation link.

        :param dto: Registration input.
        :returns: Created account.
        :raises ConflictError: Username or email already taken.
        :raises PasswordHashingFailure: The password could not be hashed.
        """
        digest = self.passwords.hash(dto.password)

        with self.rw_uow() as uow:
            if uow.users.username_taken(dto.username):
                raise ConflictError("User", "username already exists")
            if uow.emails.address_taken(dto.email):
                raise ConflictError("UserEmail", "email already in use")

            try:
                user = uow.users.add(User(username=dto.username))
                email = uow.emails.add(
                    UserEmail(user_id=user.id, address=dto.email, activation_token=uuid.uuid4())
                )
                uow.passwords.add(
                    UserPassword(user_id=user.id, hash=digest.hash, salt=digest.salt)
                )
            except IntegrityError as exc:
                if violates(exc, "uq_users_username", "users.username"):
                    raise ConflictError("User", "username already exists") from exc
                if violates(exc, "uq_user_emails_address", "user_emails.address"):
                    raise ConflictError("UserEmail", "email already in use") from exc
                raise

            out = self._to_user_out(user, email)
            mail = self._activation_mail(email)

        self.mailer.send(mail)

        log.info("identity.register", extra={"event": "identity.register", "user_id": str(out.id)})
        return out

    def activate_email(self, dto: ActivateEmailIn) -> None:
        """
        Activate the email of ``dto.user_id`` and rotate its activation token.

        :raises InvalidActivationToken: No inactive email matches the token.
        """
        with self.rw_uow() as uow:
            email = uow.emails.find_pending_activation(dto.user_id, dto.token)
            if email is None:
                raise InvalidActivationToken()
            uow.emails.update(email, active=True, activation_token=uuid.uuid4())

        log.info(
            "identity.email_activated",
            extra={"event": "identity.email_activated", "user_id": str(dto.user_id)},
        )

    # --------------------------------------------------------------------- #
    # Profile
    # --------------------------------------------------------------------- #

    def me(self, user_id: uuid.UUID) -> UserOut:
        """
        :raises NotFoundError: Unknown user.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", str(user_id))
            return self._to_user_out(user, uow.emails.get_by_user(user_id))

    def change_username(self, user_id: uuid.UUID, username: str) -> UserOut:
        """
        :raises ConflictError: Another user holds ``username``.
        :raises NotFoundError: Unknown user.
        """
        with self.rw_uow() as uow:
            user = uow.users.get_for_update(user_id)
            if user is None:
                raise NotFoundError("User", str(user_id))
            if uow.users.username_taken(username, exclude_id=user_id):
                raise ConflictError("User", "username already exists")
            uow.users.update(user, username=username)
            out = self._to_user_out(user, uow.emails.get_by_user(user_id))
        return out

    # --------------------------------------------------------------------- #
    # Passwords
    # --------------------------------------------------------------------- #

    def change_password(self, user_id: uuid.UUID, dto: PasswordChangeIn) -> None:
        """
        Replace the password after checking the current one.

        :raises PasswordMismatch: ``current_password`` is wrong.
        :raises NotFoundError: The user has no password record.
        """
        with self.rw_uow() as uow:
            record = uow.passwords.get_by_user(user_id, for_update=True)
            if record is None:
                raise NotFoundError("UserPassword", str(user_id))
            if not self.passwords.verify(dto.current_password, record.hash):
                raise PasswordMismatch()
            digest = self.passwords.hash(dto.new_password)
            uow.passwords.update(record, hash=digest.hash, salt=digest.salt, reset_token=None)

        log.info(
            "identity.password_changed",
            extra={"event": "identity.password_changed", "user_id": str(user_id)},
        )

    def request_password_reset(self, username: str) -> None:
        """
        Store a reset token and email a signed reset link.

        :raises NotFoundError: Unknown user, or user without email or password.
        :raises ResetPasswordThrottled: The previous request is still cooling down.
        """
        now = self.now_utc()
        with self.rw_uow() as uow:
            user = uow.users.get_by_username(username)
            if user is None:
                raise NotFoundError("User", username)
            email = uow.emails.get_by_user(user.id)
            record = uow.passwords.get_by_user(user.id, for_update=True)
            if email is None or record is None:
                raise NotFoundError("User", username)

            if record.reset_token_retry is not None and as_utc(record.reset_token_retry) > now:
                raise ResetPasswordThrottled()

            reset_token = uuid.uuid4()
            uow.passwords.update(
                record,
                reset_token=reset_token,
                reset_token_retry=now + timedelta(seconds=self.settings.reset_cooldown_seconds),
            )
            signed = self.codec.issue(
                str(reset_token), [RESET_PASSWORD_SCOPE], self.settings.reset_token_ttl_seconds
            )
            self.mailer.send(self._reset_mail(email.address, signed))
            user_id = user.id

        log.info(
            "identity.reset_requested",
            extra={"event": "identity.reset_requested", "user_id": str(user_id)},
        )

    def reset_password(self, dto: PasswordResetIn) -> None:
        """
        Set a new password from a reset token and consume the token.

        :raises SignatureInvalid: Tampered token.
        :raises ExpiredToken: Token past its expiry.
        :raises MissingScope: Token without the ``reset-password`` scope.
        :raises InvalidResetToken: The token was already used or superseded.
        """
        claims = self.codec.verify_scope(dto.token, RESET_PASSWORD_SCOPE)
        try:
            reset_token = uuid.UUID(claims.subject)
        except ValueError as exc:
            raise InvalidResetToken() from exc

        digest = self.passwords.hash(dto.new_password)
        with self.rw_uow() as uow:
            record = uow.passwords.get_by_reset_token(reset_token)
            if record is None:
                raise InvalidResetToken()
            uow.passwords.update(record, hash=digest.hash, salt=digest.salt, reset_token=None)
            user_id = record.user_id

        log.info(
            "identity.password_reset",
            extra={"event": "identity.password_reset", "user_id": str(user_id)},
        )

    # --------------------------------------------------------------------- #
    # Helpers
    # --------------------------------------------------------------------- #

    def _activation_mail(self, email: UserEmail) -> OutgoingMail:
        query = urlencode({"user_id": str(email.user_id), "token": str(email.activation_token)})
        link = f"{self.settings.public_url.rstrip('/')}/user/activate?{query}"
        return OutgoingMail(
            to=email.address,
            subject="Activate your account",
            body=f"Welcome! Confirm your email address by opening this link:\n\n{link}\n",
        )

    def _reset_mail(self, address: str, signed_token: str) -> OutgoingMail:
        link = f"{self.settings.public_url.rstrip('/')}/user/reset-password?token={signed_token}"
        return OutgoingMail(
            to=address,
            subject="Reset your password",
            body=(
                "A password reset was requested for your account. Open this link to choose "
                f"a new password:\n\n{link}\n\nIf you did not ask for it, ignore this email.\n"
            ),
        )

    @staticmethod
    def _to_user_out(user: User, email: UserEmail | None) -> UserOut:
        return UserOut(
            id=user.id,
            username=user.username,
            email=email.address if email is not None else None,
            email_active=email.active if email is not None else False,
            created_at=user.created_at,
        )

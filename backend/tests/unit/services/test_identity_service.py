"""Unit tests for registration, activation, profile and password flows."""

from __future__ import annotations

import re
import uuid
from urllib.parse import parse_qs, urlsplit

import pytest

from accounts.models.user import UserEmail, UserPassword
from accounts.services._shared.errors import (
    ConflictError,
    ExpiredToken,
    InvalidActivationToken,
    InvalidResetToken,
    MissingScope,
    NotFoundError,
    PasswordMismatch,
    ResetPasswordThrottled,
)
from tests.helpers.mailer import InMemoryMailer
from accounts.services._shared.ports.token_codec import ACCESS_SCOPE, RESET_PASSWORD_SCOPE
from accounts.services.identity.dto import (
    AccountSettings,
    ActivateEmailIn,
    PasswordChangeIn,
    PasswordResetIn,
    RegisterIn,
)
from accounts.services.identity.service import IdentityService
from tests.factories.user import DEFAULT_PASSWORD, AccountFactory, UserFactory

LINK = re.compile(r"https://app\.example\.test/\S+")


def _link(mail) -> str:
    match = LINK.search(mail.body)
    assert match is not None, mail.body
    return match.group(0)


def _query(mail) -> dict[str, list[str]]:
    return parse_qs(urlsplit(_link(mail)).query)


def _reset_token(mail) -> str:
    return _query(mail)["token"][0]


def _activation_token(mail) -> uuid.UUID:
    return uuid.UUID(_query(mail)["token"][0])


def _password_record(session, user_id) -> UserPassword:
    session.expire_all()
    return session.query(UserPassword).filter_by(user_id=user_id).one()


class TestRegister:
    def test_creates_user_with_inactive_email_and_hashed_password(
        self, identity_service, authority, session
    ):
        out = identity_service.register(
            RegisterIn(username="carol", email="Carol@Example.com", password="hunter22")
        )

        assert out.username == "carol"
        assert out.email == "carol@example.com"
        assert out.email_active is False

        record = _password_record(session, out.id)
        assert record.hash != "hunter22"
        assert authority.verify("hunter22", record.hash)

    def test_sends_activation_link(self, identity_service, session):
        out = identity_service.register(
            RegisterIn(username="dave", email="dave@example.com", password="hunter22")
        )

        (mail,) = identity_service.mailer.outbox
        assert mail.to == "dave@example.com"
        link = urlsplit(_link(mail))
        assert link.path == "/user/activate"
        query = parse_qs(link.query)
        assert query["user_id"] == [str(out.id)]

        session.expire_all()
        email = session.query(UserEmail).filter_by(user_id=out.id).one()
        assert query["token"] == [str(email.activation_token)]

    def test_duplicate_username(self, identity_service):
        UserFactory(username="erin")

        with pytest.raises(ConflictError) as excinfo:
            identity_service.register(
                RegisterIn(username="erin", email="erin@example.com", password="hunter22")
            )

        assert excinfo.value.entity == "User"
        assert identity_service.mailer.outbox == []

    def test_duplicate_email_ignores_case(self, identity_service):
        AccountFactory(username="frank")

        with pytest.raises(ConflictError) as excinfo:
            identity_service.register(
                RegisterIn(username="frank2", email="FRANK@example.com", password="hunter22")
            )

        assert excinfo.value.entity == "UserEmail"


class TestActivateEmail:
    def test_activates_and_rotates_token(self, identity_service, session):
        out = identity_service.register(
            RegisterIn(username="gina", email="gina@example.com", password="hunter22")
        )
        token = _activation_token(identity_service.mailer.outbox[0])

        identity_service.activate_email(ActivateEmailIn(user_id=out.id, token=token))

        assert identity_service.me(out.id).email_active is True
        session.expire_all()
        assert session.query(UserEmail).filter_by(user_id=out.id).one().activation_token != token

    def test_token_cannot_be_used_twice(self, identity_service):
        out = identity_service.register(
            RegisterIn(username="hank", email="hank@example.com", password="hunter22")
        )
        token = _activation_token(identity_service.mailer.outbox[0])
        identity_service.activate_email(ActivateEmailIn(user_id=out.id, token=token))

        with pytest.raises(InvalidActivationToken):
            identity_service.activate_email(ActivateEmailIn(user_id=out.id, token=token))

    def test_wrong_token(self, identity_service):
        out = identity_service.register(
            RegisterIn(username="ivy", email="ivy@example.com", password="hunter22")
        )

        with pytest.raises(InvalidActivationToken):
            identity_service.activate_email(ActivateEmailIn(user_id=out.id, token=uuid.uuid4()))


class TestProfile:
    def test_me(self, identity_service):
        user = AccountFactory(username="jane")

        out = identity_service.me(user.id)

        assert out.id == user.id
        assert out.username == "jane"
        assert out.email == "jane@example.com"
        assert out.email_active is True

    def test_me_without_email(self, identity_service):
        user = UserFactory()

        out = identity_service.me(user.id)

        assert out.email is None
        assert out.email_active is False

    def test_me_unknown_user(self, identity_service):
        with pytest.raises(NotFoundError):
            identity_service.me(uuid.uuid4())

    def test_change_username(self, identity_service):
        user = AccountFactory(username="kate")

        out = identity_service.change_username(user.id, "katherine")

        assert out.username == "katherine"
        assert identity_service.me(user.id).username == "katherine"

    def test_keeping_the_same_username_is_allowed(self, identity_service):
        user = AccountFactory(username="leo")

        assert identity_service.change_username(user.id, "leo").username == "leo"

    def test_change_username_conflict(self, identity_service):
        AccountFactory(username="mia")
        user = AccountFactory(username="nina")

        with pytest.raises(ConflictError):
            identity_service.change_username(user.id, "mia")

        assert identity_service.me(user.id).username == "nina"


class TestChangePassword:
    def test_replaces_hash(self, identity_service, authority, session):
        user = AccountFactory()

        identity_service.change_password(
            user.id, PasswordChangeIn(current_password=DEFAULT_PASSWORD, new_password="brand-new")
        )

        record = _password_record(session, user.id)
        assert authority.verify("brand-new", record.hash)
        assert not authority.verify(DEFAULT_PASSWORD, record.hash)

    def test_wrong_current_password(self, identity_service, authority, session):
        user = AccountFactory()

        with pytest.raises(PasswordMismatch):
            identity_service.change_password(
                user.id, PasswordChangeIn(current_password="guess", new_password="brand-new")
            )

        assert authority.verify(DEFAULT_PASSWORD, _password_record(session, user.id).hash)

    def test_user_without_password(self, identity_service):
        user = UserFactory()

        with pytest.raises(NotFoundError):
            identity_service.change_password(
                user.id, PasswordChangeIn(current_password="x", new_password="brand-new")
            )

    def test_invalidates_pending_reset_token(self, identity_service):
        user = AccountFactory()
        identity_service.request_password_reset(user.username)
        token = _reset_token(identity_service.mailer.outbox[-1])

        identity_service.change_password(
            user.id, PasswordChangeIn(current_password=DEFAULT_PASSWORD, new_password="brand-new")
        )

        with pytest.raises(InvalidResetToken):
            identity_service.reset_password(PasswordResetIn(token=token, new_password="other-one"))


class TestPasswordReset:
    def test_request_mails_a_signed_reset_link(self, identity_service, codec, session):
        user = AccountFactory(username="olga")

        identity_service.request_password_reset("olga")

        (mail,) = identity_service.mailer.outbox
        assert mail.to == "olga@example.com"
        assert urlsplit(_link(mail)).path == "/user/reset-password"
        claims = codec.verify_scope(_reset_token(mail), RESET_PASSWORD_SCOPE)
        assert claims.subject == str(_password_record(session, user.id).reset_token)

    def test_request_is_throttled_until_the_cooldown_ends(self, identity_service, clock):
        user = AccountFactory()
        identity_service.request_password_reset(user.username)

        clock.advance(seconds=3_599)
        with pytest.raises(ResetPasswordThrottled):
            identity_service.request_password_reset(user.username)

        clock.advance(seconds=1)
        identity_service.request_password_reset(user.username)
        assert len(identity_service.mailer.outbox) == 2

    @pytest.mark.parametrize("existing", [False, True])
    def test_request_for_incomplete_or_unknown_account(self, identity_service, existing):
        username = UserFactory().username if existing else "ghost"

        with pytest.raises(NotFoundError):
            identity_service.request_password_reset(username)

    def test_reset_sets_the_new_password_once(self, identity_service, authority, session):
        user = AccountFactory()
        identity_service.request_password_reset(user.username)
        token = _reset_token(identity_service.mailer.outbox[-1])

        identity_service.reset_password(PasswordResetIn(token=token, new_password="fresh-pass"))

        record = _password_record(session, user.id)
        assert authority.verify("fresh-pass", record.hash)
        assert record.reset_token is None
        with pytest.raises(InvalidResetToken):
            identity_service.reset_password(PasswordResetIn(token=token, new_password="again-pass"))

    def test_newer_request_supersedes_older_token(self, codec, authority, clock):
        service = IdentityService(
            passwords=authority,
            codec=codec,
            mailer=InMemoryMailer(),
            settings=AccountSettings(
                public_url="https://app.example.test", reset_cooldown_seconds=60
            ),
            clock=clock,
        )
        user = AccountFactory()
        service.request_password_reset(user.username)
        first = _reset_token(service.mailer.outbox[-1])
        clock.advance(seconds=60)
        service.request_password_reset(user.username)

        with pytest.raises(InvalidResetToken):
            service.reset_password(PasswordResetIn(token=first, new_password="fresh-pass"))

    def test_expired_reset_token(self, identity_service, clock):
        user = AccountFactory()
        identity_service.request_password_reset(user.username)
        token = _reset_token(identity_service.mailer.outbox[-1])
        clock.advance(seconds=3_600)

        with pytest.raises(ExpiredToken):
            identity_service.reset_password(PasswordResetIn(token=token, new_password="fresh-pass"))

    def test_access_token_cannot_reset(self, identity_service, codec):
        user = AccountFactory()
        token = codec.issue(str(user.id), [ACCESS_SCOPE], 60)

        with pytest.raises(MissingScope):
            identity_service.reset_password(PasswordResetIn(token=token, new_password="fresh-pass"))

    def test_reset_token_with_foreign_subject(self, identity_service, codec):
        token = codec.issue("not-a-uuid", [RESET_PASSWORD_SCOPE], 60)

        with pytest.raises(InvalidResetToken):
            identity_service.reset_password(PasswordResetIn(token=token, new_password="fresh-pass"))

"""Unit tests for the user, email and password repositories."""

from __future__ import annotations

import uuid

import pytest

from accounts.repositories import EmailRepository, PasswordRepository, UserRepository
from tests.factories.user import UserEmailFactory, UserFactory, UserPasswordFactory


class TestUserRepository:
    @pytest.fixture()
    def repo(self, session) -> UserRepository:
        return UserRepository(session=session)

    def test_get_by_username_trims_input(self, repo):
        user = UserFactory(username="alice")

        assert repo.get_by_username("  alice ") is user
        assert repo.get_by_username("bob") is None

    def test_username_taken_can_exclude_owner(self, repo):
        user = UserFactory(username="alice")

        assert repo.username_taken("alice") is True
        assert repo.username_taken("alice", exclude_id=user.id) is False
        assert repo.username_taken("nobody") is False

    def test_update_whitelist(self, repo):
        user = UserFactory()

        repo.update(user, ban=True, ban_reason="spam")

        assert user.ban is True
        with pytest.raises(ValueError):
            repo.update(user, id=uuid.uuid4())

    def test_repr_lists_identity_fields(self, repo):
        user = UserFactory(username="alice")

        assert repr(user) == f"<User id={user.id} username='alice' ban=False>"


class TestEmailRepository:
    @pytest.fixture()
    def repo(self, session) -> EmailRepository:
        return EmailRepository(session=session)

    def test_address_taken_is_case_insensitive(self, repo):
        UserEmailFactory(address="Alice@Example.com")

        assert repo.address_taken("alice@example.COM") is True
        assert repo.address_taken("bob@example.com") is False

    def test_find_pending_activation_requires_inactive_matching_token(self, repo):
        token = uuid.uuid4()
        email = UserEmailFactory(active=False, activation_token=token)

        assert repo.find_pending_activation(email.user_id, token) is email
        assert repo.find_pending_activation(email.user_id, uuid.uuid4()) is None
        assert repo.find_pending_activation(uuid.uuid4(), token) is None

    def test_find_pending_activation_ignores_active_email(self, repo):
        token = uuid.uuid4()
        email = UserEmailFactory(active=True, activation_token=token)

        assert repo.find_pending_activation(email.user_id, token) is None


class TestPasswordRepository:
    @pytest.fixture()
    def repo(self, session) -> PasswordRepository:
        return PasswordRepository(session=session)

    def test_get_by_user(self, repo):
        record = UserPasswordFactory()

        assert repo.get_by_user(record.user_id) is record
        assert repo.get_by_user(record.user_id, for_update=True) is record
        assert repo.get_by_user(uuid.uuid4()) is None

    def test_get_by_reset_token(self, repo):
        token = uuid.uuid4()
        record = UserPasswordFactory(reset_token=token)

        assert repo.get_by_reset_token(token) is record
        assert repo.get_by_reset_token(uuid.uuid4()) is None

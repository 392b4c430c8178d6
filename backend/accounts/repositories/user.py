"""Repositories for the user aggregate: identity, email and password rows."""

from __future__ import annotations

import uuid
from typing import cast

from sqlalchemy import select

from accounts.models.user import User, UserEmail, UserPassword
from accounts.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`."""

    model = User

    def _updatable_fields(self):
        return {"username", "ban", "ban_reason"}

    def get_by_username(self, username: str) -> User | None:
        """Fetch a user by exact (trimmed) username.

        :param username: Username to search.
        :type username: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.username == username.strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def username_taken(self, username: str, *, exclude_id: uuid.UUID | None = None) -> bool:
        """Return ``True`` when ``username`` belongs to a user other than ``exclude_id``."""
        stmt = select(User.id).where(User.username == username.strip())
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return self.session.execute(stmt.limit(1)).first() is not None


class EmailRepository(BaseRepository[UserEmail]):
    """Persistence-only repository for :class:`UserEmail`."""

    model = UserEmail

    def _updatable_fields(self):
        return {"active", "activation_token"}

    def get_by_user(self, user_id: uuid.UUID) -> UserEmail | None:
        stmt = select(UserEmail).where(UserEmail.user_id == user_id)
        return cast(UserEmail | None, self.session.execute(stmt).scalars().first())

    def address_taken(self, address: str) -> bool:
        stmt = select(UserEmail.id).where(UserEmail.address == address.strip().lower())
        return self.session.execute(stmt.limit(1)).first() is not None

    def find_pending_activation(
        self, user_id: uuid.UUID, activation_token: uuid.UUID
    ) -> UserEmail | None:
        """Return the inactive email of ``user_id`` whose activation token matches.

        :param user_id: Owner of the email.
        :param activation_token: Token from the activation link.
        :returns: Matching email row or ``None``.
        """
        stmt = select(UserEmail).where(
            UserEmail.user_id == user_id,
            UserEmail.activation_token == activation_token,
            UserEmail.active.is_(False),
        )
        return cast(UserEmail | None, self.session.execute(stmt).scalars().first())


class PasswordRepository(BaseRepository[UserPassword]):
    """Persistence-only repository for :class:`UserPassword`."""

    model = UserPassword

    def _updatable_fields(self):
        return {"hash", "salt", "reset_token", "reset_token_retry"}

    def get_by_user(self, user_id: uuid.UUID, *, for_update: bool = False) -> UserPassword | None:
        """Fetch the password row of ``user_id``, optionally locking it."""
        stmt = select(UserPassword).where(UserPassword.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        return cast(UserPassword | None, self.session.execute(stmt).scalars().first())

    def get_by_reset_token(self, reset_token: uuid.UUID) -> UserPassword | None:
        stmt = select(UserPassword).where(UserPassword.reset_token == reset_token)
        return cast(UserPassword | None, self.session.execute(stmt).scalars().first())

"""Account identity models: user, email address and password record."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from accounts.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Account identity.

    Fields
    ------
    username : str
        Public handle, unique per system. Stored trimmed.
    ban : bool
        When ``True`` the account cannot sign in or use existing sessions.
    ban_reason : str | None
        Optional explanation surfaced to the banned user.
    """

    __tablename__ = "users"
    __repr_attrs__ = ("username", "ban")

    username: Mapped[str] = mapped_column(String(32), nullable=False)
    ban: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    ban_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    email: Mapped[UserEmail | None] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    password: Mapped[UserPassword | None] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("username", name="uq_users_username"),
    )

    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        """
        Trim and validate the username.

        :raises ValueError: If username is missing or only whitespace.
        """
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Username is required.")
        return value.strip()


class UserEmail(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Email address owned by a user.

    The address stays inactive until the emailed ``activation_token`` is
    presented back; the token is rotated once used.
    """

    __tablename__ = "user_emails"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    address: Mapped[str] = mapped_column(String(254), nullable=False)
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    activation_token: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, default=uuid.uuid4)

    user: Mapped[User] = relationship(back_populates="email")

    __table_args__ = (
        UniqueConstraint("address", name="uq_user_emails_address"),
        UniqueConstraint("user_id", name="uq_user_emails_user_id"),
    )

    @validates("address")
    def _normalize_address(self, key: str, value: str) -> str:
        """
        Normalize and sanity-check the address (full validation happens at the API layer).

        :raises ValueError: If the address is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v


class UserPassword(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Hashed credential of a user.

    Fields
    ------
    hash : str
        Encoded argon2 hash (PHC string, includes parameters and salt).
    salt : str
        Base64 salt used for ``hash``; kept alongside for auditing.
    reset_token : uuid.UUID | None
        Pending password-reset token, cleared once used or the password changes.
    reset_token_retry : datetime | None
        No new reset email may be sent before this instant.
    """

    __tablename__ = "user_passwords"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    hash: Mapped[str] = mapped_column(Text, nullable=False)
    salt: Mapped[str] = mapped_column(String(64), nullable=False)
    reset_token: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    reset_token_retry: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    user: Mapped[User] = relationship(back_populates="password")

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_user_passwords_user_id"),
        Index("ix_user_passwords_reset_token", "reset_token"),
    )

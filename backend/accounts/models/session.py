"""Server-side session records backing issued credentials."""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, Index, String, Text, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accounts.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin
from .user import User


class TokenType(str, enum.Enum):
    """Kind of credential a session row was issued for."""

    ACCESS = "access"
    REFRESH = "refresh"


class UserSession(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    One issued credential and the client it was issued to.

    A signed token is honored only while a row holding the same token string
    is ``active``. Rows are never deleted: sign-out, revocation and refresh
    flip ``active`` to ``False``.

    Fields
    ------
    user_id : uuid.UUID
        Owning user.
    token : str
        The exact signed token string handed to the client.
    token_type : TokenType
        ``access`` for every row written by the lifecycle engine.
    ip, os, device, browser : str
        Client metadata captured when the row was created.
    active : bool
        ``False`` once superseded, signed out or revoked.
    """

    __tablename__ = "user_sessions"
    __repr_attrs__ = ("user_id", "active")

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token: Mapped[str] = mapped_column(Text, nullable=False)
    token_type: Mapped[TokenType] = mapped_column(
        Enum(TokenType, name="token_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TokenType.ACCESS,
    )
    ip: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    os: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    device: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    browser: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    user: Mapped[User] = relationship()

    __table_args__ = (
        Index("ix_user_sessions_user_active", "user_id", "active"),
        Index("ix_user_sessions_user_token_type", "user_id", "token_type"),
    )

"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    RefreshSchema,
    SessionPageSchema,
    SessionQuerySchema,
    SessionSchema,
    SessionTokensSchema,
    SignInSchema,
)
from .common import PageMetaSchema, PaginationQuerySchema
from .user import (
    ActivateEmailSchema,
    ChangePasswordSchema,
    ChangeUsernameSchema,
    RegisterSchema,
    ResetPasswordRequestSchema,
    ResetPasswordSchema,
    UserSchema,
)

__all__ = [
    "SignInSchema",
    "RefreshSchema",
    "SessionTokensSchema",
    "SessionSchema",
    "SessionPageSchema",
    "SessionQuerySchema",
    "PaginationQuerySchema",
    "PageMetaSchema",
    "RegisterSchema",
    "ActivateEmailSchema",
    "ChangePasswordSchema",
    "ChangeUsernameSchema",
    "ResetPasswordRequestSchema",
    "ResetPasswordSchema",
    "UserSchema",
]

"""Service layer public API.

Callers can import from :mod:`accounts.services` without knowing the internal
structure.

Re-exports
----------
- :class:`BaseService` (from ``accounts.services._shared.base``)
- :class:`SessionService` and its DTOs (from ``accounts.services.sessions``)
- :class:`IdentityService` and its DTOs (from ``accounts.services.identity``)
- :func:`authenticate` and :class:`GuardDeps` (from ``accounts.services.guard``)
"""

from __future__ import annotations

from accounts.services._shared.base import BaseService
from accounts.services._shared.dto import AuthenticatedIdentity
from accounts.services.guard import GuardDeps, authenticate
from accounts.services.identity.dto import (
    AccountSettings,
    ActivateEmailIn,
    PasswordChangeIn,
    PasswordResetIn,
    RegisterIn,
    UserOut,
)
from accounts.services.identity.service import IdentityService
from accounts.services.sessions.dto import (
    RefreshIn,
    SessionListIn,
    SessionOut,
    SessionPageOut,
    SessionPolicy,
    SessionTokensOut,
    SignInIn,
)
from accounts.services.sessions.service import SessionService

__all__ = [
    "BaseService",
    "AuthenticatedIdentity",
    # Guard
    "GuardDeps",
    "authenticate",
    # Sessions
    "SessionService",
    "SignInIn",
    "RefreshIn",
    "SessionListIn",
    "SessionOut",
    "SessionPageOut",
    "SessionPolicy",
    "SessionTokensOut",
    # Identity
    "IdentityService",
    "AccountSettings",
    "ActivateEmailIn",
    "PasswordChangeIn",
    "PasswordResetIn",
    "RegisterIn",
    "UserOut",
]

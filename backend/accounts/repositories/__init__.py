"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from accounts.repositories.base import (
    BaseRepository,
    Page,
    Pagination,
    paginate_select,
)
from accounts.repositories.session import SessionRepository
from accounts.repositories.user import (
    EmailRepository,
    PasswordRepository,
    UserRepository,
)

__all__ = [
    # Base
    "BaseRepository",
    "Page",
    "Pagination",
    "paginate_select",
    # Domain
    "UserRepository",
    "EmailRepository",
    "PasswordRepository",
    "SessionRepository",
]

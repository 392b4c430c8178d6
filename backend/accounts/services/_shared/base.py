# accounts/services/_shared/base.py
from __future__ import annotations

from datetime import UTC, datetime

from accounts.repositories.base import Pagination
from accounts.services._shared.ports.clock import Clock, SystemClock
from accounts.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Offer shared validation helpers (pagination).
    * Keep services thin, orchestration-only, no web leakage.

    Notes
    -----
    - Services never touch the global session; they always go through a Unit of Work.
    - Services raise :class:`~accounts.services._shared.errors.ServiceError`
      subclasses only; HTTP translation happens in ``accounts.core.errors``.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        """
        Initialize the base service.

        :param clock: Time source; defaults to the system clock.
        :type clock: Clock | None
        """
        self.clock: Clock = clock or SystemClock()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork()

    # ----------------------- Validation utilities ---------------------------

    def ensure_pagination(self, *, page: int, limit: int, max_value: int) -> Pagination:
        """
        Build a Pagination value object clamped to ``1..max_value``.

        :param page: 1-based page number.
        :param limit: Page size.
        :param max_value: Upper bound applied to both values.
        :returns: Pagination instance.
        """
        page = min(max(1, int(page)), max_value)
        limit = min(max(1, int(limit)), max_value)
        return Pagination(page=page, limit=limit)

    def now_utc(self) -> datetime:
        return as_utc(self.clock.now())

"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

import logging

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from accounts.core.extensions import db
from accounts.repositories import (
    EmailRepository,
    PasswordRepository,
    SessionRepository,
    UserRepository,
)
from accounts.services._shared.errors import StorageFailure
from accounts.uow.base import UnitOfWork

log = logging.getLogger(__name__)


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)
        self.emails = EmailRepository(session=self.session)
        self.passwords = PasswordRepository(session=self.session)
        self.sessions = SessionRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    Exiting the block commits; any exception rolls the transaction back.
    Driver errors (:class:`~sqlalchemy.exc.SQLAlchemyError`) raised inside
    the block or by the commit itself surface as :class:`StorageFailure`.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # The session begins lazily on first use.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except SQLAlchemyError as err:
                self.rollback()
                log.error("uow.commit_failed", exc_info=True)
                raise StorageFailure() from err
            except Exception:
                self.rollback()
                raise
            return

        self.rollback()
        if isinstance(exc, SQLAlchemyError):
            log.error("uow.storage_error", exc_info=(exc_type, exc, tb))
            raise StorageFailure() from exc

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only Unit of Work backed by the Flask-scoped SQLAlchemy session.

    - Blocks ORM flushes of new/dirty/deleted objects while open.
    - Rolls back on exit when it started the transaction itself; when a
      transaction is already in progress it attaches to it untouched.
    - Disallows ``commit()``.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session())
        self._owns_transaction = False

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        self._owns_transaction = not self.session.in_transaction()
        event.listen(self.session, "before_flush", _block_flush)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._owns_transaction:
                self.session.rollback()
        finally:
            event.remove(self.session, "before_flush", _block_flush)
            self._owns_transaction = False
        if isinstance(exc, SQLAlchemyError):
            raise StorageFailure() from exc

    def commit(self) -> None:
        """
        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()


def _block_flush(session, flush_context, instances) -> None:
    if session.new or session.dirty or session.deleted:
        raise RuntimeError(
            "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
        )

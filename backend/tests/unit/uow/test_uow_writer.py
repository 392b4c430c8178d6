"""Unit tests for the read-write SQLAlchemy unit of work."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from accounts.models import User
from accounts.services._shared.errors import StorageFailure
from accounts.uow import SQLAlchemyUnitOfWork
from tests.factories.user import UserFactory


def _count_users(session) -> int:
    return session.execute(select(func.count()).select_from(User)).scalar_one()


class TestSQLAlchemyUnitOfWorkWriter:
    def test_commits_on_success(self, session):
        """
        GIVEN a writer UoW
        WHEN a user is added and the block exits normally
        THEN the row is visible afterwards.
        """
        initial = _count_users(session)

        with SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())

        assert _count_users(session) == initial + 1

    def test_rolls_back_and_propagates_domain_errors(self, session):
        initial = _count_users(session)

        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())
            raise RuntimeError("boom")

        assert _count_users(session) == initial

    def test_driver_error_inside_block_becomes_storage_failure(self, session):
        initial = _count_users(session)

        with pytest.raises(StorageFailure) as excinfo, SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        assert isinstance(excinfo.value.__cause__, OperationalError)
        assert _count_users(session) == initial

    def test_constraint_violation_at_flush_becomes_storage_failure(self, session):
        UserFactory(username="taken")

        with pytest.raises(StorageFailure), SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build(username="taken"))

        assert _count_users(session) == 1

    def test_commit_failure_rolls_back(self, session, monkeypatch):
        def _failing_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        initial = _count_users(session)
        with pytest.raises(StorageFailure):
            with SQLAlchemyUnitOfWork() as uow:
                uow.users.add(UserFactory.build())
                monkeypatch.setattr(uow, "commit", _failing_commit)

        assert _count_users(session) == initial

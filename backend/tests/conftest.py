"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside an outer transaction on a shared in-memory SQLite
connection. The ORM session joins it through SAVEPOINTs, so service commits
and rollbacks behave as in production while nothing leaks between cases.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from accounts.core.config import TestingConfig
from accounts.core.extensions import db as _db
from accounts.factory import create_app
from accounts.infra.jwt.token_codec import JWTTokenCodec
from accounts.infra.security.argon2_password_authority import Argon2PasswordAuthority
from accounts.services._shared.ports.clock import FrozenClock
from tests.helpers.mailer import InMemoryMailer
from accounts.services.container import build_services
from accounts.services.guard import GuardDeps
from accounts.services.identity.dto import AccountSettings
from accounts.services.identity.service import IdentityService
from accounts.services.sessions.dto import SessionPolicy
from accounts.services.sessions.service import SessionService

TEST_SECRET = TestingConfig.JWT_SECRET_KEY


def _enable_sqlite_savepoints(engine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINTs nest inside the outer transaction."""

    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


# --------------------------------------------------------------------------- #
# Application & database
# --------------------------------------------------------------------------- #


@pytest.fixture(scope="session")
def mailer():
    """Outbox shared by the application under test; cleared per test."""
    return InMemoryMailer()


@pytest.fixture(scope="session")
def app(mailer):
    """Create a Flask application configured for testing."""
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    config = {key: getattr(TestingConfig, key) for key in dir(TestingConfig) if key.isupper()}
    services = build_services(config, mailer=mailer)
    app = create_app(TestingConfig, services=services, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session."""
    with app.app_context():
        _enable_sqlite_savepoints(_db.engine)
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a scoped session joined to a per-test outer transaction.

    ``join_transaction_mode="create_savepoint"`` turns every ``commit()`` and
    ``rollback()`` issued by application code into a SAVEPOINT release or
    rollback; the outer transaction is rolled back when the test ends.
    """
    outer = connection.begin()
    factory = sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
        expire_on_commit=False,
    )
    scoped = scoped_session(factory)

    original_session = db.session
    db.session = scoped
    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        outer.rollback()


@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield
    SQLAlchemySession.set(None)


@pytest.fixture(autouse=True)
def _app_context(app, db):
    """Push a fresh app context per test so ``g`` does not leak between tests."""
    with app.app_context():
        yield


@pytest.fixture(autouse=True)
def _clear_outbox(mailer):
    mailer.outbox.clear()
    yield


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# --------------------------------------------------------------------------- #
# Service graph with a controllable clock
# --------------------------------------------------------------------------- #


@pytest.fixture()
def clock():
    return FrozenClock()


@pytest.fixture()
def codec(clock):
    return JWTTokenCodec(secret=TEST_SECRET, clock=clock)


@pytest.fixture(scope="session")
def authority():
    """Argon2 authority with the cheap testing work factors."""
    return Argon2PasswordAuthority(time_cost=1, memory_cost=1_024, parallelism=1)


@pytest.fixture()
def policy():
    return SessionPolicy(access_ttl_seconds=43_200)


@pytest.fixture()
def session_service(codec, authority, policy, clock):
    return SessionService(codec=codec, passwords=authority, policy=policy, clock=clock)


@pytest.fixture()
def identity_service(codec, authority, clock):
    return IdentityService(
        passwords=authority,
        codec=codec,
        mailer=InMemoryMailer(),
        settings=AccountSettings(public_url="https://app.example.test"),
        clock=clock,
    )


@pytest.fixture()
def guard_deps(codec):
    return GuardDeps(codec=codec)


# --------------------------------------------------------------------------- #
# HTTP
# --------------------------------------------------------------------------- #


@pytest.fixture()
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()

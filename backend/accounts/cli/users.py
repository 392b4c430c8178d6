"""Flask CLI commands for schema creation and user ban administration."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from accounts.core.extensions import db
from accounts.services._shared.errors import ServiceError
from accounts.uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)


@click.command("db-create")
@with_appcontext
def db_create_command() -> None:
    """Create every table that does not exist yet."""
    db.create_all()
    click.echo("Tables created.")


@click.group("users")
def users_cli() -> None:
    """User administration commands."""


def _set_ban(username: str, *, ban: bool, reason: str | None) -> int:
    """Toggle the ban flag; banning also revokes every active session.

    :returns: Number of sessions revoked.
    """
    with SQLAlchemyUnitOfWork() as uow:
        user = uow.users.get_by_username(username)
        if user is None:
            raise click.ClickException(f"User not found: {username}")
        uow.users.update(user, ban=ban, ban_reason=reason if ban else None)
        revoked = uow.sessions.bulk_deactivate(user.id) if ban else 0
        user_id = user.id

    LOGGER.info(
        "users.ban" if ban else "users.unban",
        extra={"event": "users.ban" if ban else "users.unban", "user_id": str(user_id)},
    )
    return revoked


@users_cli.command("ban")
@click.argument("username")
@click.option("--reason", default=None, help="Reason shown to the user on sign-in.")
@with_appcontext
def ban_command(username: str, reason: str | None) -> None:
    """Ban USERNAME and revoke its sessions."""
    try:
        revoked = _set_ban(username, ban=True, reason=reason)
    except ServiceError as exc:
        raise click.ClickException(f"Ban failed: {exc}") from exc
    click.echo(f"Banned {username} ({revoked} session(s) revoked).")


@users_cli.command("unban")
@click.argument("username")
@with_appcontext
def unban_command(username: str) -> None:
    """Lift the ban on USERNAME."""
    try:
        _set_ban(username, ban=False, reason=None)
    except ServiceError as exc:
        raise click.ClickException(f"Unban failed: {exc}") from exc
    click.echo(f"Unbanned {username}.")

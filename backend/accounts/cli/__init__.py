"""Command-line interface registration for the Flask application."""

from __future__ import annotations

from flask import Flask

from .users import db_create_command, users_cli


def init_app(app: Flask) -> None:
    """Register application-specific CLI commands.

    Parameters
    ----------
    app:
        Flask application instance whose CLI registry receives the
        ``db-create`` command and the ``users`` group.
    """
    app.cli.add_command(db_create_command)
    app.cli.add_command(users_cli)

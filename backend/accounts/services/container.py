"""Build the service graph once per application from its config."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from accounts.infra.jwt.token_codec import JWTTokenCodec
from accounts.infra.mail.mailers import LoggingMailer, SMTPMailer
from accounts.infra.security.argon2_password_authority import Argon2PasswordAuthority
from accounts.services._shared.ports.clock import Clock, SystemClock
from accounts.services._shared.ports.mailer import Mailer
from accounts.services._shared.ports.password_authority import PasswordAuthority
from accounts.services._shared.ports.token_codec import TokenCodec
from accounts.services.guard import GuardDeps
from accounts.services.identity.dto import AccountSettings
from accounts.services.identity.service import IdentityService
from accounts.services.sessions.dto import SessionPolicy
from accounts.services.sessions.service import SessionService

EXTENSION_KEY = "accounts.services"


@dataclass(slots=True)
class Services:
    """Long-lived collaborators shared by every request."""

    clock: Clock
    codec: TokenCodec
    passwords: PasswordAuthority
    mailer: Mailer
    sessions: SessionService
    identity: IdentityService
    guard: GuardDeps


def build_mailer(config: Mapping[str, Any]) -> Mailer:
    """
    Select the mail backend named by ``MAIL_BACKEND``.

    :raises ValueError: Unknown backend, or ``smtp`` without ``SMTP_HOST``.
    """
    backend = str(config.get("MAIL_BACKEND", "log")).lower()
    if backend == "log":
        return LoggingMailer()
    if backend == "smtp":
        host = config.get("SMTP_HOST")
        if not host:
            raise ValueError("MAIL_BACKEND=smtp requires SMTP_HOST")
        return SMTPMailer(
            host=host,
            port=int(config.get("SMTP_PORT", 465)),
            sender=config.get("MAIL_FROM", "no-reply@localhost"),
            user=config.get("SMTP_USER"),
            password=config.get("SMTP_PASSWORD"),
        )
    raise ValueError(f"Unknown MAIL_BACKEND: {backend!r}")


def build_services(
    config: Mapping[str, Any],
    *,
    clock: Clock | None = None,
    mailer: Mailer | None = None,
) -> Services:
    """
    Wire codec, password authority, mailer and services from ``config``.

    :param config: Flask config mapping.
    :param clock: Override for the system clock (tests).
    :param mailer: Override for the configured mail backend (tests).
    """
    clock = clock or SystemClock()
    codec = JWTTokenCodec(
        secret=config["JWT_SECRET_KEY"],
        clock=clock,
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
    )
    passwords = Argon2PasswordAuthority(
        time_cost=int(config.get("ARGON2_TIME_COST", 3)),
        memory_cost=int(config.get("ARGON2_MEMORY_COST", 65_536)),
        parallelism=int(config.get("ARGON2_PARALLELISM", 4)),
    )
    mailer = mailer or build_mailer(config)

    policy = SessionPolicy(
        access_ttl_seconds=int(config.get("ACCESS_TOKEN_TTL_SECONDS", 43_200)),
        rotate_refresh_tokens=bool(config.get("ROTATE_REFRESH_TOKENS", False)),
        max_per_page=int(config.get("SESSIONS_MAX_PER_PAGE", 99)),
    )
    settings = AccountSettings(
        public_url=config.get("PUBLIC_URL", "http://localhost:5173"),
        reset_token_ttl_seconds=int(config.get("RESET_PASSWORD_TOKEN_TTL_SECONDS", 3_600)),
        reset_cooldown_seconds=int(config.get("RESET_PASSWORD_COOLDOWN_SECONDS", 3_600)),
    )

    return Services(
        clock=clock,
        codec=codec,
        passwords=passwords,
        mailer=mailer,
        sessions=SessionService(codec=codec, passwords=passwords, policy=policy, clock=clock),
        identity=IdentityService(
            passwords=passwords, codec=codec, mailer=mailer, settings=settings, clock=clock
        ),
        guard=GuardDeps(codec=codec),
    )

"""
accounts.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) the service layer depends on.

Modules
-------
- :mod:`clock`:
    :class:`~.Clock` plus the :class:`~.SystemClock` and test :class:`~.FrozenClock`.
- :mod:`token_codec`:
    :class:`~.TokenCodec` and the decoded :class:`~.ClaimSet`.
- :mod:`password_authority`:
    :class:`~.PasswordAuthority` and :class:`~.PasswordDigest`.
- :mod:`mailer`:
    :class:`~.Mailer` and :class:`~.OutgoingMail`.

Concrete adapters live under ``accounts.infra``.
"""

from __future__ import annotations

from .clock import Clock, FrozenClock, SystemClock
from .mailer import Mailer, OutgoingMail
from .password_authority import PasswordAuthority, PasswordDigest
from .token_codec import (
    ACCESS_SCOPE,
    REFRESH_SCOPE,
    RESET_PASSWORD_SCOPE,
    ClaimSet,
    TokenCodec,
)

__all__ = [
    "ACCESS_SCOPE",
    "REFRESH_SCOPE",
    "RESET_PASSWORD_SCOPE",
    "ClaimSet",
    "Clock",
    "FrozenClock",
    "Mailer",
    "OutgoingMail",
    "PasswordAuthority",
    "PasswordDigest",
    "SystemClock",
    "TokenCodec",
]

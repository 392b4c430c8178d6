from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta
from typing import Protocol

from accounts.services._shared.errors import ClockError


class Clock(Protocol):
    """Port returning the current instant as a timezone-aware UTC datetime."""

    def now(self) -> datetime: ...


class SystemClock(Clock):
    """Wall clock.

    :raises ClockError: When the platform clock cannot be read.
    """

    def now(self) -> datetime:
        try:
            return datetime.now(tz=UTC)
        except (OSError, OverflowError, ValueError) as exc:
            raise ClockError() from exc


class FrozenClock(Clock):
    """Manually driven clock for deterministic tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=UTC)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, seconds: float = 0, **delta: float) -> datetime:
        """Move the clock forward and return the new instant."""
        with self._lock:
            self._now = self._now + timedelta(seconds=seconds, **delta)
            return self._now

    def set(self, instant: datetime) -> None:
        with self._lock:
            self._now = instant

"""Injectable time sources."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol

from loguru import logger

from .errors import CollaboratorUnavailable


def as_utc(moment: datetime) -> datetime:
    """Tag naive datetimes as UTC; aware ones pass through unchanged."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock:
    """
    Manually advanced clock for deterministic tests and simulations.

    Naive datetimes are treated as UTC.
    """

    def __init__(self, start: datetime | None = None):
        self._now = as_utc(start or datetime(2025, 1, 1, tzinfo=UTC))

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs: float) -> datetime:
        """Move forward by a timedelta built from kwargs (days=1, hours=2...)."""
        self._now = self._now + timedelta(**kwargs)
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = as_utc(moment)


def read_clock(clock: Clock) -> datetime:
    """Read a clock, reporting any failure as an unavailable collaborator."""
    try:
        return clock.now()
    except Exception as e:  # Intentionally broad - any clock failure is a collaborator outage
        logger.error(f"Clock read failed: {e}")
        raise CollaboratorUnavailable("clock", str(e)) from e

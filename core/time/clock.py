"""
SpaceFlow Core Time - Clock & UTC Helpers
===========================================
No datetime.now() inside engine logic.

The mutation engine and the store stamp events and scans with the time
returned by an injected Clock, so tests can pin time with FixedClock.
All timestamps that cross a module boundary are aware UTC datetimes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


# ══════════════════════════════════════════════════════════════
# CLOCK PROTOCOL
# ══════════════════════════════════════════════════════════════

class Clock(Protocol):
    """Injectable time source."""

    def now_utc(self) -> datetime:
        ...  # pragma: no cover


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Pinned time for tests and replays. `advance` moves it forward, so
    multi-step scenarios still produce ordered timestamps.

        clock = FixedClock(datetime(2026, 2, 22, 12, tzinfo=timezone.utc))
        clock.advance(60)
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._fixed_dt = to_utc(fixed_dt)

    def now_utc(self) -> datetime:
        return self._fixed_dt

    def advance(self, seconds: float) -> None:
        self._fixed_dt = self._fixed_dt + timedelta(seconds=seconds)


# ══════════════════════════════════════════════════════════════
# UTC HELPERS
# ══════════════════════════════════════════════════════════════

def to_utc(value: datetime) -> datetime:
    """Aware UTC copy of `value`. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def epoch_ms(value: datetime) -> int:
    """Milliseconds since the Unix epoch, as used in event ids."""
    return int(value.timestamp() * 1000)

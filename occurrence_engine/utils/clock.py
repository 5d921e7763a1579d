"""
Clock sources for the occurrence engine.

All scheduling works on calendar dates. "Today" is the local calendar date in
the configured zone; tests substitute a FixedClock.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional
import pytz


class Clock:
    """Interface for a source of the current date and time."""

    def today(self) -> date:
        raise NotImplementedError

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall clock in a named timezone."""

    def __init__(self, timezone: str = "UTC"):
        self.tz = pytz.timezone(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    """Clock pinned to a given day, for deterministic tests."""

    def __init__(self, today: date, now: Optional[datetime] = None):
        self._today = today
        self._now = now or pytz.utc.localize(datetime.combine(today, time(12, 0)))

    def today(self) -> date:
        return self._today

    def now(self) -> datetime:
        return self._now

    def advance(self, days: int) -> None:
        """Move the clock forward by whole days."""
        self._today = self._today + timedelta(days=days)
        self._now = self._now + timedelta(days=days)


def shift_days(day: date, days: int) -> date:
    """day + days, clamped to the representable date range."""
    try:
        return day + timedelta(days=days)
    except OverflowError:
        return date.max if days > 0 else date.min

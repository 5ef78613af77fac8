"""Timezone utilities: UTC storage and calendar-day boundaries."""

from datetime import date, datetime, time, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Get current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def naive_to_utc_aware(naive_dt: datetime) -> datetime:
    """
    Convert a naive datetime (assumed to be UTC) to timezone-aware UTC datetime.

    Args:
        naive_dt: Naive datetime, assumed to be UTC

    Returns:
        datetime: Timezone-aware UTC datetime
    """
    if naive_dt.tzinfo is None:
        return naive_dt.replace(tzinfo=timezone.utc)
    return naive_dt


class Clock:
    """Wall clock that knows which calendar day it is in a given zone.

    "Today" for the reaction quota, the daily selection and the freshness
    window is always evaluated in ``tz_name``; stored timestamps stay in UTC.
    """

    def __init__(self, tz_name: str = "UTC", now_fn: Optional[Callable[[], datetime]] = None):
        self.tz = ZoneInfo(tz_name)
        self._now_fn = now_fn or utcnow

    def now(self) -> datetime:
        """Current instant, expressed in the clock's zone."""
        return naive_to_utc_aware(self._now_fn()).astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    def start_of_day(self, day: Optional[date] = None) -> datetime:
        """First instant of ``day`` (default today) in the clock's zone."""
        day = day or self.today()
        return datetime.combine(day, time.min, tzinfo=self.tz)

    def day_of(self, moment: datetime) -> date:
        """Calendar day a stored timestamp falls on."""
        return naive_to_utc_aware(moment).astimezone(self.tz).date()

"""
Time helpers.

Timestamps are stored as naive UTC datetimes. The attendance calendar day and
the morning/afternoon split are evaluated in the configured site time zone.
"""
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from worksite.core.config import settings


def utc_now() -> datetime:
    """Current time as a naive UTC datetime"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def site_tz(tz_name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(tz_name or settings.TIMEZONE)


def to_local(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """Convert a naive-UTC (or aware) datetime to site local time."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(site_tz(tz_name))


def to_utc_naive(dt: datetime) -> datetime:
    """Normalize any datetime to naive UTC; naive input is assumed to be UTC."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def local_date(dt: datetime, tz_name: Optional[str] = None) -> date:
    return to_local(dt, tz_name).date()


def local_hour(dt: datetime, tz_name: Optional[str] = None) -> int:
    return to_local(dt, tz_name).hour

"""
Calendar-day utility.

Every streak and milestone length is a difference of *local calendar days*,
never elapsed seconds / 86400: committing at 23:50 and opening the app at
00:10 the next day is one day. Date arithmetic happens on the local `date`
values, which keeps DST transitions (23h or 25h days) out of the count.

The zone is resolved on every call. Nothing here caches which zone a user
is in, so a device that travels or changes its clock is picked up on the
next evaluation.

Public API
----------
resolve_timezone(tz)              -> ZoneInfo
start_of_day(instant, tz)         -> date
local_midnight(day, tz)           -> datetime (aware)
day_difference(from_, to, tz)     -> int   (may be negative)
day_window(end_day, days)         -> (first_day, end_day)
utcnow() / ensure_aware(dt)
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from streak_engine.core.config import settings
from streak_engine.core.errors import InvalidTimezoneError

TimezoneLike = Union[str, ZoneInfo, None]


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resolve_timezone(tz: TimezoneLike = None) -> ZoneInfo:
    """
    Turn an IANA key (or an existing ZoneInfo) into a ZoneInfo.
    None falls back to settings.DEFAULT_TIMEZONE.
    """
    if isinstance(tz, ZoneInfo):
        return tz
    key = (tz or settings.DEFAULT_TIMEZONE).strip()
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise InvalidTimezoneError(key)


def start_of_day(instant: datetime, tz: TimezoneLike = None) -> date:
    """Calendar day of `instant` in `tz`."""
    return ensure_aware(instant).astimezone(resolve_timezone(tz)).date()


def local_midnight(day: date, tz: TimezoneLike = None) -> datetime:
    """First instant of `day` in `tz` (aware)."""
    return datetime.combine(day, time.min, tzinfo=resolve_timezone(tz))


def day_difference(from_: datetime, to: datetime, tz: TimezoneLike = None) -> int:
    """Whole calendar days from the day of `from_` to the day of `to`."""
    zone = resolve_timezone(tz)
    return (start_of_day(to, zone) - start_of_day(from_, zone)).days


def day_window(end_day: date, days: int) -> tuple[date, date]:
    """Inclusive window of `days` calendar days ending on `end_day`."""
    if days < 1:
        raise ValueError("window must span at least one day")
    return end_day - timedelta(days=days - 1), end_day

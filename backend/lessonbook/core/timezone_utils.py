"""
Timezone utilities for the lesson booking platform.

All weekday and operating-hour decisions are made in a single reference
timezone (``settings.reference_timezone``). Instants are persisted in UTC.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

import pytz

from .config import settings


def get_reference_timezone(name: Optional[str] = None) -> pytz.BaseTzInfo:
    """
    Get the reference timezone.

    Args:
        name: Optional IANA name overriding the configured timezone

    Returns:
        pytz timezone object
    """
    return pytz.timezone(name or settings.reference_timezone)


def reference_now() -> datetime:
    """Current datetime in the reference timezone."""
    return datetime.now(get_reference_timezone())


def reference_today() -> date:
    """'Today' in the reference timezone."""
    return reference_now().date()


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalise a datetime to aware UTC.

    Naive values are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def to_reference(dt: datetime, tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """Convert an instant to the reference timezone."""
    return ensure_utc(dt).astimezone(tz or get_reference_timezone())


def localize_minutes(
    target_date: date, minutes: int, tz: Optional[pytz.BaseTzInfo] = None
) -> datetime:
    """
    Absolute instant for ``minutes`` past midnight of ``target_date``.

    ``minutes == 1440`` resolves to midnight of the following day.
    """
    tz = tz or get_reference_timezone()
    naive = datetime.combine(target_date, time.min) + timedelta(minutes=minutes)
    return tz.localize(naive)


def day_bounds(
    target_date: date, tz: Optional[pytz.BaseTzInfo] = None
) -> Tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of a calendar day in the reference timezone."""
    return localize_minutes(target_date, 0, tz), localize_minutes(target_date, 24 * 60, tz)


def sunday_based_weekday(target_date: date) -> int:
    """Weekday index with Sunday = 0 ... Saturday = 6."""
    return (target_date.weekday() + 1) % 7


def week_start(target_date: date) -> date:
    """Monday of the week containing ``target_date``."""
    return target_date - timedelta(days=target_date.weekday())


def month_start(target_date: date) -> date:
    return target_date.replace(day=1)


def next_month_start(target_date: date) -> date:
    first = month_start(target_date)
    if first.month == 12:
        return first.replace(year=first.year + 1, month=1)
    return first.replace(month=first.month + 1)

"""
Day keys: calendar dates formatted as YYYY-MM-DD in the user's local zone.

Day arithmetic is calendar-date subtraction, never elapsed-hours division,
so DST transitions need no special handling.
"""

from datetime import date, datetime, timedelta, tzinfo
from typing import Optional

DAY_KEY_FORMAT = "%Y-%m-%d"


def format_day(day: date) -> str:
    return day.strftime(DAY_KEY_FORMAT)


def parse_day(key: str) -> date:
    """Parse a day key. Raises ValueError when malformed."""
    return datetime.strptime(key, DAY_KEY_FORMAT).date()


def is_day_key(value: object) -> bool:
    if not isinstance(value, str):
        return False
    try:
        return format_day(parse_day(value)) == value
    except ValueError:
        return False


def today(tz: Optional[tzinfo] = None) -> str:
    """Current calendar date in `tz` (host-local time when None)."""
    if tz is None:
        return format_day(date.today())
    return format_day(datetime.now(tz).date())


def day_offset(day: str, n: int) -> str:
    """The day key `n` days after `day` (before it when `n` is negative)."""
    return format_day(parse_day(day) + timedelta(days=n))


def days_between(a: str, b: str) -> int:
    """Whole-day difference `b - a`."""
    return (parse_day(b) - parse_day(a)).days

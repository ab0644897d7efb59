from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from typing import Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from clinic.core.config import CLINIC_TIMEZONE
from clinic.core.errors import InvalidTimestamp

TimestampLike = Union[datetime, str]


@lru_cache(maxsize=None)
def get_zone(name: str = CLINIC_TIMEZONE) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidTimestamp(f"Unknown timezone: {name}")


def normalize_timestamp(value: TimestampLike, tz: tzinfo = None) -> datetime:
    """
    Turn an API timestamp into an aware UTC datetime.

    Values without an offset are wall-clock times in the clinic timezone;
    values with one (including a trailing ``Z``) keep it. All arithmetic
    downstream happens in UTC.
    """
    if tz is None:
        tz = get_zone()

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidTimestamp("Timestamp is empty")
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidTimestamp(f"Unparseable timestamp: {value!r}")
    else:
        raise InvalidTimestamp(f"Unsupported timestamp type: {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(timezone.utc)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def to_local(value: datetime, tz: tzinfo = None) -> datetime:
    return value.astimezone(tz or get_zone())


def format_local(value: datetime, tz: tzinfo = None) -> str:
    """Format for notification text, e.g. 'Mar 04, 2025 at 03:30 PM'"""
    return to_local(value, tz).strftime("%b %d, %Y at %I:%M %p")


def utc_now() -> datetime:
    """Clock for request handlers; pure rule functions take ``now`` as an argument."""
    return datetime.now(timezone.utc)

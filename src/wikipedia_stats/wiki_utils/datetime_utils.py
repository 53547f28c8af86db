# wiki_utils/datetime_utils.py
from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from typing import Union

import pytz
from dateutil.parser import isoparse

from wikipedia_stats.config.settings import REFERENCE_TIMEZONE

TimeZoneLike = Union[str, tzinfo, None]


def parse_instant(timestamp_str: str) -> datetime:
    """
    Parse a strict ISO 8601 instant into a timezone-aware UTC datetime.

    An instant needs a calendar date, a time of day and a UTC designator or
    offset, e.g. ``2009-10-24T03:36:18Z``. Date-only values and local times
    without an offset are rejected.

    Args:
        timestamp_str: Input string in ISO 8601 format

    Returns:
        timezone-aware datetime in UTC

    Raises:
        ValueError: if the string is not a valid ISO 8601 instant
    """
    text = timestamp_str.strip()
    if 'T' not in text:
        raise ValueError(f"Not an ISO 8601 instant (missing time part): {timestamp_str!r}")

    dt = isoparse(text)
    if dt.tzinfo is None:
        raise ValueError(f"Not an ISO 8601 instant (missing UTC offset): {timestamp_str!r}")
    return dt.astimezone(timezone.utc)


@lru_cache(maxsize=32)
def _zone_by_name(name: str) -> tzinfo:
    return pytz.timezone(name)


def resolve_timezone(tz: TimeZoneLike = None) -> tzinfo:
    """Return a tzinfo for a zone name, a tzinfo, or the configured reference zone."""
    if tz is None:
        tz = REFERENCE_TIMEZONE
    if isinstance(tz, str):
        return _zone_by_name(tz)
    return tz


def year_in_zone(dt: datetime, tz: TimeZoneLike = None) -> int:
    """Calendar year of an instant as observed in the given (or reference) zone"""
    return convert_to_utc(dt).astimezone(resolve_timezone(tz)).year


def convert_to_utc(dt: datetime) -> datetime:
    """Ensure datetime is timezone-aware and in UTC"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_as_iso(dt: datetime) -> str:
    """Format datetime as ISO 8601 with 'Z' suffix"""
    return convert_to_utc(dt).isoformat(timespec='seconds').replace('+00:00', 'Z')


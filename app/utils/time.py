import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

CALENDAR_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")

def parse_calendar_date(date_str: str) -> Optional[date]:
    """
    Parse a YYYY-MM-DD string, returning None when it is not a calendar date
    """
    if not isinstance(date_str, str) or not CALENDAR_DATE_RE.fullmatch(date_str):
        return None
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        return None

def local_midnight(day: date) -> datetime:
    """
    Midnight of the given day in the server's local time zone (aware)
    """
    return local_wall_clock(day, 0)

def local_wall_clock(day: date, minutes_from_midnight: int) -> datetime:
    """
    Local time zone instant showing the given minutes after midnight on the wall clock.
    The UTC offset is the one in force at that instant, not at midnight
    """
    naive = datetime.combine(day, time()) + timedelta(minutes=minutes_from_midnight)
    return naive.astimezone()

def as_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC. Naive values are UTC, as PyMongo returns them
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def to_iso_utc(value: datetime) -> str:
    """
    ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-06-10T14:00:00.000Z
    """
    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def format_local(value: datetime) -> str:
    """
    Human readable timestamp in the server's local time zone
    """
    return as_utc(value).astimezone().strftime("%Y-%m-%d %H:%M")

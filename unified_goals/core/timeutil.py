"""
Fixed-offset time conversion helpers.

Offsets are minutes east of UTC (e.g. +330 for IST, -480 for PST), so
local wall clock = UTC instant + offset.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def local_tz(offset_minutes: int = 0) -> timezone:
    """Fixed-offset tzinfo for the given offset."""
    return timezone(timedelta(minutes=offset_minutes))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_local(instant: datetime, offset_minutes: int = 0) -> datetime:
    """UTC instant -> aware local wall-clock datetime."""
    return ensure_utc(instant).astimezone(local_tz(offset_minutes))


def local_to_utc(day: date, at: time, offset_minutes: int = 0) -> datetime:
    """Local calendar date + wall-clock time -> UTC instant."""
    local = datetime.combine(day, at).replace(tzinfo=local_tz(offset_minutes))
    return local.astimezone(timezone.utc)


def local_date(instant: datetime, offset_minutes: int = 0) -> date:
    return to_local(instant, offset_minutes).date()


def start_of_local_day(instant: datetime, offset_minutes: int = 0) -> datetime:
    """UTC instant of local midnight on the day containing ``instant``."""
    return local_to_utc(local_date(instant, offset_minutes), time(0, 0), offset_minutes)


def parse_instant(value) -> Optional[datetime]:
    """
    Parse an ISO 8601 instant from the boundary.

    Accepts datetimes, ISO strings with a trailing ``Z`` and naive strings
    (taken as UTC). Returns None for empty or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def format_instant(value: datetime) -> str:
    """UTC ISO string with millisecond precision and ``Z`` suffix."""
    utc = ensure_utc(value)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_clock(text: str) -> Optional[time]:
    """Parse ``HH:mm``; blank gives None, malformed raises ValueError."""
    if text is None or not text.strip():
        return None
    parts = text.strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time '{text}', expected HH:mm")
    return time(int(parts[0]), int(parts[1]))

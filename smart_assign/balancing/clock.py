"""Time helpers. Timestamps are stored as naive UTC; engine code works with aware UTC."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as read back from the database) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: datetime) -> datetime:
    """Naive UTC datetime for DateTime columns."""
    return as_utc(value).replace(tzinfo=None)


def hours_between(start: datetime, end: datetime) -> float:
    return max(0.0, (as_utc(end) - as_utc(start)).total_seconds() / 3600)


def local_hour(value: datetime, timezone_name: str) -> int:
    """Hour of day (0-23) of `value` in the given IANA timezone."""
    return as_utc(value).astimezone(ZoneInfo(timezone_name)).hour

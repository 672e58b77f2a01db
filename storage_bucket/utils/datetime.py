"""Datetime utilities for handling timezone-aware datetime objects."""
from datetime import date, datetime, time, timezone


def ensure_aware(dt: datetime | None) -> datetime | None:
    """
    Convert naive datetime to aware UTC datetime.

    Datetimes coming from the database are naive but represent UTC time.

    Examples:
        >>> naive_dt = datetime(2025, 1, 1, 12, 0)
        >>> ensure_aware(naive_dt).tzinfo
        datetime.timezone.utc
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        # Assume naive datetimes from DB are in UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_naive_utc(dt: datetime) -> datetime:
    """Convert any datetime to the naive UTC form stored in the database."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_bound(value: str | None, end_of_day: bool = False) -> datetime | None:
    """
    Parse an ISO date or datetime used as a range bound.

    A date-only value covers the whole day: it maps to midnight for a lower
    bound and to the last microsecond of the day for an upper bound.

    Raises:
        ValueError: If the value is not an ISO date or datetime
    """
    if value is None or value == "":
        return None

    value = value.strip()
    if len(value) == 10:
        day = date.fromisoformat(value)
        return datetime.combine(day, time.max if end_of_day else time.min)

    # fromisoformat() before 3.11 does not accept a trailing Z
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(value))

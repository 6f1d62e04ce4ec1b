"""Time utilities for timezone-aware UTC datetimes."""

from datetime import UTC, date, datetime, time, timedelta


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime for defaults and onupdate hooks."""
    return datetime.now(UTC)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    """Last representable instant of ``day`` so date ranges include the whole day."""
    return datetime.combine(day, time.min) + timedelta(days=1) - timedelta(microseconds=1)

"""
Datetime helpers.

SQLite hands back naive datetimes for values written as UTC, so anything that
compares stored timestamps against "now" goes through ``ensure_utc``.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC; pass aware ones and None through."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_utc(dt: datetime | None) -> datetime | None:
    """Normalize to UTC; naive values are taken to be UTC already."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(timezone.utc)  # type: ignore[union-attr]


def days_ago(days: int, now: datetime | None = None) -> datetime:
    return (now or utc_now()) - timedelta(days=days)


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)

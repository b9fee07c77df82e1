"""Timestamp helpers.

Every stored timestamp is a naive UTC datetime so that comparisons behave
the same on PostgreSQL and SQLite. utcnow() truncates to milliseconds so a
timestamp survives the round trip through an "{epoch_ms}:{id}" cursor.
"""

from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1)


def utcnow() -> datetime:
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_epoch_ms(value: datetime) -> int:
    """Milliseconds since the epoch for a naive-UTC datetime."""
    return (value - EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(value: int | float) -> datetime:
    return EPOCH + timedelta(milliseconds=value)


def days_between(start: datetime | None, end: datetime | None) -> int | None:
    """Whole days from start to end, rounded; None when either is missing."""
    if start is None or end is None:
        return None
    return round((end - start).total_seconds() / 86400)

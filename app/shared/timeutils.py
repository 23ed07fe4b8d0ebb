"""
Time helpers.

All timestamps inside the service are naive UTC datetimes, which is
what the database columns store and return.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def seconds_between(start: datetime, end: datetime) -> float:
    """Seconds from start to end (negative if end precedes start)."""
    return (end - start).total_seconds()

"""UTC time helpers shared by the stores and aggregation queries."""

from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def timestamp_bucket(now: Optional[datetime] = None) -> str:
    """
    Year-month bucket ("YYYY-MM") for a point in time, in UTC.

    Naive datetimes are taken to be UTC already.
    """
    now = now or utc_now()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return f"{now.year:04d}-{now.month:02d}"

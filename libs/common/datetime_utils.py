"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import date, datetime, time, timezone
from typing import Union


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    This replaces the deprecated datetime.utcnow() which returns naive datetimes.
    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def utc_midnight(value: Union[str, date, datetime]) -> datetime:
    """Truncate a date-like value to midnight UTC.

    Aware datetimes are converted to UTC first, naive ones are taken as UTC,
    so "2025-12-15T22:00:00+05:30" lands on 2025-12-15 while
    "2025-12-15T02:00:00+05:30" lands on 2025-12-14.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        day = value.date()
    elif isinstance(value, date):
        day = value
    else:
        raise ValueError(f"Cannot normalize {type(value).__name__} to a date")

    return datetime.combine(day, time.min, tzinfo=timezone.utc)

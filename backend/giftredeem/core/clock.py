"""UTC Clock Helpers — single place where timestamps are normalized.

Invariants:
    - Every datetime compared in the core is timezone-aware UTC
    - Naive datetimes (SQLite returns them) are interpreted as UTC

Design Decisions:
    - Normalize on read instead of trusting the driver: PostgreSQL returns aware
      values, SQLite drops the offset
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

"""
UTC time helpers.

SQLite hands back naive datetimes for ``DateTime(timezone=True)`` columns, so
every timestamp read from the store goes through ``as_utc`` before it is
compared with ``utc_now()``.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

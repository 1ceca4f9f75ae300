"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def coerce_utc(value: datetime | None) -> datetime | None:
    """Return a UTC-normalized datetime, assuming naive values are already UTC."""

    if value is None:
        return None

    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)

    return value.astimezone(timezone.utc)


def day_bucket(value: datetime) -> datetime:
    """Truncate ``value`` to midnight UTC of the same day."""

    normalized = coerce_utc(value)
    return normalized.replace(hour=0, minute=0, second=0, microsecond=0)

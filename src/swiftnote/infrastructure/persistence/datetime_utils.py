"""Datetime utilities for persistence layer."""

from datetime import datetime, timezone


def normalize_to_utc(dt: datetime) -> datetime:
    """Return dt as a timezone-aware UTC datetime.

    SQLite keeps only the wall-clock part of a datetime, so values read back
    are naive. Naive values are taken to be UTC; aware values are converted.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_optional(dt: datetime | None) -> datetime | None:
    """normalize_to_utc that passes None through (e.g. deleted_at)."""
    return normalize_to_utc(dt) if dt is not None else None

"""
Domain time utilities (pure).

Every timestamp carried by a grading record, history event or order is a
timezone-aware UTC datetime. Validation messages must stay consistent across
the domain model.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforce that a timestamp is UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def same_utc_month(value: datetime, reference: datetime) -> bool:
    """True if both timestamps fall in the same calendar month (UTC)."""

    value_utc = value.astimezone(timezone.utc)
    reference_utc = reference.astimezone(timezone.utc)
    return (value_utc.year, value_utc.month) == (reference_utc.year, reference_utc.month)

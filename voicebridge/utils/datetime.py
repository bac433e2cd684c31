"""Time utilities with timezone-aware defaults."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time with tzinfo."""

    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive values read back from the database."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def same_day(left: datetime, right: datetime) -> bool:
    left, right = ensure_utc(left), ensure_utc(right)
    return left.date() == right.date()


def same_month(left: datetime, right: datetime) -> bool:
    left, right = ensure_utc(left), ensure_utc(right)
    return (left.year, left.month) == (right.year, right.month)


__all__ = ["ensure_utc", "same_day", "same_month", "utc_now"]

"""Shared utilities for domain entities."""

from datetime import UTC, date, datetime


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure datetime is timezone-aware, assuming UTC for naive values."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def parse_release_date(value: str | date | None) -> date | None:
    """Parse a catalog release date with year, month or day precision.

    Catalogs report "1999", "1999-06" or "1999-06-21" depending on how much
    is known. Missing components default to the first month or day.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    parts = value.strip().split("-")
    try:
        match len(parts):
            case 1:
                return date(int(parts[0]), 1, 1)
            case 2:
                return date(int(parts[0]), int(parts[1]), 1)
            case 3:
                return date(int(parts[0]), int(parts[1]), int(parts[2]))
            case _:
                return None
    except ValueError:
        return None

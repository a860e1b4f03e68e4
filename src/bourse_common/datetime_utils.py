"""UTC datetime utilities."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(UTC)


def iso_or_none(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None

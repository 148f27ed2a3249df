"""UTC helpers for timestamps stored in the database and in cache payloads.

Timestamp columns are timezone-aware. Values coming back from a JSON cache
entry are ISO strings and may have lost their offset; parse_iso_datetime
restores them as UTC.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as an aware UTC datetime (soft-delete markers, scan times)."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Naive values are taken to be UTC; aware values are converted to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_iso_datetime(value: str, aware: bool = True) -> datetime:
    """
    Parse an ISO-8601 string read from a cache entry.

    Args:
        value: e.g. "2026-01-01T08:00:00+00:00" or "2026-01-01T08:00:00"
        aware: Normalize to UTC (for DateTime(timezone=True) columns)

    Returns:
        Parsed datetime; UTC-aware when aware is True
    """
    parsed = datetime.fromisoformat(value)
    return ensure_utc(parsed) if aware else parsed


def from_timestamp_utc(timestamp: float) -> datetime:
    """Aware UTC datetime for a Unix timestamp (rate-limit window ends)."""
    return datetime.fromtimestamp(timestamp, tz=UTC)

"""Shared utilities: datetime and id generation."""

from farewatch.shared.utils.datetime import (
    ensure_utc,
    from_timestamp_utc,
    parse_iso_datetime,
    utc_now,
)
from farewatch.shared.utils.generators import generate_cuid

__all__ = [
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "from_timestamp_utc",
]

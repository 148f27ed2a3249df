"""Shared utilities: telemetry and cross-cutting helpers.

Used by domain and infrastructure. No business logic.
"""

from farewatch.shared.utils import (
    ensure_utc,
    from_timestamp_utc,
    generate_cuid,
    utc_now,
)

__all__ = [
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "from_timestamp_utc",
]

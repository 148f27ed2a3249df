"""Fixed-window rate limiting over CacheService counters.

Each (prefix, identifier, window) gets one counter key that expires with its
window. When the cache is unavailable increment() returns 0 and the request
is allowed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from farewatch.infrastructure.cache.cache_service import CacheService
from farewatch.infrastructure.cache.keys import rate_limit_key
from farewatch.shared.utils.datetime import from_timestamp_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one check: allowed flag, requests left, window end, limit."""

    allowed: bool
    remaining: int
    reset_at: datetime
    total: int


class RateLimitService:
    """Counts requests per identifier in fixed windows of window_seconds."""

    def __init__(self, cache: CacheService, clock: Callable[[], float] = time.time) -> None:
        self.cache = cache
        self._clock = clock

    async def check_limit(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int,
        key_prefix: str = "default",
    ) -> RateLimitResult:
        """Count this request and report whether it fits in the current window."""
        if max_requests < 1 or window_seconds < 1:
            raise ValueError("max_requests and window_seconds must be >= 1")
        window = int(self._clock() // window_seconds)
        reset_at = from_timestamp_utc((window + 1) * window_seconds)
        key = rate_limit_key(key_prefix, identifier, window)

        count = await self.cache.increment(key)
        if count == 0:
            logger.warning("Rate limit counter unavailable for %s; allowing request", key_prefix)
            return RateLimitResult(True, max_requests, reset_at, max_requests)
        if count == 1:
            await self.cache.expire(key, window_seconds)

        return RateLimitResult(
            allowed=count <= max_requests,
            remaining=max(0, max_requests - count),
            reset_at=reset_at,
            total=max_requests,
        )

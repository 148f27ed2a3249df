"""Infrastructure services built on the cache layer."""

from farewatch.infrastructure.services.rate_limit_service import (
    RateLimitResult,
    RateLimitService,
)

__all__ = ["RateLimitResult", "RateLimitService"]

"""Health check endpoints for liveness and readiness probes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from farewatch.api.v1.dependencies import get_cache_service
from farewatch.infrastructure.cache import CacheService
from farewatch.schemas.health import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get("/ready", response_model=ReadinessResponse)
def readiness_check(
    cache: Annotated[CacheService, Depends(get_cache_service)],
) -> ReadinessResponse:
    """Always 200: the cache fails open, so an unavailable cache only degrades reads."""
    return ReadinessResponse(cache="available" if cache.is_available() else "degraded")

"""Dependency providers (composition root).

Cache and event bus come from app.state (set in the lifespan); repositories
share the request's transactional session so invalidation follows each flush.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from farewatch.core.config import get_settings
from farewatch.infrastructure.cache import CacheService
from farewatch.infrastructure.messaging import EventBus
from farewatch.infrastructure.persistence.database import get_db_transactional
from farewatch.infrastructure.persistence.repositories import (
    DestinationRepository,
    PriceHistoryRepository,
    UserRepository,
)
from farewatch.infrastructure.services import RateLimitService


def get_cache_service(request: Request) -> CacheService:
    return request.app.state.cache


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.events


def get_rate_limit_service(
    cache: Annotated[CacheService, Depends(get_cache_service)],
) -> RateLimitService:
    return RateLimitService(cache)


async def get_user_repo(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    cache: Annotated[CacheService, Depends(get_cache_service)],
    events: Annotated[EventBus, Depends(get_event_bus)],
) -> UserRepository:
    return UserRepository.from_session(
        db, cache, events, cache_ttl=get_settings().cache_ttl_entities
    )


async def get_destination_repo(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    cache: Annotated[CacheService, Depends(get_cache_service)],
    events: Annotated[EventBus, Depends(get_event_bus)],
) -> DestinationRepository:
    return DestinationRepository.from_session(
        db, cache, events, cache_ttl=get_settings().cache_ttl_entities
    )


async def get_price_history_repo(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    cache: Annotated[CacheService, Depends(get_cache_service)],
    events: Annotated[EventBus, Depends(get_event_bus)],
) -> PriceHistoryRepository:
    return PriceHistoryRepository.from_session(
        db, cache, events, cache_ttl=get_settings().cache_ttl_entities
    )

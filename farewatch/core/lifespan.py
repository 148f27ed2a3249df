"""Application lifespan: startup and shutdown.

Single place for infrastructure wiring: cache store, CacheService and
EventBus on app.state at startup; cache disconnect and engine dispose at
shutdown. No business logic here.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from farewatch.core.config import get_settings
from farewatch.infrastructure.cache import CacheService, InMemoryCacheStore, RedisCacheStore
from farewatch.infrastructure.messaging import EventBus
from farewatch.infrastructure.persistence.database import dispose_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    With REDIS_ENABLED the store is Redis (a failed connect leaves the cache
    unavailable and every read a miss); otherwise an in-process store is used.
    """
    settings = get_settings()

    # ---- Startup ----
    if settings.redis_enabled:
        store = RedisCacheStore()
        await store.connect()
    else:
        store = InMemoryCacheStore()
        logger.info("Redis disabled; using in-memory cache store")
    app.state.cache_store = store
    app.state.cache = CacheService(store, default_ttl=settings.cache_default_ttl)
    app.state.events = EventBus(max_listeners=settings.event_bus_max_listeners)

    yield

    # ---- Shutdown ----
    if isinstance(app.state.cache_store, RedisCacheStore):
        await app.state.cache_store.disconnect()
        logger.info("Cache disconnected")
    app.state.events.remove_all_listeners()
    await dispose_engine()

"""Cache service: public cache-aside API over a CacheStoreProtocol and TagIndex.

Used by repositories and services (record lookups, list caches, rate counters).
Values are JSON-serialized; key format lives in farewatch.infrastructure.cache.keys.

Every operation is fail-open. If the store raises or times out, get() behaves
as a miss and writes become no-ops; cache trouble is logged, never raised.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from farewatch.infrastructure.cache.keys import build_key
from farewatch.infrastructure.cache.store_protocol import CacheStoreProtocol
from farewatch.infrastructure.cache.tag_index import TagIndex

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheOptions:
    """Per-call cache settings: TTL in seconds (None = service default) and tags."""

    ttl: int | None = None
    tags: tuple[str, ...] = ()


def _json_default(value: Any) -> Any:
    """Encode values json.dumps does not handle natively."""
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, set | frozenset):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class CacheService:
    """Cache-aside service with tag-based invalidation.

    Pass the store (RedisCacheStore in production, InMemoryCacheStore when
    Redis is disabled or in tests). default_ttl applies when set() gets no
    ttl; None or 0 stores without expiry.
    """

    def __init__(
        self,
        store: CacheStoreProtocol,
        *,
        default_ttl: int | None = None,
        tag_index: TagIndex | None = None,
    ) -> None:
        self.store = store
        self.default_ttl = default_ttl or None
        self.tags = tag_index or TagIndex(store)

    def is_available(self) -> bool:
        """Return True if the underlying store is usable."""
        try:
            return self.store.is_available()
        except Exception:
            logger.warning("Cache availability check failed", exc_info=True)
            return False

    async def _guard(
        self,
        operation: str,
        key: str,
        call: Callable[[], Awaitable[T]],
        default: T,
    ) -> T:
        """Run a store call; log and return default if it raises."""
        try:
            return await call()
        except Exception:
            logger.warning("Cache %s failed for key %s; continuing without cache", operation, key, exc_info=True)
            return default

    async def get(self, key: str) -> Any | None:
        """Return cached value (JSON-deserialized) or None if missing/unavailable/corrupt.

        Args:
            key: Cache key (use farewatch.infrastructure.cache.keys builders).

        Returns:
            Cached value or None.
        """
        raw = await self._guard("get", key, lambda: self.store.get(key), None)
        if raw is None:
            logger.debug("Cache MISS: %s", key)
            return None
        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Cache entry for key %s is corrupt; treating as miss", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return value

    async def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: int | None = None,
        tags: Iterable[str] = (),
    ) -> bool:
        """Store value, then record it under tags. Returns True if serialized and sent.

        The value is written before tag association, so an invalidation never
        references a key that was not yet written.

        Args:
            key: Cache key.
            value: JSON-serializable value (datetime, Decimal, Enum, set also accepted).
            ttl: Time-to-live in seconds; None uses the service default.
            tags: Tags that should invalidate this key.

        Returns:
            False if the value could not be serialized or the store raised.
        """
        try:
            serialized = json.dumps(value, default=_json_default)
        except (TypeError, ValueError):
            logger.warning("Cache set skipped for key %s: value not serializable", key, exc_info=True)
            return False
        effective_ttl = ttl if ttl is not None else self.default_ttl
        try:
            await self.store.set(key, serialized, effective_ttl)
            tag_list = list(tags)
            if tag_list:
                await self.tags.associate(key, tag_list)
        except Exception:
            logger.warning("Cache set failed for key %s", key, exc_info=True)
            return False
        logger.debug("Cache SET: %s (TTL: %ss)", key, effective_ttl)
        return True

    async def remember(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        *,
        ttl: int | None = None,
        tags: Iterable[str] = (),
    ) -> T:
        """Cache-aside helper: return cached value, or await producer() and cache it.

        Concurrent callers that all miss will each run producer (no
        deduplication; last write wins). A None result is returned but not
        cached, since None already means "miss".
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await producer()
        if value is not None:
            await self.set(key, value, ttl=ttl, tags=tags)
        return value

    async def invalidate_tags(self, tags: Iterable[str]) -> int:
        """Delete every key recorded under any of tags. Returns number of keys removed."""
        try:
            return await self.tags.invalidate(tags)
        except Exception:
            logger.warning("Cache invalidate_tags failed", exc_info=True)
            return 0

    async def prune_tags(self, tags: Iterable[str]) -> int:
        """Remove dead key references from tag sets. Returns number pruned."""
        pruned = 0
        for tag in tags:
            pruned += await self._guard("prune", tag, lambda t=tag: self.tags.prune(t), 0)
        return pruned

    async def delete(self, key: str) -> None:
        await self._guard("delete", key, lambda: self.store.delete(key), None)
        logger.debug("Cache DELETE: %s", key)

    async def delete_many(self, keys: Iterable[str]) -> None:
        key_list = list(keys)
        if not key_list:
            return
        await self._guard("delete_many", ",".join(key_list), lambda: self.store.delete_many(key_list), None)

    async def exists(self, key: str) -> bool:
        return await self._guard("exists", key, lambda: self.store.exists(key), False)

    async def increment(self, key: str, by: int = 1) -> int:
        """Atomic counter (rate limits etc.). Returns 0 when the store is unavailable."""
        return await self._guard("increment", key, lambda: self.store.increment(key, by), 0)

    async def expire(self, key: str, ttl: int) -> None:
        await self._guard("expire", key, lambda: self.store.expire(key, ttl), None)

    async def flush(self) -> None:
        """Clear the entire cache. Use with caution."""
        await self._guard("flush", "*", self.store.flush, None)

    @staticmethod
    def build_key(prefix: str, *parts: str | int) -> str:
        """Formatted cache key, e.g. build_key("user", "id", 42) -> "user:id:42"."""
        return build_key(prefix, *parts)

"""Redis-backed cache store (the production CacheStoreProtocol implementation).

Thin async wrapper over redis.asyncio with TTL and set-membership commands.
Fail-open: a Redis outage degrades to "no caching", never to request failure.
Each command gets one reconnect attempt on ConnectionError/TimeoutError; after
that, or on any other RedisError, it logs and returns the miss/no-op value.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

import redis.asyncio as redis

from farewatch.core.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Keys per UNLINK call when deleting many keys (keeps each command small).
_DELETE_CHUNK_SIZE = 500


class RedisCacheStore:
    """Async Redis cache store with TTL and set support.

    Uses farewatch.core.config for connection settings. Call connect() at
    startup and disconnect() at shutdown. Pass redis_client for testing or DI;
    an injected client is considered connected.
    """

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """Initialize cache store.

        Args:
            redis_client: Optional Redis client for testing or DI.
        """
        self.redis = redis_client
        self.settings = get_settings()
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password.get_secret_value() if self.settings.redis_password else None,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=self.settings.redis_socket_timeout,
                    socket_keepalive=True,
                )
                await self.redis.ping()
                self._connected = True
                logger.info(
                    "Redis cache connected: %s:%s",
                    self.settings.redis_host,
                    self.settings.redis_port,
                )
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning(
                    "Redis connection failed: %s. Cache disabled.",
                    e,
                )
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis cache disconnected")

    async def _reconnect(self) -> bool:
        """Attempt to reconnect after a dropped connection. Returns True if reconnected."""
        if self.redis is None:
            return False
        try:
            await self.redis.aclose()
        except redis.RedisError:
            logger.debug("Ignoring error while closing stale Redis connection", exc_info=True)
        self.redis = None
        self._connected = False
        await self.connect()
        return self._connected

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def _execute(
        self,
        operation: str,
        key: str,
        command: Callable[[redis.Redis], Awaitable[T]],
        default: T,
    ) -> T:
        """Run command against Redis with one reconnect attempt; return default on failure.

        Args:
            operation: Name used in log lines (e.g. 'get', 'sadd').
            key: Key the command targets, for log lines.
            command: Callable receiving the live client.
            default: Value returned when Redis is unavailable or errors.
        """
        if not self.is_available() or self.redis is None:
            return default
        try:
            return await command(self.redis)
        except (redis.ConnectionError, redis.TimeoutError):
            if await self._reconnect() and self.redis is not None:
                try:
                    return await command(self.redis)
                except redis.RedisError:
                    logger.exception("Cache %s error for key %s after reconnect", operation, key)
                    return default
            logger.warning("Cache %s unavailable for key %s (Redis disconnected)", operation, key)
            return default
        except redis.RedisError:
            logger.exception("Cache %s error for key %s", operation, key)
            return default

    async def get(self, key: str) -> str | None:
        return await self._execute("get", key, lambda r: r.get(key), None)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        if ttl:
            await self._execute("set", key, lambda r: r.setex(key, ttl, value), None)
        else:
            await self._execute("set", key, lambda r: r.set(key, value), None)

    async def delete(self, key: str) -> None:
        await self._execute("delete", key, lambda r: r.delete(key), None)

    async def delete_many(self, keys: Iterable[str]) -> None:
        """UNLINK keys in chunks (non-blocking delete on the server)."""
        key_list = list(keys)
        if not key_list:
            return

        async def _unlink(r: redis.Redis) -> None:
            async with r.pipeline(transaction=False) as pipe:
                for start in range(0, len(key_list), _DELETE_CHUNK_SIZE):
                    pipe.unlink(*key_list[start : start + _DELETE_CHUNK_SIZE])
                await pipe.execute()

        await self._execute("delete_many", f"<{len(key_list)} keys>", _unlink, None)

    async def add_to_set(self, set_key: str, member: str) -> None:
        await self._execute("sadd", set_key, lambda r: r.sadd(set_key, member), None)

    async def members_of(self, set_key: str) -> set[str]:
        members: Any = await self._execute("smembers", set_key, lambda r: r.smembers(set_key), set())
        return set(members)

    async def remove_from_set(self, set_key: str, members: Iterable[str]) -> None:
        member_list = list(members)
        if not member_list:
            return
        await self._execute("srem", set_key, lambda r: r.srem(set_key, *member_list), None)

    async def delete_set(self, set_key: str) -> None:
        await self._execute("delete_set", set_key, lambda r: r.delete(set_key), None)

    async def increment(self, key: str, by: int = 1) -> int:
        result = await self._execute("incrby", key, lambda r: r.incrby(key, by), 0)
        return int(result)

    async def expire(self, key: str, ttl: int) -> None:
        await self._execute("expire", key, lambda r: r.expire(key, ttl), None)

    async def exists(self, key: str) -> bool:
        result = await self._execute("exists", key, lambda r: r.exists(key), 0)
        return bool(result)

    async def flush(self) -> None:
        """Clear the whole Redis database. Use with caution."""
        await self._execute("flushdb", "*", lambda r: r.flushdb(), None)
        logger.warning("Cache CLEARED: all keys deleted")

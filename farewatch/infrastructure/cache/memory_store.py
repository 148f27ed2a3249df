"""In-process cache store: used when Redis is disabled and in tests.

Implements CacheStoreProtocol with a dict and lazy TTL expiry on a
monotonic clock. Not shared across processes.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable


class InMemoryCacheStore:
    """Dict-backed CacheStoreProtocol with TTL support."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._values: dict[str, str] = {}
        self._sets: dict[str, set[str]] = {}
        self._expires_at: dict[str, float] = {}

    def is_available(self) -> bool:
        return True

    def _expired(self, key: str) -> bool:
        deadline = self._expires_at.get(key)
        if deadline is not None and deadline <= self._clock():
            self._values.pop(key, None)
            self._sets.pop(key, None)
            self._expires_at.pop(key, None)
            return True
        return False

    async def get(self, key: str) -> str | None:
        if self._expired(key):
            return None
        return self._values.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        self._values[key] = value
        if ttl:
            self._expires_at[key] = self._clock() + ttl
        else:
            self._expires_at.pop(key, None)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._sets.pop(key, None)
        self._expires_at.pop(key, None)

    async def delete_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            await self.delete(key)

    async def add_to_set(self, set_key: str, member: str) -> None:
        self._expired(set_key)
        self._sets.setdefault(set_key, set()).add(member)

    async def members_of(self, set_key: str) -> set[str]:
        if self._expired(set_key):
            return set()
        return set(self._sets.get(set_key, ()))

    async def remove_from_set(self, set_key: str, members: Iterable[str]) -> None:
        current = self._sets.get(set_key)
        if current is None:
            return
        current.difference_update(members)
        if not current:
            del self._sets[set_key]

    async def delete_set(self, set_key: str) -> None:
        self._sets.pop(set_key, None)
        self._expires_at.pop(set_key, None)

    async def increment(self, key: str, by: int = 1) -> int:
        self._expired(key)
        value = int(self._values.get(key, "0")) + by
        self._values[key] = str(value)
        return value

    async def expire(self, key: str, ttl: int) -> None:
        if key in self._values or key in self._sets:
            self._expires_at[key] = self._clock() + ttl

    async def exists(self, key: str) -> bool:
        if self._expired(key):
            return False
        return key in self._values or key in self._sets

    async def flush(self) -> None:
        self._values.clear()
        self._sets.clear()
        self._expires_at.clear()

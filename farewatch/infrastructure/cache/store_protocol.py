"""Cache store protocol (DIP). Implemented by RedisCacheStore and InMemoryCacheStore.

Values are already-serialized strings; serialization belongs to CacheService.
Every method is best-effort: implementations log transport failures and
behave as a miss or a no-op instead of raising.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable


@runtime_checkable
class CacheStoreProtocol(Protocol):
    """Key-value store with TTL and set-membership operations."""

    def is_available(self) -> bool:
        """Return True if the store is connected and usable."""
        ...

    async def get(self, key: str) -> str | None:
        """Return the stored string or None (missing or unavailable)."""
        ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store value; ttl in seconds, None for no expiry."""
        ...

    async def delete(self, key: str) -> None:
        """Remove key. Absent keys are a no-op."""
        ...

    async def delete_many(self, keys: Iterable[str]) -> None:
        """Remove several keys in one round-trip. Empty input is a no-op."""
        ...

    async def add_to_set(self, set_key: str, member: str) -> None:
        """Add member to the set stored at set_key (created on first add)."""
        ...

    async def members_of(self, set_key: str) -> set[str]:
        """Return the members of the set at set_key (empty if missing)."""
        ...

    async def remove_from_set(self, set_key: str, members: Iterable[str]) -> None:
        """Remove members from the set at set_key."""
        ...

    async def delete_set(self, set_key: str) -> None:
        """Remove the set at set_key."""
        ...

    async def increment(self, key: str, by: int = 1) -> int:
        """Atomically add by to the integer at key; 0 when unavailable."""
        ...

    async def expire(self, key: str, ttl: int) -> None:
        """Set a TTL in seconds on an existing key."""
        ...

    async def exists(self, key: str) -> bool:
        """Return True if key is present."""
        ...

    async def flush(self) -> None:
        """Remove every key in the store. Use with caution."""
        ...

"""Tag index: reverse mapping tag -> set of cache keys.

Invalidating a tag removes every key ever set with it, even keys that belong
to unrelated entities. Sets live under "tag:<tag>" in the same store as the
values; they are created implicitly on first add and removed on invalidation.

Tag sets carry no TTL of their own. A set may therefore reference keys that
already expired; deleting those is a no-op, and prune() drops them on demand.

Known race: a set() that adds its key after invalidate() has read a tag's
members but before it deletes the tag set loses its membership and the value
survives invalidation until its TTL. Short entry TTLs bound that window.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from farewatch.infrastructure.cache.keys import tag_key
from farewatch.infrastructure.cache.store_protocol import CacheStoreProtocol

logger = logging.getLogger(__name__)


def _distinct(tags: Iterable[str]) -> list[str]:
    """Drop empty and duplicate tags, keeping first-seen order."""
    return list(dict.fromkeys(t for t in tags if t))


class TagIndex:
    """Associates cache keys with tags and invalidates by tag."""

    def __init__(self, store: CacheStoreProtocol) -> None:
        self.store = store

    @staticmethod
    def tag_key(tag: str) -> str:
        return tag_key(tag)

    async def associate(self, key: str, tags: Iterable[str]) -> None:
        """Record key as a member of every tag. Called once per tagged set()."""
        for tag in _distinct(tags):
            await self.store.add_to_set(tag_key(tag), key)

    async def members(self, tag: str) -> set[str]:
        """Keys currently recorded under tag."""
        return await self.store.members_of(tag_key(tag))

    async def invalidate(self, tags: Iterable[str]) -> int:
        """Delete every key recorded under each tag, then the tag sets themselves.

        Failures are isolated per tag: one failing tag is logged and the rest
        are still processed.

        Returns:
            Number of key references removed across all tags.
        """
        distinct = _distinct(tags)
        removed = 0
        for tag in distinct:
            try:
                members = await self.store.members_of(tag_key(tag))
                if members:
                    await self.store.delete_many(members)
                    await self.store.delete_set(tag_key(tag))
                    removed += len(members)
            except Exception:
                logger.warning("Cache tag invalidation failed for tag %s", tag, exc_info=True)
        if removed:
            logger.debug("Cache INVALIDATE tags=%s (%s keys)", distinct, removed)
        return removed

    async def prune(self, tag: str) -> int:
        """Drop members of tag whose key no longer exists (e.g. expired by TTL).

        Returns:
            Number of dead references removed.
        """
        members = await self.store.members_of(tag_key(tag))
        dead = [key for key in members if not await self.store.exists(key)]
        if dead:
            await self.store.remove_from_set(tag_key(tag), dead)
            logger.debug("Cache PRUNE tag=%s (%s dead keys)", tag, len(dead))
        return len(dead)

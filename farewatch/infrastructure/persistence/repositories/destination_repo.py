"""Destination repository: per-user list caches and per-destination tags."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from farewatch.infrastructure.cache.cache_service import CacheOptions
from farewatch.infrastructure.cache.keys import destination_tag, user_destinations_tag
from farewatch.infrastructure.persistence.models.destination import Destination
from farewatch.infrastructure.persistence.repositories.base import CachedRepository

DESTINATIONS_TAG = "destinations"


class DestinationRepository(CachedRepository[Destination]):
    """Destination repository.

    Writes invalidate "destination_<id>" and "user_<user_id>_destinations" in
    addition to the generic tags, so per-user lists never outlive a change.
    """

    model = Destination

    async def find_by_user_id(self, user_id: str) -> list[Destination]:
        return await self.find_by(
            {"user_id": user_id},
            cache=CacheOptions(
                ttl=self.cache_ttl, tags=(DESTINATIONS_TAG, user_destinations_tag(user_id))
            ),
        )

    async def find_cached(self, destination_id: str) -> Destination | None:
        """find_by_id cached under the destination's own tag."""
        return await self.find_by_id(
            destination_id,
            cache=CacheOptions(
                ttl=self.cache_ttl, tags=(DESTINATIONS_TAG, destination_tag(destination_id))
            ),
        )

    async def find_by_route(self, origin: str, destination: str) -> list[Destination]:
        return await self.find_by({"origin": origin, "destination": destination})

    async def find_active_by_user_id(self, user_id: str) -> list[Destination]:
        """Newest first, straight from the store."""
        return await self.store.find_where(
            {"user_id": user_id}, order_by="created_at", descending=True
        )

    async def count_by_user_id(self, user_id: str) -> int:
        return await self.count({"user_id": user_id})

    def _tags_before_update(self, record: Destination, data: Mapping[str, Any]) -> list[str]:
        """Moving a destination to another user also clears the old owner's lists."""
        tags = super()._tags_before_update(record, data)
        if "user_id" in data and data["user_id"] != record.user_id:
            tags.append(user_destinations_tag(record.user_id))
        return tags

    def _owner_tags(self, record: Destination) -> list[str]:
        return [destination_tag(record.id), user_destinations_tag(record.user_id)]

    async def _on_after_create(self, record: Destination) -> list[str]:
        return [*await super()._on_after_create(record), user_destinations_tag(record.user_id)]

    async def _on_after_update(self, record: Destination) -> list[str]:
        return [*await super()._on_after_update(record), *self._owner_tags(record)]

    async def _on_after_delete(self, record: Destination) -> list[str]:
        return [*await super()._on_after_delete(record), *self._owner_tags(record)]

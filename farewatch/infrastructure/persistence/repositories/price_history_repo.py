"""Price history repository: append-only fares with cached aggregates.

Reads and aggregates for one destination are tagged
"destination_<id>_history"; recording, correcting, deleting or pruning
prices invalidates it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from farewatch.infrastructure.cache.cache_service import CacheOptions
from farewatch.infrastructure.cache.decorators import cache_evict, cached
from farewatch.infrastructure.cache.keys import destination_history_tag
from farewatch.infrastructure.persistence.models.price_history import PriceHistory
from farewatch.infrastructure.persistence.repositories.base import CachedRepository
from farewatch.shared.utils.datetime import ensure_utc, utc_now

PRICE_HISTORIES_TAG = "price_histories"


def _history_tags(destination_id: str, *args: Any, **kwargs: Any) -> list[str]:
    return [destination_history_tag(destination_id)]


class PriceHistoryRepository(CachedRepository[PriceHistory]):
    """PriceHistory repository. No soft delete: deletes remove rows."""

    model = PriceHistory

    async def record_price(
        self,
        destination_id: str,
        price: float,
        currency: str,
        *,
        scanned_at: datetime | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> PriceHistory:
        return await self.create(
            {
                "destination_id": destination_id,
                "price": price,
                "currency": currency,
                "scanned_at": scanned_at or utc_now(),
                "price_metadata": metadata,
            }
        )

    async def find_by_destination_id(self, destination_id: str) -> list[PriceHistory]:
        return await self.find_by(
            {"destination_id": destination_id},
            cache=CacheOptions(
                ttl=self.cache_ttl,
                tags=(PRICE_HISTORIES_TAG, destination_history_tag(destination_id)),
            ),
        )

    async def find_by_destination_id_ordered(
        self, destination_id: str, *, descending: bool = False
    ) -> list[PriceHistory]:
        return await self.store.find_where(
            {"destination_id": destination_id}, order_by="scanned_at", descending=descending
        )

    async def find_by_date_range(
        self, destination_id: str, start: datetime, end: datetime
    ) -> list[PriceHistory]:
        """Entries scanned within [start, end], oldest first."""
        return await self.store.find_between(
            "scanned_at",
            ensure_utc(start),
            ensure_utc(end),
            {"destination_id": destination_id},
            order_by="scanned_at",
        )

    async def find_latest_by_destination_id(
        self, destination_id: str, limit: int = 30
    ) -> list[PriceHistory]:
        return await self.store.find_where(
            {"destination_id": destination_id},
            order_by="scanned_at",
            descending=True,
            limit=limit,
        )

    async def find_lowest_price(self, destination_id: str) -> PriceHistory | None:
        return await self.store.find_one_where({"destination_id": destination_id}, order_by="price")

    async def find_highest_price(self, destination_id: str) -> PriceHistory | None:
        return await self.store.find_one_where(
            {"destination_id": destination_id}, order_by="price", descending=True
        )

    async def count_by_destination_id(self, destination_id: str) -> int:
        return await self.count({"destination_id": destination_id})

    @cached("pricehistory:avg", ttl=300, tag_builder=_history_tags)
    async def get_average_price(self, destination_id: str) -> float:
        entries = await self.store.find_where({"destination_id": destination_id})
        if not entries:
            return 0.0
        return sum(e.price for e in entries) / len(entries)

    @cached("pricehistory:stats", ttl=300, tag_builder=_history_tags)
    async def get_statistics(self, destination_id: str) -> dict[str, float | int]:
        """min, max, avg and count of recorded prices (zeros when none)."""
        prices = [e.price for e in await self.store.find_where({"destination_id": destination_id})]
        if not prices:
            return {"min": 0.0, "max": 0.0, "avg": 0.0, "count": 0}
        return {
            "min": min(prices),
            "max": max(prices),
            "avg": sum(prices) / len(prices),
            "count": len(prices),
        }

    @cache_evict(tag_builder=_history_tags)
    async def prune_old_entries(self, destination_id: str, keep_count: int = 365) -> int:
        """Hard-delete all but the newest keep_count entries. Returns number removed."""
        entries = await self.find_by_destination_id_ordered(destination_id, descending=True)
        stale = entries[keep_count:]
        for entry in stale:
            await self.delete(entry.id, soft=False, skip_hooks=True)
        return len(stale)

    async def _on_after_create(self, record: PriceHistory) -> list[str]:
        return [*await super()._on_after_create(record), destination_history_tag(record.destination_id)]

    async def _on_after_update(self, record: PriceHistory) -> list[str]:
        return [*await super()._on_after_update(record), destination_history_tag(record.destination_id)]

    async def _on_after_delete(self, record: PriceHistory) -> list[str]:
        return [*await super()._on_after_delete(record), destination_history_tag(record.destination_id)]

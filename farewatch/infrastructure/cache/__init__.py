"""Cache: stores, tag index, cache-aside service, and key utilities.

Used by repositories and services. RedisCacheStore is the production store;
InMemoryCacheStore backs local runs with Redis disabled and tests. Key format
is in keys.py (DRY).
"""

from farewatch.infrastructure.cache.cache_service import CacheOptions, CacheService
from farewatch.infrastructure.cache.decorators import cache_evict, cached
from farewatch.infrastructure.cache.keys import (
    build_key,
    destination_history_tag,
    destination_tag,
    entity_all_key,
    entity_criteria_key,
    entity_id_key,
    entity_tags,
    rate_limit_key,
    tag_key,
    user_destinations_tag,
)
from farewatch.infrastructure.cache.memory_store import InMemoryCacheStore
from farewatch.infrastructure.cache.redis_store import RedisCacheStore
from farewatch.infrastructure.cache.store_protocol import CacheStoreProtocol
from farewatch.infrastructure.cache.tag_index import TagIndex

__all__ = [
    "CacheOptions",
    "CacheService",
    "CacheStoreProtocol",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "TagIndex",
    "build_key",
    "cache_evict",
    "cached",
    "destination_history_tag",
    "destination_tag",
    "entity_all_key",
    "entity_criteria_key",
    "entity_id_key",
    "entity_tags",
    "rate_limit_key",
    "tag_key",
    "user_destinations_tag",
]

"""Core constants: cache key structure and shared literal values.

Single source of truth for cache key and tag layout (DRY). Used by
infrastructure cache, repositories, and the rate limiter.
"""

# Delimiter for composite keys (entity:discriminator:value)
CACHE_KEY_SEP = ":"

# Reverse index sets live under "tag:<tag>"
CACHE_TAG_PREFIX = "tag"

# Discriminators used by the generic repository
CACHE_DISCRIMINATOR_ID = "id"
CACHE_DISCRIMINATOR_ALL = "all"
CACHE_DISCRIMINATOR_BY = "by"
CACHE_DISCRIMINATOR_ONE = "one"
CACHE_SUFFIX_WITH_DELETED = "with_deleted"

# Every entity type owns "<type>" and "<type>_list" tags
LIST_TAG_SUFFIX = "_list"

CACHE_PREFIX_RATE_LIMIT = "ratelimit"

# Lifecycle event phases, emitted as "<entity_type>.<phase>"
EVENT_BEFORE_CREATE = "before_create"
EVENT_CREATED = "created"
EVENT_BEFORE_UPDATE = "before_update"
EVENT_UPDATED = "updated"
EVENT_BEFORE_DELETE = "before_delete"
EVENT_DELETED = "deleted"

"""Base repository: cache-aside reads, tag invalidation on writes, lifecycle hooks.

CachedRepository composes an entity store (the only writer of rows), a
CacheService and an optional event sink. Reads consult the cache only when
asked to (cache=CacheOptions(...) or cache=True). Every write invalidates
before it returns:

- the record's own id keys (normal and with_deleted), on update/delete/restore
- caller-supplied tags and tags returned by after-hooks
- the "<type>" and "<type>_list" tags, covering id entries and list reads

Known limitations:
- invalidation runs after flush but before the session owner commits, so a
  concurrent reader in that window can re-cache pre-commit data until its TTL
- a cache set racing a tag invalidation can survive it (see tag_index)
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, Self, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from farewatch.core.constants import (
    EVENT_BEFORE_CREATE,
    EVENT_BEFORE_DELETE,
    EVENT_BEFORE_UPDATE,
    EVENT_CREATED,
    EVENT_DELETED,
    EVENT_UPDATED,
)
from farewatch.domain.exceptions import (
    ResourceNotFoundException,
    UnsupportedOperationException,
)
from farewatch.infrastructure.cache.cache_service import CacheOptions, CacheService
from farewatch.infrastructure.cache.keys import (
    entity_all_key,
    entity_criteria_key,
    entity_id_key,
    entity_tags,
)
from farewatch.infrastructure.messaging.event_bus import (
    EventPayload,
    EventSinkProtocol,
)
from farewatch.infrastructure.persistence.database import Base
from farewatch.infrastructure.persistence.entity_store import (
    Criteria,
    EntityStoreProtocol,
    Page,
    SqlAlchemyEntityStore,
)

logger = logging.getLogger(__name__)

TagsResult = Iterable[str] | None

ModelType = TypeVar("ModelType")
BaseModelType = TypeVar("BaseModelType", bound=Base)


@dataclass
class RepositoryHooks(Generic[ModelType]):
    """Optional async callbacks around repository writes.

    Before-hooks may raise to veto the write; after-hooks may return extra
    tags to invalidate. Exceptions from any hook propagate to the caller.
    """

    before_create: Callable[[dict[str, Any]], Awaitable[None]] | None = None
    after_create: Callable[[ModelType], Awaitable[TagsResult]] | None = None
    before_update: Callable[[str, dict[str, Any], ModelType], Awaitable[None]] | None = None
    after_update: Callable[[ModelType], Awaitable[TagsResult]] | None = None
    before_delete: Callable[[ModelType], Awaitable[None]] | None = None
    after_delete: Callable[[ModelType], Awaitable[TagsResult]] | None = None


class CachedRepository(Generic[BaseModelType]):
    """Generic CRUD over one model with transparent caching and invalidation.

    Subclasses add domain finders and may override the _on_* methods (calling
    super()) to return extra tags; RepositoryHooks passed at construction are
    run by the default implementations.
    """

    model: ClassVar[type[Base] | None] = None

    def __init__(
        self,
        store: EntityStoreProtocol[BaseModelType],
        cache: CacheService,
        events: EventSinkProtocol | None = None,
        hooks: RepositoryHooks[BaseModelType] | None = None,
        *,
        cache_ttl: int | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.events = events
        self.hooks = hooks or RepositoryHooks()
        self.cache_ttl = cache_ttl

    @classmethod
    def from_session(
        cls,
        db: AsyncSession,
        cache: CacheService,
        events: EventSinkProtocol | None = None,
        **kwargs: Any,
    ) -> Self:
        """Build the repository over a SqlAlchemyEntityStore for cls.model."""
        if cls.model is None:
            raise TypeError(f"{cls.__name__} does not declare a model")
        return cls(SqlAlchemyEntityStore(db, cls.model), cache, events, **kwargs)

    @property
    def entity_type(self) -> str:
        return self.store.entity_type

    @property
    def entity_tag(self) -> str:
        return entity_tags(self.entity_type)[0]

    @property
    def list_tag(self) -> str:
        return entity_tags(self.entity_type)[1]

    # ---- cache helpers ----

    def _cache_options(self, cache: CacheOptions | bool | None) -> CacheOptions | None:
        if cache is None or cache is False:
            return None
        if cache is True:
            return CacheOptions(ttl=self.cache_ttl)
        return cache

    def _ttl(self, options: CacheOptions) -> int | None:
        return options.ttl if options.ttl is not None else self.cache_ttl

    def _record_tags(self, options: CacheOptions) -> list[str]:
        return [self.entity_tag, *options.tags]

    def _list_tags(self, options: CacheOptions) -> list[str]:
        return [self.entity_tag, self.list_tag, *options.tags]

    async def _cached_list(
        self,
        key: str,
        options: CacheOptions | None,
        producer: Callable[[], Awaitable[list[BaseModelType]]],
    ) -> list[BaseModelType]:
        if options is None:
            return await producer()
        cached = await self.cache.get(key)
        if isinstance(cached, list):
            return [self.store.load(item) for item in cached]
        records = await producer()
        await self.cache.set(
            key,
            [self.store.dump(record) for record in records],
            ttl=self._ttl(options),
            tags=self._list_tags(options),
        )
        return records

    async def _forget_record(self, entity_id: str) -> None:
        """Delete both id keys of a record, whatever tags they were cached under."""
        await self.cache.delete_many(
            [
                entity_id_key(self.entity_type, entity_id),
                entity_id_key(self.entity_type, entity_id, include_deleted=True),
            ]
        )

    async def _invalidate(self, tags: Iterable[str]) -> None:
        distinct = list(dict.fromkeys(tags))
        if distinct:
            await self.cache.invalidate_tags(distinct)

    async def invalidate_list_caches(self) -> None:
        """Invalidate the "<type>" and "<type>_list" tags, whatever the caller tagged."""
        await self.cache.invalidate_tags(list(entity_tags(self.entity_type)))

    # ---- events and hooks ----

    async def _emit(self, phase: str, payload: EventPayload) -> None:
        if self.events is None:
            return
        event_name = f"{self.entity_type}.{phase}"
        try:
            await self.events.emit(event_name, payload)
        except Exception:
            logger.warning("Event sink failed for %s", event_name, exc_info=True)

    async def _on_before_create(self, data: dict[str, Any]) -> None:
        if self.hooks.before_create is not None:
            await self.hooks.before_create(data)

    async def _on_after_create(self, record: BaseModelType) -> list[str]:
        if self.hooks.after_create is None:
            return []
        return list(await self.hooks.after_create(record) or ())

    def _tags_before_update(self, record: BaseModelType, data: Mapping[str, Any]) -> list[str]:
        """Tags derived from the record as it was before an update (always invalidated)."""
        return []

    async def _on_before_update(self, entity_id: str, data: dict[str, Any], record: BaseModelType) -> None:
        if self.hooks.before_update is not None:
            await self.hooks.before_update(entity_id, data, record)

    async def _on_after_update(self, record: BaseModelType) -> list[str]:
        if self.hooks.after_update is None:
            return []
        return list(await self.hooks.after_update(record) or ())

    async def _on_before_delete(self, record: BaseModelType) -> None:
        if self.hooks.before_delete is not None:
            await self.hooks.before_delete(record)

    async def _on_after_delete(self, record: BaseModelType) -> list[str]:
        if self.hooks.after_delete is None:
            return []
        return list(await self.hooks.after_delete(record) or ())

    # ---- reads ----

    async def find_by_id(
        self,
        entity_id: str,
        *,
        include_deleted: bool = False,
        cache: CacheOptions | bool | None = None,
    ) -> BaseModelType | None:
        """Return a record by id, from cache when requested and present.

        A cache hit returns a detached instance rebuilt from the cached columns.
        """
        options = self._cache_options(cache)
        if options is None:
            return await self.store.find_by_id(entity_id, include_deleted)
        key = entity_id_key(self.entity_type, entity_id, include_deleted=include_deleted)
        cached = await self.cache.get(key)
        if isinstance(cached, dict):
            return self.store.load(cached)
        record = await self.store.find_by_id(entity_id, include_deleted)
        if record is not None:
            await self.cache.set(
                key,
                self.store.dump(record),
                ttl=self._ttl(options),
                tags=self._record_tags(options),
            )
        return record

    async def find_by_id_or_fail(
        self,
        entity_id: str,
        *,
        include_deleted: bool = False,
        cache: CacheOptions | bool | None = None,
    ) -> BaseModelType:
        record = await self.find_by_id(entity_id, include_deleted=include_deleted, cache=cache)
        if record is None:
            raise ResourceNotFoundException(self.entity_type, str(entity_id))
        return record

    async def find_all(
        self,
        *,
        include_deleted: bool = False,
        cache: CacheOptions | bool | None = None,
    ) -> list[BaseModelType]:
        key = entity_all_key(self.entity_type, include_deleted=include_deleted)
        return await self._cached_list(
            key,
            self._cache_options(cache),
            lambda: self.store.find_all(include_deleted),
        )

    async def find_by(
        self,
        criteria: Criteria,
        *,
        include_deleted: bool = False,
        cache: CacheOptions | bool | None = None,
    ) -> list[BaseModelType]:
        """Records matching every criteria column, optionally cached as a list."""
        key = entity_criteria_key(self.entity_type, criteria, include_deleted=include_deleted)
        return await self._cached_list(
            key,
            self._cache_options(cache),
            lambda: self.store.find_where(criteria, include_deleted),
        )

    async def find_one_by(
        self,
        criteria: Criteria,
        *,
        include_deleted: bool = False,
        cache: CacheOptions | bool | None = None,
    ) -> BaseModelType | None:
        options = self._cache_options(cache)
        key = entity_criteria_key(
            self.entity_type, criteria, single=True, include_deleted=include_deleted
        )
        if options is not None:
            cached = await self.cache.get(key)
            if isinstance(cached, dict):
                return self.store.load(cached)
        record = await self.store.find_one_where(criteria, include_deleted)
        if record is not None and options is not None:
            await self.cache.set(
                key,
                self.store.dump(record),
                ttl=self._ttl(options),
                tags=self._list_tags(options),
            )
        return record

    async def exists(self, criteria: Criteria) -> bool:
        return await self.store.exists(criteria)

    async def count(self, criteria: Criteria | None = None) -> int:
        return await self.store.count(criteria)

    async def paginate(
        self, page: int = 1, per_page: int = 20, criteria: Criteria | None = None
    ) -> Page[BaseModelType]:
        return await self.store.paginate(page, per_page, criteria)

    # ---- writes ----

    async def create(
        self,
        fields: Mapping[str, Any],
        *,
        tags: Iterable[str] = (),
        skip_hooks: bool = False,
    ) -> BaseModelType:
        """Insert a record, then invalidate caller, hook and list tags."""
        data = dict(fields)
        if not skip_hooks:
            await self._emit(EVENT_BEFORE_CREATE, {"data": data})
            await self._on_before_create(data)
        record = await self.store.insert(data)
        extra: list[str] = []
        if not skip_hooks:
            await self._emit(EVENT_CREATED, {"record": record})
            extra = await self._on_after_create(record)
        await self._invalidate([*tags, *extra])
        await self.invalidate_list_caches()
        return record

    async def update(
        self,
        entity_id: str,
        fields: Mapping[str, Any],
        *,
        tags: Iterable[str] = (),
        skip_hooks: bool = False,
    ) -> BaseModelType:
        """Merge fields into an existing record; id keys are always cleared.

        Raises:
            ResourceNotFoundException: no visible record with entity_id.
        """
        record = await self.find_by_id_or_fail(entity_id)
        data = dict(fields)
        if not skip_hooks:
            await self._emit(EVENT_BEFORE_UPDATE, {"id": entity_id, "data": data, "record": record})
            await self._on_before_update(entity_id, data, record)
        previous = self._tags_before_update(record, data)
        updated = await self.store.merge_and_save(entity_id, data)
        extra: list[str] = []
        if not skip_hooks:
            await self._emit(EVENT_UPDATED, {"record": updated})
            extra = await self._on_after_update(updated)
        await self._forget_record(entity_id)
        await self._invalidate([*tags, *previous, *extra])
        await self.invalidate_list_caches()
        return updated

    async def delete(
        self,
        entity_id: str,
        *,
        soft: bool = True,
        tags: Iterable[str] = (),
        skip_hooks: bool = False,
    ) -> None:
        """Soft delete when requested and supported by the model, otherwise remove the row.

        Raises:
            ResourceNotFoundException: no visible record with entity_id.
        """
        record = await self.find_by_id_or_fail(entity_id)
        if not skip_hooks:
            await self._emit(EVENT_BEFORE_DELETE, {"record": record})
            await self._on_before_delete(record)
        if soft and self.store.supports_soft_delete():
            await self.store.soft_delete(entity_id)
        else:
            await self.store.hard_delete(entity_id)
        extra: list[str] = []
        if not skip_hooks:
            await self._emit(EVENT_DELETED, {"record": record})
            extra = await self._on_after_delete(record)
        await self._forget_record(entity_id)
        await self._invalidate([*tags, *extra])
        await self.invalidate_list_caches()

    async def restore(self, entity_id: str) -> BaseModelType:
        """Clear deleted_at on a soft-deleted record and return it.

        Raises:
            UnsupportedOperationException: the model has no soft delete.
            ResourceNotFoundException: no record with entity_id, deleted or not.
        """
        if not self.store.supports_soft_delete():
            raise UnsupportedOperationException(self.entity_type, "restore")
        record = await self.store.find_by_id(entity_id, include_deleted=True)
        if record is None:
            raise ResourceNotFoundException(self.entity_type, str(entity_id))
        await self.store.restore(entity_id)
        await self._forget_record(entity_id)
        await self.invalidate_list_caches()
        return record

"""Pytest configuration and fixtures for farewatch.

Unit tests run against InMemoryCacheStore and an in-memory entity store, so
they need neither Redis nor Postgres. HTTP tests use farewatch.main.create_app
with the lifespan entered by the client fixture. DB-backed tests take the
db_session fixture and are marked requires_db.
"""

import os
from collections.abc import Mapping
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from farewatch.core.config import get_settings
from farewatch.domain.exceptions import (
    ResourceNotFoundException,
    UnsupportedOperationException,
)
from farewatch.infrastructure.cache import CacheService, InMemoryCacheStore
from farewatch.infrastructure.persistence import database
from farewatch.infrastructure.persistence.entity_store import (
    Page,
    SqlAlchemyEntityStore,
)
from farewatch.shared.utils.datetime import utc_now
from farewatch.shared.utils.generators import generate_cuid

# Tests never talk to a real Redis unless asked to.
os.environ.setdefault("REDIS_ENABLED", "false")
get_settings.cache_clear()


class FakeClock:
    """Manually advanced clock for TTL and rate-limit window tests."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingCacheStore:
    """Cache store whose every operation raises, as a dropped Redis would."""

    def __init__(self) -> None:
        self.calls = 0

    def is_available(self) -> bool:
        return True

    def __getattr__(self, name: str) -> Any:
        async def _fail(*args: Any, **kwargs: Any) -> Any:
            self.calls += 1
            raise ConnectionError(f"cache down ({name})")

        return _fail


class RecordingEventSink:
    """Event sink that records (event_name, payload) pairs."""

    def __init__(self, fail: bool = False) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.fail = fail

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    async def emit(self, event_name: str, payload: dict[str, Any] | None = None) -> bool:
        self.events.append((event_name, payload or {}))
        if self.fail:
            raise RuntimeError("sink down")
        return True


class InMemoryEntityStore:
    """Entity store over a dict of real model instances (no session).

    dump/load and soft-delete detection delegate to SqlAlchemyEntityStore so
    cache payloads go through the production codec. reads counts store hits.
    """

    def __init__(self, model: type) -> None:
        self.model = model
        self.rows: dict[str, Any] = {}
        self.reads = 0
        self._codec = SqlAlchemyEntityStore(AsyncMock(), model)

    @property
    def entity_type(self) -> str:
        return self._codec.entity_type

    def supports_soft_delete(self) -> bool:
        return self._codec.supports_soft_delete()

    def _visible(self, record: Any, include_deleted: bool) -> bool:
        return include_deleted or getattr(record, "deleted_at", None) is None

    def _matching(self, criteria: Mapping[str, Any] | None, include_deleted: bool = False) -> list[Any]:
        for key in criteria or {}:
            self._codec._attr(key)
        return [
            r
            for r in self.rows.values()
            if self._visible(r, include_deleted)
            and all(getattr(r, k) == v for k, v in (criteria or {}).items())
        ]

    def _get_or_raise(self, entity_id: str) -> Any:
        record = self.rows.get(entity_id)
        if record is None:
            raise ResourceNotFoundException(self.entity_type, entity_id)
        return record

    async def find_by_id(self, entity_id: str, include_deleted: bool = False) -> Any:
        self.reads += 1
        record = self.rows.get(entity_id)
        if record is None or not self._visible(record, include_deleted):
            return None
        return record

    async def find_all(self, include_deleted: bool = False) -> list[Any]:
        self.reads += 1
        return self._matching(None, include_deleted)

    async def find_where(
        self,
        criteria: Mapping[str, Any],
        include_deleted: bool = False,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Any]:
        self.reads += 1
        records = self._matching(criteria, include_deleted)
        if order_by is not None:
            records.sort(key=lambda r: getattr(r, order_by), reverse=descending)
        return records[:limit] if limit is not None else records

    async def find_one_where(
        self,
        criteria: Mapping[str, Any],
        include_deleted: bool = False,
        order_by: str | None = None,
        descending: bool = False,
    ) -> Any:
        records = await self.find_where(criteria, include_deleted, order_by, descending, limit=1)
        return records[0] if records else None

    async def find_between(
        self,
        column: str,
        start: Any,
        end: Any,
        criteria: Mapping[str, Any] | None = None,
        include_deleted: bool = False,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Any]:
        self.reads += 1
        self._codec._attr(column)
        records = [r for r in self._matching(criteria, include_deleted) if start <= getattr(r, column) <= end]
        if order_by is not None:
            records.sort(key=lambda r: getattr(r, order_by), reverse=descending)
        return records

    async def insert(self, fields: Mapping[str, Any]) -> Any:
        data = dict(fields)
        data.setdefault("id", generate_cuid())
        if "created_at" in self._codec._columns:
            data.setdefault("created_at", utc_now())
            data.setdefault("updated_at", utc_now())
        record = self.model(**data)
        self.rows[record.id] = record
        return record

    async def merge_and_save(self, entity_id: str, fields: Mapping[str, Any]) -> Any:
        record = self._get_or_raise(entity_id)
        for key, value in fields.items():
            self._codec._attr(key)
            setattr(record, key, value)
        if "updated_at" in self._codec._columns:
            record.updated_at = utc_now()
        return record

    async def soft_delete(self, entity_id: str) -> None:
        if not self.supports_soft_delete():
            raise UnsupportedOperationException(self.entity_type, "soft delete")
        self._get_or_raise(entity_id).deleted_at = utc_now()

    async def hard_delete(self, entity_id: str) -> None:
        self._get_or_raise(entity_id)
        del self.rows[entity_id]

    async def restore(self, entity_id: str) -> None:
        self._get_or_raise(entity_id).deleted_at = None

    async def count(self, criteria: Mapping[str, Any] | None = None) -> int:
        return len(self._matching(criteria))

    async def exists(self, criteria: Mapping[str, Any]) -> bool:
        return bool(self._matching(criteria))

    async def paginate(
        self, page: int = 1, per_page: int = 20, criteria: Mapping[str, Any] | None = None
    ) -> Page[Any]:
        records = sorted(self._matching(criteria), key=lambda r: r.id)
        start = (page - 1) * per_page
        return Page(items=records[start : start + per_page], total=len(records), page=page, per_page=per_page)

    def dump(self, record: Any) -> dict[str, Any]:
        return self._codec.dump(record)

    def load(self, data: Mapping[str, Any]) -> Any:
        return self._codec.load(data)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_store(clock: FakeClock) -> InMemoryCacheStore:
    return InMemoryCacheStore(clock=clock)


@pytest.fixture
def cache(cache_store: InMemoryCacheStore) -> CacheService:
    """CacheService over an in-memory store with a 300s default TTL."""
    return CacheService(cache_store, default_ttl=300)


@pytest.fixture
def failing_store() -> FailingCacheStore:
    return FailingCacheStore()


@pytest.fixture
def failing_cache(failing_store: FailingCacheStore) -> CacheService:
    return CacheService(failing_store, default_ttl=300)


@pytest.fixture
def events() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def entity_store_factory():
    """Build an InMemoryEntityStore for a model class."""
    return InMemoryEntityStore


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against a fresh app with its lifespan running."""
    from farewatch.main import create_app

    app = create_app()
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


@pytest.fixture
async def db_session() -> AsyncSession:
    """Database session for store/repository integration tests. Rolls back after test.

    Requires DATABASE_URL (postgresql+asyncpg://...). Skips when it is not set.
    Use @pytest.mark.requires_db on tests that need this fixture; run without
    a database via: pytest -m 'not requires_db'.
    """
    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        pytest.skip("Postgres not configured: set DATABASE_URL")
    await database.create_all()
    async with database.AsyncSessionLocal() as session:
        yield session
        await session.rollback()
    await database.dispose_engine()

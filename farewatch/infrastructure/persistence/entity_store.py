"""Entity store: CRUD access to one SQLAlchemy model, independent of caching.

SqlAlchemyEntityStore is the only writer of records; CachedRepository calls
it and never touches rows itself. All finds hide soft-deleted rows unless
include_deleted is set. The store flushes; commit and rollback belong to the
session owner (see database.get_db_transactional). SQLAlchemy errors are not
wrapped.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Generic, Protocol, TypeVar

from sqlalchemy import Date, DateTime, Select, func, inspect as sa_inspect, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import ColumnProperty

from farewatch.domain.exceptions import (
    ResourceNotFoundException,
    UnsupportedOperationException,
)
from farewatch.infrastructure.persistence.database import Base
from farewatch.shared.utils.datetime import parse_iso_datetime, utc_now

SOFT_DELETE_COLUMN = "deleted_at"

Criteria = Mapping[str, Any]

T = TypeVar("T")
ModelType = TypeVar("ModelType")
BaseModelType = TypeVar("BaseModelType", bound=Base)


@dataclass
class Page(Generic[T]):
    """One page of results plus totals for navigation."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 20

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page else 1

    @property
    def has_next(self) -> bool:
        return self.page < self.last_page

    @property
    def has_previous(self) -> bool:
        return self.page > 1


class EntityStoreProtocol(Protocol[ModelType]):
    """Persistence contract consumed by CachedRepository."""

    @property
    def entity_type(self) -> str: ...

    def supports_soft_delete(self) -> bool: ...

    async def find_by_id(self, entity_id: str, include_deleted: bool = False) -> ModelType | None: ...

    async def find_all(self, include_deleted: bool = False) -> list[ModelType]: ...

    async def find_where(
        self,
        criteria: Criteria,
        include_deleted: bool = False,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[ModelType]: ...

    async def find_one_where(
        self,
        criteria: Criteria,
        include_deleted: bool = False,
        order_by: str | None = None,
        descending: bool = False,
    ) -> ModelType | None: ...

    async def find_between(
        self,
        column: str,
        start: Any,
        end: Any,
        criteria: Criteria | None = None,
        include_deleted: bool = False,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[ModelType]: ...

    async def insert(self, fields: Mapping[str, Any]) -> ModelType: ...

    async def merge_and_save(self, entity_id: str, fields: Mapping[str, Any]) -> ModelType: ...

    async def soft_delete(self, entity_id: str) -> None: ...

    async def hard_delete(self, entity_id: str) -> None: ...

    async def restore(self, entity_id: str) -> None: ...

    async def count(self, criteria: Criteria | None = None) -> int: ...

    async def exists(self, criteria: Criteria) -> bool: ...

    async def paginate(
        self, page: int = 1, per_page: int = 20, criteria: Criteria | None = None
    ) -> Page[ModelType]: ...

    def dump(self, record: ModelType) -> dict[str, Any]: ...

    def load(self, data: Mapping[str, Any]) -> ModelType: ...


class SqlAlchemyEntityStore(Generic[BaseModelType]):
    """EntityStoreProtocol over an AsyncSession for a single model class."""

    def __init__(self, db: AsyncSession, model: type[BaseModelType]) -> None:
        self.db = db
        self.model = model
        self._columns: dict[str, ColumnProperty[Any]] = {
            prop.key: prop for prop in sa_inspect(model).column_attrs
        }

    @property
    def entity_type(self) -> str:
        """Lowercase model name used in cache keys, tags and event names."""
        return self.model.__name__.lower()

    def supports_soft_delete(self) -> bool:
        """True when the model maps a deleted_at column."""
        return SOFT_DELETE_COLUMN in self._columns

    def _attr(self, name: str) -> Any:
        if name not in self._columns:
            raise ValueError(f"{self.model.__name__} has no column {name!r}")
        return getattr(self.model, name)

    def _base_query(self, include_deleted: bool = False) -> Select[Any]:
        stmt = select(self.model)
        if not include_deleted and self.supports_soft_delete():
            stmt = stmt.where(self._attr(SOFT_DELETE_COLUMN).is_(None))
        return stmt

    def _apply_criteria(self, stmt: Select[Any], criteria: Criteria | None) -> Select[Any]:
        for key, value in (criteria or {}).items():
            column = self._attr(key)
            stmt = stmt.where(column.is_(None) if value is None else column == value)
        return stmt

    def _apply_order(self, stmt: Select[Any], order_by: str | None, descending: bool) -> Select[Any]:
        if order_by is None:
            return stmt
        column = self._attr(order_by)
        return stmt.order_by(column.desc() if descending else column.asc())

    async def find_by_id(self, entity_id: str, include_deleted: bool = False) -> BaseModelType | None:
        """Return a single record by primary key, or None."""
        stmt = self._base_query(include_deleted).where(self._attr("id") == entity_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_all(self, include_deleted: bool = False) -> list[BaseModelType]:
        result = await self.db.execute(self._base_query(include_deleted))
        return list(result.scalars().all())

    async def find_where(
        self,
        criteria: Criteria,
        include_deleted: bool = False,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[BaseModelType]:
        """Return records whose columns equal the criteria values (None matches NULL)."""
        stmt = self._apply_criteria(self._base_query(include_deleted), criteria)
        stmt = self._apply_order(stmt, order_by, descending)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_one_where(
        self,
        criteria: Criteria,
        include_deleted: bool = False,
        order_by: str | None = None,
        descending: bool = False,
    ) -> BaseModelType | None:
        records = await self.find_where(
            criteria, include_deleted, order_by=order_by, descending=descending, limit=1
        )
        return records[0] if records else None

    async def find_between(
        self,
        column: str,
        start: Any,
        end: Any,
        criteria: Criteria | None = None,
        include_deleted: bool = False,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[BaseModelType]:
        """Records whose column lies in [start, end] (inclusive), plus equality criteria."""
        stmt = self._apply_criteria(self._base_query(include_deleted), criteria)
        stmt = stmt.where(self._attr(column).between(start, end))
        stmt = self._apply_order(stmt, order_by, descending)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _get_or_raise(self, entity_id: str) -> BaseModelType:
        record = await self.find_by_id(entity_id, include_deleted=True)
        if record is None:
            raise ResourceNotFoundException(self.entity_type, str(entity_id))
        return record

    async def insert(self, fields: Mapping[str, Any]) -> BaseModelType:
        """Persist a new record, flush, and reload server defaults."""
        record = self.model(**dict(fields))
        self.db.add(record)
        await self.db.flush()
        await self.db.refresh(record)
        return record

    async def merge_and_save(self, entity_id: str, fields: Mapping[str, Any]) -> BaseModelType:
        """Apply only the supplied fields to the record and flush."""
        record = await self._get_or_raise(entity_id)
        for key, value in fields.items():
            self._attr(key)
            setattr(record, key, value)
        await self.db.flush()
        await self.db.refresh(record)
        return record

    async def soft_delete(self, entity_id: str) -> None:
        if not self.supports_soft_delete():
            raise UnsupportedOperationException(self.entity_type, "soft delete")
        record = await self._get_or_raise(entity_id)
        setattr(record, SOFT_DELETE_COLUMN, utc_now())
        await self.db.flush()
        await self.db.refresh(record)

    async def hard_delete(self, entity_id: str) -> None:
        record = await self._get_or_raise(entity_id)
        await self.db.delete(record)
        await self.db.flush()

    async def restore(self, entity_id: str) -> None:
        if not self.supports_soft_delete():
            raise UnsupportedOperationException(self.entity_type, "restore")
        record = await self._get_or_raise(entity_id)
        setattr(record, SOFT_DELETE_COLUMN, None)
        await self.db.flush()
        await self.db.refresh(record)

    async def count(self, criteria: Criteria | None = None) -> int:
        """Count visible (not soft-deleted) records matching criteria."""
        stmt = select(func.count()).select_from(self.model)
        if self.supports_soft_delete():
            stmt = stmt.where(self._attr(SOFT_DELETE_COLUMN).is_(None))
        stmt = self._apply_criteria(stmt, criteria)
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def exists(self, criteria: Criteria) -> bool:
        stmt = self._apply_criteria(self._base_query(), criteria).limit(1)
        result = await self.db.execute(stmt)
        return result.scalars().first() is not None

    async def paginate(
        self, page: int = 1, per_page: int = 20, criteria: Criteria | None = None
    ) -> Page[BaseModelType]:
        """Return one page ordered by primary key. page is 1-based."""
        if page < 1 or per_page < 1:
            raise ValueError("page and per_page must be >= 1")
        total = await self.count(criteria)
        stmt = self._apply_criteria(self._base_query(), criteria)
        stmt = stmt.order_by(self._attr("id")).offset((page - 1) * per_page).limit(per_page)
        result = await self.db.execute(stmt)
        return Page(items=list(result.scalars().all()), total=total, page=page, per_page=per_page)

    def dump(self, record: BaseModelType) -> dict[str, Any]:
        """Column values keyed by attribute name (cache payload)."""
        return {key: getattr(record, key) for key in self._columns}

    def load(self, data: Mapping[str, Any]) -> BaseModelType:
        """Build a detached instance from a cache payload, parsing ISO dates back."""
        values: dict[str, Any] = {}
        for key, prop in self._columns.items():
            if key not in data:
                continue
            value = data[key]
            column_type = prop.columns[0].type
            if isinstance(value, str):
                if isinstance(column_type, DateTime):
                    value = parse_iso_datetime(value, aware=bool(column_type.timezone))
                elif isinstance(column_type, Date):
                    value = date.fromisoformat(value)
            values[key] = value
        return self.model(**values)

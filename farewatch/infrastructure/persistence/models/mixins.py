"""Column mixins shared by farewatch models.

CuidMixin gives the string primary key used in cache keys. A model supports
soft delete (and repository restore) exactly when it carries SoftDeleteMixin;
SqlAlchemyEntityStore detects it by the deleted_at column.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from farewatch.shared.utils.generators import generate_cuid


class CuidMixin:
    """String CUID primary key, generated client-side so it is known before flush."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class TimestampMixin:
    """created_at / updated_at, set by the database and cached as ISO strings."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class SoftDeleteMixin:
    """deleted_at marker; NULL means live. Finders hide rows where it is set."""

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True, default=None
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

"""PriceHistory ORM model: one observed fare for a destination.

Append-only scan results: no timestamps mixin and no soft delete, so
repositories hard-delete rows and refuse restore().
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from farewatch.infrastructure.persistence.database import Base
from farewatch.infrastructure.persistence.models.mixins import CuidMixin


class PriceHistory(CuidMixin, Base):
    """Observed price. Table: price_history. Column "metadata" maps to price_metadata."""

    __tablename__ = "price_history"

    destination_id: Mapped[str] = mapped_column(
        String, ForeignKey("destination.id", ondelete="CASCADE"), nullable=False, index=True
    )
    price: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    scanned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    # "metadata" is reserved on declarative classes
    price_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)

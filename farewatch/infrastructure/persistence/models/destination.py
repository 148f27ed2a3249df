"""Destination ORM model: a route a user tracks flight prices for."""

from datetime import date
from typing import Any

from sqlalchemy import JSON, CheckConstraint, Date, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from farewatch.infrastructure.persistence.database import Base
from farewatch.infrastructure.persistence.models.mixins import (
    CuidMixin,
    SoftDeleteMixin,
    TimestampMixin,
)


class Destination(CuidMixin, TimestampMixin, SoftDeleteMixin, Base):
    """Tracked route. Table: destination. Soft-deletable; owned by a user."""

    __tablename__ = "destination"

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    origin: Mapped[str] = mapped_column(String(3), nullable=False)
    destination: Mapped[str] = mapped_column(String(3), nullable=False)
    departure_date: Mapped[date] = mapped_column(Date, nullable=False)
    return_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    flexibility: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    adults: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    children: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # airlines, max_stops, cabin_class, direct_flights_only
    preferences: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        CheckConstraint("adults >= 1", name="destination_adults_check"),
        CheckConstraint("children >= 0", name="destination_children_check"),
    )

    @property
    def is_round_trip(self) -> bool:
        return self.return_date is not None

    @property
    def total_passengers(self) -> int:
        return self.adults + self.children

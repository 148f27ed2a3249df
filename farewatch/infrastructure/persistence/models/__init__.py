"""Persistence models: ORM entities and mixins."""

from farewatch.infrastructure.persistence.models.destination import Destination
from farewatch.infrastructure.persistence.models.mixins import (
    CuidMixin,
    SoftDeleteMixin,
    TimestampMixin,
)
from farewatch.infrastructure.persistence.models.price_history import PriceHistory
from farewatch.infrastructure.persistence.models.user import User

__all__ = [
    "CuidMixin",
    "Destination",
    "PriceHistory",
    "SoftDeleteMixin",
    "TimestampMixin",
    "User",
]

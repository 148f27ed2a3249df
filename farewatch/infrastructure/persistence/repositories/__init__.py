"""Repositories: CachedRepository base and the concrete model repositories."""

from farewatch.infrastructure.persistence.repositories.base import (
    CachedRepository,
    RepositoryHooks,
)
from farewatch.infrastructure.persistence.repositories.destination_repo import (
    DestinationRepository,
)
from farewatch.infrastructure.persistence.repositories.price_history_repo import (
    PriceHistoryRepository,
)
from farewatch.infrastructure.persistence.repositories.user_repo import UserRepository

__all__ = [
    "CachedRepository",
    "DestinationRepository",
    "PriceHistoryRepository",
    "RepositoryHooks",
    "UserRepository",
]

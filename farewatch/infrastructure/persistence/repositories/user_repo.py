"""User repository: email lookups cached under "users" and "user_email" tags."""

from __future__ import annotations

from farewatch.infrastructure.cache.cache_service import CacheOptions
from farewatch.infrastructure.persistence.models.user import User
from farewatch.infrastructure.persistence.repositories.base import CachedRepository

USERS_TAG = "users"
USER_EMAIL_TAG = "user_email"
ACTIVE_USERS_TAG = "active_users"


class UserRepository(CachedRepository[User]):
    """User repository. find_by_email, email_exists, update_password, find_active."""

    model = User

    async def find_by_email(self, email: str) -> User | None:
        return await self.find_one_by(
            {"email": email},
            cache=CacheOptions(ttl=self.cache_ttl, tags=(USERS_TAG, USER_EMAIL_TAG)),
        )

    async def email_exists(self, email: str, exclude_id: str | None = None) -> bool:
        """True if a visible user owns email; exclude_id ignores that user (for updates)."""
        if exclude_id is None:
            return await self.exists({"email": email})
        users = await self.find_by({"email": email})
        return any(user.id != exclude_id for user in users)

    async def update_password(self, user_id: str, hashed_password: str) -> User:
        return await self.update(user_id, {"hashed_password": hashed_password})

    async def find_active(self) -> list[User]:
        """Users that are not soft-deleted; cached for ten minutes."""
        return await self.find_all(cache=CacheOptions(ttl=600, tags=(USERS_TAG, ACTIVE_USERS_TAG)))

    async def _on_after_create(self, record: User) -> list[str]:
        return [*await super()._on_after_create(record), USER_EMAIL_TAG]

    async def _on_after_update(self, record: User) -> list[str]:
        return [*await super()._on_after_update(record), USER_EMAIL_TAG]

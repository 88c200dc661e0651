"""User favorites, history and statistics."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from image_board.domain.users import UserRecord, UserStatistics


class UserRepository(Protocol):
    """Persistence interface for user records."""

    async def get(self, user_id: str) -> UserRecord:
        """Return the stored record for a user, or an empty one."""

    async def update(
        self, user_id: str, change: Callable[[UserRecord], None]
    ) -> UserRecord:
        """Apply change to the user's record, persist it and return it."""


@dataclass
class UserService:
    """Application service for per-user records."""

    repository: UserRepository

    async def get_user(self, user_id: str) -> UserRecord:
        """Return the user's record; unseen users get an empty one."""
        return await self.repository.get(user_id)

    async def add_favorite(self, user_id: str, image_id: str) -> list[str]:
        """Add an image to the user's favorites unless already present."""

        def change(record: UserRecord) -> None:
            if image_id not in record.favorites:
                record.favorites.append(image_id)

        record = await self.repository.update(user_id, change)
        return record.favorites

    async def append_history(self, user_id: str, image_id: str) -> None:
        """Append an image to the user's history, duplicates included."""

        def change(record: UserRecord) -> None:
            record.history.append(image_id)

        await self.repository.update(user_id, change)

    async def get_statistics(self, user_id: str) -> UserStatistics:
        """Return favorite and history counts for the user."""
        record = await self.repository.get(user_id)
        return UserStatistics(
            favorite_count=len(record.favorites),
            history_count=len(record.history),
        )

"""User repositories backed by JSON documents."""

from collections.abc import Callable
from dataclasses import dataclass

from image_board.domain.users import UserRecord
from image_board.services.documents import DocumentService
from image_board.services.users import UserRepository


def _empty_document() -> dict[str, list[str]]:
    return {"favoritos": [], "historial": []}


def user_from_document(content: object) -> UserRecord:
    """Build a user record, filling in missing lists."""
    if not isinstance(content, dict):
        return UserRecord()
    favorites = content.get("favoritos")
    history = content.get("historial")
    return UserRecord(
        favorites=list(favorites) if isinstance(favorites, list) else [],
        history=list(history) if isinstance(history, list) else [],
    )


def user_to_document(record: UserRecord) -> dict[str, list[str]]:
    """Serialize a user record to its stored form."""
    return {"favoritos": record.favorites, "historial": record.history}


@dataclass
class PerUserDocumentRepository(UserRepository):
    """One document per user, named after the user id."""

    documents: DocumentService
    directory: str

    def _path(self, user_id: str) -> str:
        return f"{self.directory.rstrip('/')}/{user_id}.json"

    async def get(self, user_id: str) -> UserRecord:
        """Return the stored record or an empty one."""
        content = await self.documents.load(
            self._path(user_id), _empty_document(), tolerate_unavailable=True
        )
        return user_from_document(content)

    async def update(
        self, user_id: str, change: Callable[[UserRecord], None]
    ) -> UserRecord:
        """Read, change and write back the user's document."""

        def apply(content: object) -> object:
            record = user_from_document(content)
            change(record)
            return user_to_document(record)

        content = await self.documents.update(
            self._path(user_id), _empty_document(), apply
        )
        return user_from_document(content)


@dataclass
class AggregateUserRepository(UserRepository):
    """All users in one document mapping user id to record."""

    documents: DocumentService
    path: str

    async def get(self, user_id: str) -> UserRecord:
        """Return the stored record or an empty one."""
        content = await self.documents.load(self.path, {}, tolerate_unavailable=True)
        if not isinstance(content, dict):
            return UserRecord()
        return user_from_document(content.get(user_id))

    async def update(
        self, user_id: str, change: Callable[[UserRecord], None]
    ) -> UserRecord:
        """Read, change and write back the shared users document."""

        def apply(content: object) -> object:
            users = content if isinstance(content, dict) else {}
            record = user_from_document(users.get(user_id))
            change(record)
            users[user_id] = user_to_document(record)
            return users

        content = await self.documents.update(self.path, {}, apply)
        return user_from_document(content[user_id])

"""Read-modify-write access to JSON documents."""

import asyncio
import copy
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Protocol

from image_board.domain.documents import (
    DocumentMissing,
    DocumentUnavailable,
    ListResult,
    ReadResult,
    StoredDocument,
)

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Base class for storage failures surfaced to callers."""


class StorageUnavailableError(StorageError):
    """Raised when a document could not be read."""


class StorageWriteError(StorageError):
    """Raised when the store rejected or failed a write."""


class DocumentStore(Protocol):
    """Interface for a store of JSON documents addressed by path."""

    async def read(self, path: str) -> ReadResult:
        """Return the parsed document at path with its version token."""

    async def write(
        self, path: str, content: object, version: str | None = None
    ) -> bool:
        """Create or overwrite a document, returning False when rejected."""

    async def list_directory(self, path: str) -> ListResult:
        """Return the file paths directly under a directory."""


@dataclass
class KeyedLock:
    """Per-key asyncio locks that are dropped once nobody holds or awaits them."""

    _locks: dict[str, asyncio.Lock] = field(default_factory=dict)
    _users: dict[str, int] = field(default_factory=dict)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for key for the duration of the block."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __contains__(self, key: str) -> bool:
        return key in self._locks


@dataclass
class DocumentService:
    """Loads and updates documents, serializing updates per path."""

    store: DocumentStore
    locks: KeyedLock = field(default_factory=KeyedLock)

    async def read(self, path: str) -> ReadResult:
        """Return the raw tagged read result for a path."""
        return await self.store.read(path)

    async def load(
        self, path: str, default: object, *, tolerate_unavailable: bool = False
    ) -> object:
        """Return the document content, or a copy of default when missing."""
        result = await self.store.read(path)
        if isinstance(result, StoredDocument):
            return result.content
        if isinstance(result, DocumentUnavailable):
            if not tolerate_unavailable:
                raise StorageUnavailableError(result.reason)
            logger.warning(
                "Document unavailable, using default",
                extra={"path": path, "reason": result.reason},
            )
        return copy.deepcopy(default)

    async def update(
        self,
        path: str,
        default: object,
        change: Callable[[object], object],
    ) -> object:
        """Apply change to the current document and write it back.

        The whole read-modify-write runs under the lock for ``path`` and the
        write is conditional on the version token that was read, so an update
        from another process in between is rejected instead of overwritten.
        """
        async with self.locks.hold(path):
            result = await self.store.read(path)
            if isinstance(result, DocumentUnavailable):
                raise StorageUnavailableError(result.reason)
            if isinstance(result, StoredDocument):
                content, version = result.content, result.version
            else:
                content, version = copy.deepcopy(default), None
            updated = change(content)
            if not await self.store.write(path, updated, version):
                logger.warning("Document write rejected", extra={"path": path})
                raise StorageWriteError(f"Failed to write {path}")
            return updated

    async def create(self, path: str, content: object) -> None:
        """Write a new document; fails if the store rejects it."""
        async with self.locks.hold(path):
            if not await self.store.write(path, content):
                logger.warning("Document create rejected", extra={"path": path})
                raise StorageWriteError(f"Failed to create {path}")

    async def load_directory(self, path: str) -> list[object]:
        """Return the contents of every document directly under a directory."""
        listing = await self.store.list_directory(path)
        if isinstance(listing, DocumentMissing):
            return []
        if isinstance(listing, DocumentUnavailable):
            raise StorageUnavailableError(listing.reason)
        results = await asyncio.gather(
            *(self.store.read(item) for item in listing.paths)
        )
        contents: list[object] = []
        for result in results:
            if isinstance(result, DocumentUnavailable):
                raise StorageUnavailableError(result.reason)
            if isinstance(result, StoredDocument):
                contents.append(result.content)
        return contents

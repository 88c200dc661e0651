"""Shared test fixtures."""

import asyncio
import copy
from dataclasses import dataclass, field

import pytest

from image_board.config import Settings
from image_board.containers import AppContainer, wire_container
from image_board.domain.documents import (
    DirectoryListing,
    DocumentMissing,
    DocumentUnavailable,
    ListResult,
    ReadResult,
    StoredDocument,
)
from image_board.services.documents import DocumentService, DocumentStore


@dataclass
class InMemoryDocumentStore(DocumentStore):
    """In-memory document store with version tokens for tests.

    Every call yields to the event loop once so overlapping coroutines
    interleave the way they would against a real store.
    """

    documents: dict[str, object] = field(default_factory=dict)
    versions: dict[str, int] = field(default_factory=dict)
    unavailable: set[str] = field(default_factory=set)
    reads: list[str] = field(default_factory=list)
    writes: list[str] = field(default_factory=list)

    def seed(self, path: str, content: object) -> None:
        self.documents[path] = copy.deepcopy(content)
        self.versions[path] = self.versions.get(path, 0) + 1

    async def read(self, path: str) -> ReadResult:
        self.reads.append(path)
        await asyncio.sleep(0)
        if path in self.unavailable:
            return DocumentUnavailable(path=path, reason="store offline")
        if path not in self.documents:
            return DocumentMissing(path=path)
        return StoredDocument(
            path=path,
            content=copy.deepcopy(self.documents[path]),
            version=str(self.versions[path]),
        )

    async def write(
        self, path: str, content: object, version: str | None = None
    ) -> bool:
        await asyncio.sleep(0)
        if path in self.unavailable:
            return False
        if path in self.documents and str(self.versions[path]) != version:
            return False
        self.writes.append(path)
        self.seed(path, content)
        return True

    async def list_directory(self, path: str) -> ListResult:
        await asyncio.sleep(0)
        if path in self.unavailable:
            return DocumentUnavailable(path=path, reason="store offline")
        prefix = f"{path.rstrip('/')}/"
        paths = sorted(
            name
            for name in self.documents
            if name.startswith(prefix) and "/" not in name[len(prefix) :]
        )
        if not paths:
            return DocumentMissing(path=path)
        return DirectoryListing(path=path, paths=paths)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        storage_backend="local",
        local_data_dir="unused",
        environment="test",
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def document_service(store: InMemoryDocumentStore) -> DocumentService:
    return DocumentService(store)


@pytest.fixture
def container(settings: Settings, store: InMemoryDocumentStore) -> AppContainer:
    async def close_resources() -> None:
        return None

    return wire_container(settings, store, close_resources)

"""Local filesystem document store."""

import asyncio
import hashlib
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from image_board.domain.documents import (
    DirectoryListing,
    DocumentMissing,
    DocumentUnavailable,
    ListResult,
    ReadResult,
    StoredDocument,
)
from image_board.services.documents import DocumentStore

logger = logging.getLogger(__name__)


def _version_of(raw: bytes) -> str:
    return hashlib.sha1(raw).hexdigest()  # noqa: S324


@dataclass
class LocalDocumentStore(DocumentStore):
    """Stores JSON documents as files under a root directory.

    Version tokens are the SHA-1 of the file bytes. Writes follow the same
    rules as the remote store: creating needs no token, overwriting needs the
    current one.
    """

    root: Path

    def _resolve(self, path: str) -> Path:
        root = self.root.resolve()
        target = (root / path).resolve()
        if not target.is_relative_to(root):
            raise ValueError(f"Path escapes the data directory: {path}")
        return target

    async def read(self, path: str) -> ReadResult:
        """Read and parse a JSON file."""
        return await asyncio.to_thread(self._read, path)

    def _read(self, path: str) -> ReadResult:
        target = self._resolve(path)
        try:
            raw = target.read_bytes()
        except FileNotFoundError:
            return DocumentMissing(path=path)
        except OSError as exc:
            return DocumentUnavailable(path=path, reason=str(exc))
        try:
            content = json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            return DocumentUnavailable(path=path, reason=f"Invalid document: {exc}")
        return StoredDocument(path=path, content=content, version=_version_of(raw))

    async def write(
        self, path: str, content: object, version: str | None = None
    ) -> bool:
        """Write a JSON file if the version token matches the file on disk."""
        return await asyncio.to_thread(self._write, path, content, version)

    def _write(self, path: str, content: object, version: str | None) -> bool:
        target = self._resolve(path)
        try:
            current = target.read_bytes()
        except FileNotFoundError:
            current = None
        if current is not None and _version_of(current) != version:
            logger.warning("Stale version for local write", extra={"path": path})
            return False
        target.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(content, indent=2, ensure_ascii=False).encode("utf-8")
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_name, target)
        except OSError:
            logger.exception("Local write failed", extra={"path": path})
            Path(tmp_name).unlink(missing_ok=True)
            return False
        return True

    async def list_directory(self, path: str) -> ListResult:
        """List JSON files directly under a directory."""
        return await asyncio.to_thread(self._list_directory, path)

    def _list_directory(self, path: str) -> ListResult:
        target = self._resolve(path)
        if not target.exists():
            return DocumentMissing(path=path)
        if not target.is_dir():
            return DocumentUnavailable(path=path, reason="Path is not a directory")
        root = self.root.resolve()
        return DirectoryListing(
            path=path,
            paths=sorted(
                entry.relative_to(root).as_posix()
                for entry in target.glob("*.json")
                if entry.is_file()
            ),
        )

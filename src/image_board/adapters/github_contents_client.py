"""GitHub contents API document store."""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from urllib.parse import quote

import httpx

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


@dataclass
class HttpxGitHubContentsClient(DocumentStore):
    """Stores JSON documents as files in a GitHub repository."""

    repo: str
    token: str
    http_client: httpx.AsyncClient
    api_url: str = "https://api.github.com"
    branch: str | None = None
    commit_message: str = "Update images database"

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        repo: str,
        token: str,
        api_url: str = "https://api.github.com",
        branch: str | None = None,
        commit_message: str = "Update images database",
    ) -> "HttpxGitHubContentsClient":
        """Create a contents client with a managed httpx session."""
        return cls(
            repo=repo,
            token=token,
            http_client=httpx.AsyncClient(),
            api_url=api_url,
            branch=branch,
            commit_message=commit_message,
        )

    def _contents_url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.repo}/contents/{quote(path, safe='/@')}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _params(self) -> dict[str, str]:
        return {"ref": self.branch} if self.branch else {}

    async def read(self, path: str) -> ReadResult:
        """Fetch a file and decode its base64 JSON content."""
        try:
            response = await self.http_client.get(
                self._contents_url(path),
                headers=self._headers(),
                params=self._params(),
                timeout=15,
            )
        except httpx.HTTPError as exc:
            return DocumentUnavailable(path=path, reason=f"{type(exc).__name__}: {exc}")
        if response.status_code == httpx.codes.NOT_FOUND:
            return DocumentMissing(path=path)
        if not response.is_success:
            return DocumentUnavailable(
                path=path, reason=f"GitHub returned {response.status_code}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            return DocumentUnavailable(path=path, reason=f"Invalid response: {exc}")
        if not isinstance(payload, dict) or payload.get("type", "file") != "file":
            return DocumentUnavailable(path=path, reason="Path is not a file")
        sha = payload.get("sha")
        if not isinstance(sha, str) or not sha:
            return DocumentUnavailable(path=path, reason="Response has no sha")
        encoded = payload.get("content") or ""
        # Files above 1 MB come back without inline content.
        if payload.get("encoding") == "none" or (not encoded and payload.get("size")):
            blob = await self._read_blob(path, sha)
            if isinstance(blob, DocumentUnavailable):
                return blob
            encoded = blob
        try:
            content = json.loads(base64.b64decode(encoded).decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            return DocumentUnavailable(path=path, reason=f"Invalid document: {exc}")
        return StoredDocument(path=path, content=content, version=sha)

    async def _read_blob(self, path: str, sha: str) -> str | DocumentUnavailable:
        url = f"{self.api_url}/repos/{self.repo}/git/blobs/{sha}"
        try:
            response = await self.http_client.get(
                url, headers=self._headers(), timeout=30
            )
        except httpx.HTTPError as exc:
            return DocumentUnavailable(path=path, reason=f"{type(exc).__name__}: {exc}")
        if not response.is_success:
            return DocumentUnavailable(
                path=path, reason=f"GitHub blob returned {response.status_code}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            return DocumentUnavailable(path=path, reason=f"Invalid response: {exc}")
        if not isinstance(payload, dict):
            return DocumentUnavailable(path=path, reason="Blob response is not an object")
        return payload.get("content") or ""

    async def write(
        self, path: str, content: object, version: str | None = None
    ) -> bool:
        """Create or update a file; a stale version token makes this fail."""
        encoded = base64.b64encode(
            json.dumps(content, indent=2, ensure_ascii=False).encode("utf-8")
        ).decode("ascii")
        body: dict[str, object] = {"message": self.commit_message, "content": encoded}
        if version:
            body["sha"] = version
        if self.branch:
            body["branch"] = self.branch
        try:
            response = await self.http_client.put(
                self._contents_url(path),
                headers=self._headers(),
                json=body,
                timeout=30,
            )
        except httpx.HTTPError:
            logger.exception("GitHub write failed", extra={"path": path})
            return False
        if not response.is_success:
            logger.warning(
                "GitHub rejected write",
                extra={"path": path, "status_code": response.status_code},
            )
            return False
        return True

    async def list_directory(self, path: str) -> ListResult:
        """List the JSON files directly under a repository directory.

        Uses the git trees API; the contents API stops at 1,000 entries.
        """
        directory = path.strip("/")
        ref = self.branch or "HEAD"
        url = (
            f"{self.api_url}/repos/{self.repo}/git/trees/"
            f"{quote(f'{ref}:{directory}', safe='/@:')}"
        )
        try:
            response = await self.http_client.get(
                url, headers=self._headers(), timeout=15
            )
        except httpx.HTTPError as exc:
            return DocumentUnavailable(path=path, reason=f"{type(exc).__name__}: {exc}")
        if response.status_code == httpx.codes.NOT_FOUND:
            return DocumentMissing(path=path)
        if not response.is_success:
            return DocumentUnavailable(
                path=path, reason=f"GitHub returned {response.status_code}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            return DocumentUnavailable(path=path, reason=f"Invalid response: {exc}")
        if not isinstance(payload, dict) or not isinstance(payload.get("tree"), list):
            return DocumentUnavailable(path=path, reason="Path is not a directory")
        if payload.get("truncated"):
            return DocumentUnavailable(path=path, reason="Directory listing truncated")
        return DirectoryListing(
            path=path,
            paths=sorted(
                f"{directory}/{entry['path']}"
                for entry in payload["tree"]
                if isinstance(entry, dict)
                and entry.get("type") == "blob"
                and str(entry.get("path", "")).endswith(".json")
            ),
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

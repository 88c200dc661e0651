"""Tests for the GitHub contents adapter."""

import asyncio
import base64
import json

import httpx

from image_board.adapters.document_image_repository import PerImageRepository
from image_board.adapters.document_user_repository import PerUserDocumentRepository
from image_board.adapters.github_contents_client import HttpxGitHubContentsClient
from image_board.domain.documents import (
    DirectoryListing,
    DocumentMissing,
    DocumentUnavailable,
    StoredDocument,
)
from image_board.services.documents import DocumentService
from image_board.services.users import UserService


def _encode(content: object) -> str:
    raw = base64.b64encode(json.dumps(content).encode()).decode()
    # The contents API wraps base64 at 60 characters.
    return "\n".join(raw[i : i + 60] for i in range(0, len(raw), 60))


def _client(handler, branch: str | None = None) -> HttpxGitHubContentsClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxGitHubContentsClient(
        repo="owner/images",
        token="gh-token",
        http_client=httpx.AsyncClient(transport=transport),
        api_url="https://api.test",
        branch=branch,
    )


def test_read_decodes_content_and_version() -> None:
    document = [{"id": "1", "description": "cat", "base64": "Zm9v" * 40}]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer gh-token"
        assert request.url.path == "/repos/owner/images/contents/public/all.json"
        return httpx.Response(
            200,
            json={
                "type": "file",
                "sha": "abc123",
                "encoding": "base64",
                "content": _encode(document),
            },
        )

    result = asyncio.run(_client(handler).read("public/all.json"))

    assert isinstance(result, StoredDocument)
    assert result.content == document
    assert result.version == "abc123"


def test_read_sends_branch_as_ref() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["ref"] == "data"
        return httpx.Response(404, json={"message": "Not Found"})

    result = asyncio.run(_client(handler, branch="data").read("doc.json"))

    assert isinstance(result, DocumentMissing)


def test_read_distinguishes_missing_from_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("missing.json"):
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(502, json={"message": "Bad Gateway"})

    client = _client(handler)

    assert isinstance(asyncio.run(client.read("missing.json")), DocumentMissing)
    unavailable = asyncio.run(client.read("other.json"))
    assert isinstance(unavailable, DocumentUnavailable)
    assert "502" in unavailable.reason


def test_read_network_error_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = asyncio.run(_client(handler).read("doc.json"))

    assert isinstance(result, DocumentUnavailable)


def test_read_invalid_json_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "type": "file",
                "sha": "abc",
                "encoding": "base64",
                "content": base64.b64encode(b"not json").decode(),
            },
        )

    result = asyncio.run(_client(handler).read("doc.json"))

    assert isinstance(result, DocumentUnavailable)


def test_read_large_file_falls_back_to_blob() -> None:
    document = {"favoritos": ["a"], "historial": []}

    def handler(request: httpx.Request) -> httpx.Response:
        if "/git/blobs/" in request.url.path:
            assert request.url.path.endswith("/git/blobs/big-sha")
            return httpx.Response(
                200, json={"encoding": "base64", "content": _encode(document)}
            )
        return httpx.Response(
            200,
            json={
                "type": "file",
                "sha": "big-sha",
                "encoding": "none",
                "content": "",
                "size": 2_000_000,
            },
        )

    result = asyncio.run(_client(handler).read("big.json"))

    assert isinstance(result, StoredDocument)
    assert result.content == document
    assert result.version == "big-sha"


def test_write_sends_encoded_content_and_version() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content.decode())
        return httpx.Response(200, json={"content": {"sha": "new"}})

    ok = asyncio.run(
        _client(handler, branch="data").write(
            "data/users/alice@example.com.json", {"favoritos": ["x"]}, "old-sha"
        )
    )

    assert ok is True
    assert captured["path"] == (
        "/repos/owner/images/contents/data/users/alice@example.com.json"
    )
    body = captured["body"]
    assert isinstance(body, dict)
    assert body["sha"] == "old-sha"
    assert body["branch"] == "data"
    assert body["message"] == "Update images database"
    assert json.loads(base64.b64decode(body["content"])) == {"favoritos": ["x"]}


def test_write_without_version_omits_sha() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.update(json.loads(request.content.decode()))
        return httpx.Response(201, json={})

    ok = asyncio.run(_client(handler).write("new.json", []))

    assert ok is True
    assert "sha" not in captured
    assert "branch" not in captured


def test_write_conflict_returns_false() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"message": "does not match"})

    assert asyncio.run(_client(handler).write("doc.json", [], "stale")) is False


def test_write_network_error_returns_false() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    assert asyncio.run(_client(handler).write("doc.json", [])) is False


def _tree(*entries: tuple[str, str], truncated: bool = False) -> dict[str, object]:
    return {
        "sha": "tree-sha",
        "truncated": truncated,
        "tree": [{"path": name, "type": kind} for name, kind in entries],
    }


def test_list_directory_uses_git_tree_for_branch() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/owner/images/git/trees/data:images/items"
        return httpx.Response(
            200,
            json=_tree(("b.json", "blob"), ("old", "tree"), ("a.json", "blob")),
        )

    client = _client(handler, branch="data")

    result = asyncio.run(client.list_directory("images/items"))

    assert isinstance(result, DirectoryListing)
    assert result.paths == ["images/items/a.json", "images/items/b.json"]


def test_list_directory_defaults_to_head() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/git/trees/HEAD:images")
        return httpx.Response(200, json=_tree())

    result = asyncio.run(_client(handler).list_directory("images"))

    assert isinstance(result, DirectoryListing)
    assert result.paths == []


def test_list_directory_skips_non_json_files() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=_tree((".gitkeep", "blob"), ("README.md", "blob"), ("a.json", "blob")),
        )

    result = asyncio.run(_client(handler).list_directory("images"))

    assert isinstance(result, DirectoryListing)
    assert result.paths == ["images/a.json"]


def test_list_directory_lists_more_than_a_thousand_files() -> None:
    names = [(f"{index:05d}.json", "blob") for index in range(1500)]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_tree(*names))

    result = asyncio.run(_client(handler).list_directory("images"))

    assert isinstance(result, DirectoryListing)
    assert len(result.paths) == 1500


def test_list_directory_truncated_tree_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_tree(("a.json", "blob"), truncated=True))

    result = asyncio.run(_client(handler).list_directory("images"))

    assert isinstance(result, DocumentUnavailable)


def test_list_directory_missing_tree() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Not Found"})

    result = asyncio.run(_client(handler).list_directory("images"))

    assert isinstance(result, DocumentMissing)


def test_per_image_listing_ignores_stray_files() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "/git/trees/" in request.url.path:
            return httpx.Response(
                200, json=_tree((".gitkeep", "blob"), ("a.json", "blob"))
            )
        assert request.url.path.endswith("/contents/images/a.json")
        document = {"id": "a", "description": "cat", "base64": "Zm9v"}
        return httpx.Response(
            200,
            json={"type": "file", "sha": "a-sha", "content": _encode(document)},
        )

    repository = PerImageRepository(DocumentService(_client(handler)), "images")

    images = asyncio.run(repository.list_images())

    assert [image.id for image in images] == ["a"]


def test_read_non_json_response_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>maintenance</html>")

    result = asyncio.run(_client(handler).read("doc.json"))

    assert isinstance(result, DocumentUnavailable)


def test_read_without_sha_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"type": "file", "content": _encode([])})

    result = asyncio.run(_client(handler).read("doc.json"))

    assert isinstance(result, DocumentUnavailable)


def test_user_lookup_survives_malformed_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"not json")

    repository = PerUserDocumentRepository(
        DocumentService(_client(handler)), "data/users"
    )

    user = asyncio.run(UserService(repository).get_user("alice@example.com"))

    assert user.favorites == []
    assert user.history == []


def test_blob_non_json_response_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "/git/blobs/" in request.url.path:
            return httpx.Response(200, content=b"oops")
        return httpx.Response(
            200,
            json={"type": "file", "sha": "s", "encoding": "none", "content": ""},
        )

    result = asyncio.run(_client(handler).read("big.json"))

    assert isinstance(result, DocumentUnavailable)


def test_close_closes_http_client() -> None:
    client = _client(lambda request: httpx.Response(200))

    asyncio.run(client.close())

    assert client.http_client.is_closed

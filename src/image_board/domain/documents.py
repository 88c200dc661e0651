"""Tagged results returned by document stores."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StoredDocument:
    """A parsed JSON document and the version token it was read at."""

    path: str
    content: object
    version: str


@dataclass(frozen=True)
class DocumentMissing:
    """The path does not exist in the store."""

    path: str


@dataclass(frozen=True)
class DocumentUnavailable:
    """The store could not be read; the document may or may not exist."""

    path: str
    reason: str


@dataclass(frozen=True)
class DirectoryListing:
    """File paths found directly under a directory."""

    path: str
    paths: list[str]


ReadResult = StoredDocument | DocumentMissing | DocumentUnavailable
ListResult = DirectoryListing | DocumentMissing | DocumentUnavailable

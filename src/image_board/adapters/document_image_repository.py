"""Image repositories backed by JSON documents.

Images are persisted with the keys ``id``, ``description``, ``base64`` and
``timestamp``. Two layouts are supported:

- aggregate: every image lives in one JSON array, rewritten on each upload
- per-image: each image is its own document named after its id
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from image_board.domain.images import Image
from image_board.services.documents import DocumentService
from image_board.services.images import ImageRepository

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=UTC)


def image_to_document(image: Image) -> dict[str, object]:
    """Serialize an image to its stored form."""
    created_at = None
    if image.created_at is not None:
        created_at = (
            image.created_at.astimezone(UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
    return {
        "id": image.id,
        "description": image.description,
        "base64": image.image_data,
        "timestamp": created_at,
    }


def image_from_document(entry: object) -> Image | None:
    """Build an image from a stored entry, or None when it is unusable."""
    if not isinstance(entry, dict) or not entry.get("id"):
        return None
    return Image(
        id=str(entry["id"]),
        description=str(entry.get("description") or ""),
        image_data=str(entry.get("base64") or ""),
        created_at=_parse_timestamp(entry.get("timestamp")),
    )


def _parse_timestamp(raw: object) -> datetime | None:
    if not isinstance(raw, str):
        return None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _images_from_documents(entries: list[object]) -> list[Image]:
    images: list[Image] = []
    for entry in entries:
        image = image_from_document(entry)
        if image is None:
            logger.warning("Skipping malformed image entry")
            continue
        images.append(image)
    return images


@dataclass
class AggregateImageRepository(ImageRepository):
    """Keeps the whole image collection in a single document."""

    documents: DocumentService
    path: str

    async def list_images(self) -> list[Image]:
        """Return images in the order they were appended."""
        content = await self.documents.load(self.path, [])
        if not isinstance(content, list):
            logger.warning("Image document is not a list", extra={"path": self.path})
            return []
        return _images_from_documents(content)

    async def add_image(self, image: Image) -> None:
        """Append the image and rewrite the collection."""

        def change(content: object) -> object:
            entries = content if isinstance(content, list) else []
            entries.append(image_to_document(image))
            return entries

        await self.documents.update(self.path, [], change)


@dataclass
class PerImageRepository(ImageRepository):
    """Stores each image as its own document under a directory."""

    documents: DocumentService
    directory: str

    def _path(self, image_id: str) -> str:
        return f"{self.directory.rstrip('/')}/{image_id}.json"

    async def list_images(self) -> list[Image]:
        """Return images ordered by creation time."""
        entries = await self.documents.load_directory(self.directory)
        images = _images_from_documents(entries)
        images.sort(key=lambda image: (image.created_at or _EPOCH, image.id))
        return images

    async def add_image(self, image: Image) -> None:
        """Write the image as a new standalone document."""
        await self.documents.create(self._path(image.id), image_to_document(image))

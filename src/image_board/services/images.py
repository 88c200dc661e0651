"""Image upload and listing logic."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from image_board.domain.images import Image


class MissingFieldsError(ValueError):
    """Raised when an upload lacks its description or image data."""


class ImageRepository(Protocol):
    """Persistence interface for uploaded images."""

    async def list_images(self) -> list[Image]:
        """Return all stored images in storage order."""

    async def add_image(self, image: Image) -> None:
        """Persist a new image."""


@dataclass
class ImageService:
    """Application service for the image collection."""

    repository: ImageRepository
    newest_first: bool = False

    async def list_images(self) -> list[Image]:
        """Return stored images, newest first when configured."""
        images = await self.repository.list_images()
        if self.newest_first:
            images.reverse()
        return images

    async def add_image(self, description: str | None, image_data: str | None) -> Image:
        """Validate and store a new image, returning the created record."""
        if not description or not image_data:
            raise MissingFieldsError("description and image data are required")
        image = Image(
            id=str(uuid4()),
            description=description,
            image_data=image_data,
            created_at=datetime.now(tz=UTC),
        )
        await self.repository.add_image(image)
        return image

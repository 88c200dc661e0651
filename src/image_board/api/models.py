"""Pydantic models for API request bodies."""

from pydantic import BaseModel


class UploadRequest(BaseModel):
    """Image upload payload."""

    base64: str | None = None
    description: str | None = None


class ImageReference(BaseModel):
    """Payload naming an image by id."""

    id: str | None = None

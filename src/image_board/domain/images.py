"""Domain models for uploaded images."""

from dataclasses import dataclass
from datetime import datetime

DATA_URI_PREFIX = "data:image/jpeg;base64,"


@dataclass(frozen=True)
class Image:
    """An uploaded image with its description."""

    id: str
    description: str
    image_data: str
    created_at: datetime | None

    def image_url(self) -> str:
        """Return the image as a data URI, keeping one if already present."""
        if "base64," in self.image_data:
            return self.image_data
        return f"{DATA_URI_PREFIX}{self.image_data}"

"""Application configuration."""

import os
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    storage_backend: Literal["github", "local"] = "github"
    github_repo: str | None = None
    github_token: str | None = None
    github_api_url: str = "https://api.github.com"
    github_branch: str | None = None
    commit_message: str = "Update images database"
    local_data_dir: str = "data"
    image_layout: Literal["aggregate", "per_image"] = "aggregate"
    user_layout: Literal["per_user", "aggregate"] = "per_user"
    images_document_path: str = "public/images/all_images.json"
    images_directory: str = "public/images/items"
    users_directory: str = "data/users"
    users_document_path: str = "data/users.json"
    images_newest_first: bool = False
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8080
    environment: str = _ENVIRONMENT
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_github_credentials(self) -> "Settings":
        if self.storage_backend == "github" and not (
            self.github_repo and self.github_token
        ):
            raise ValueError(
                "github_repo and github_token are required for the github backend"
            )
        return self

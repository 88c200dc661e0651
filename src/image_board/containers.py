"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from image_board.adapters.document_image_repository import (
    AggregateImageRepository,
    PerImageRepository,
)
from image_board.adapters.document_user_repository import (
    AggregateUserRepository,
    PerUserDocumentRepository,
)
from image_board.adapters.github_contents_client import HttpxGitHubContentsClient
from image_board.adapters.local_document_store import LocalDocumentStore
from image_board.config import Settings
from image_board.services.documents import DocumentService, DocumentStore
from image_board.services.images import ImageRepository, ImageService
from image_board.services.users import UserRepository, UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    document_service: DocumentService
    image_service: ImageService
    user_service: UserService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store: DocumentStore
    if resolved_settings.storage_backend == "github":
        github_client = HttpxGitHubContentsClient.create(
            repo=resolved_settings.github_repo or "",
            token=resolved_settings.github_token or "",
            api_url=resolved_settings.github_api_url,
            branch=resolved_settings.github_branch,
            commit_message=resolved_settings.commit_message,
        )
        store = github_client

        async def close_resources() -> None:
            await github_client.close()

    else:
        store = LocalDocumentStore(root=Path(resolved_settings.local_data_dir))

        async def close_resources() -> None:
            return None

    return wire_container(resolved_settings, store, close_resources)


def wire_container(
    settings: Settings,
    store: DocumentStore,
    close_resources: Callable[[], Awaitable[None]],
) -> AppContainer:
    """Build services and repositories on top of a document store."""
    document_service = DocumentService(store)
    image_repository: ImageRepository
    if settings.image_layout == "per_image":
        image_repository = PerImageRepository(
            document_service, settings.images_directory
        )
    else:
        image_repository = AggregateImageRepository(
            document_service, settings.images_document_path
        )
    user_repository: UserRepository
    if settings.user_layout == "aggregate":
        user_repository = AggregateUserRepository(
            document_service, settings.users_document_path
        )
    else:
        user_repository = PerUserDocumentRepository(
            document_service, settings.users_directory
        )
    return AppContainer(
        settings=settings,
        document_service=document_service,
        image_service=ImageService(
            image_repository, newest_first=settings.images_newest_first
        ),
        user_service=UserService(user_repository),
        close_resources=close_resources,
    )

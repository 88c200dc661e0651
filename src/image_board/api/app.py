"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from image_board.api.models import ImageReference, UploadRequest
from image_board.app_logging import configure_logging
from image_board.containers import AppContainer
from image_board.services.documents import StorageUnavailableError, StorageWriteError
from image_board.services.images import MissingFieldsError

MISSING_FIELDS_MESSAGE = "Faltan datos"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.middleware("http")
    async def unexpected_errors(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "Unhandled error", extra={"request_path": request.url.path}
            )
            return _error_response(container, exc, "Error interno")

    @app.exception_handler(MissingFieldsError)
    async def missing_fields(_request: Request, _exc: MissingFieldsError) -> Response:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": MISSING_FIELDS_MESSAGE},
        )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(
        request: Request, exc: RequestValidationError
    ) -> Response:
        logger.info(
            "Rejected request body",
            extra={"request_path": request.url.path, "errors": exc.errors()},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": MISSING_FIELDS_MESSAGE},
        )

    @app.exception_handler(StorageUnavailableError)
    async def storage_unavailable(
        request: Request, exc: StorageUnavailableError
    ) -> Response:
        logger.error(
            "Storage read failed",
            extra={"request_path": request.url.path, "reason": str(exc)},
        )
        return _error_response(container, exc, "Error al leer del almacenamiento")

    @app.exception_handler(StorageWriteError)
    async def storage_write_failed(
        request: Request, exc: StorageWriteError
    ) -> Response:
        logger.error(
            "Storage write failed",
            extra={"request_path": request.url.path, "reason": str(exc)},
        )
        return _error_response(container, exc, "Error al guardar en el almacenamiento")

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/upload")
    async def upload_image(
        request: Request, payload: UploadRequest | None = None
    ) -> dict[str, str]:
        """Store a base64 image with its description."""
        state_container: AppContainer = request.app.state.container
        payload = payload or UploadRequest()
        image = await state_container.image_service.add_image(
            description=payload.description, image_data=payload.base64
        )
        logger.info("Image uploaded", extra={"image_id": image.id})
        return {"message": "Imagen guardada", "id": image.id}

    @app.get("/api/images")
    async def list_images(request: Request) -> list[dict[str, str]]:
        """Return every image with a data URI ready for display."""
        state_container: AppContainer = request.app.state.container
        images = await state_container.image_service.list_images()
        return [
            {
                "id": image.id,
                "description": image.description,
                "imageUrl": image.image_url(),
            }
            for image in images
        ]

    @app.post("/api/{user_id}/favoritos")
    async def add_favorite(
        user_id: str, request: Request, payload: ImageReference | None = None
    ) -> dict[str, object]:
        """Add an image to the user's favorites."""
        state_container: AppContainer = request.app.state.container
        image_id = _require_image_id(payload)
        favorites = await state_container.user_service.add_favorite(user_id, image_id)
        return {"message": "Favorito agregado", "favoritos": favorites}

    @app.get("/api/{user_id}/favoritos")
    async def list_favorites(user_id: str, request: Request) -> list[str]:
        """Return the user's favorite image ids."""
        state_container: AppContainer = request.app.state.container
        user = await state_container.user_service.get_user(user_id)
        return user.favorites

    @app.post("/api/{user_id}/historial")
    async def append_history(
        user_id: str, request: Request, payload: ImageReference | None = None
    ) -> dict[str, str]:
        """Record that the user viewed an image."""
        state_container: AppContainer = request.app.state.container
        image_id = _require_image_id(payload)
        await state_container.user_service.append_history(user_id, image_id)
        return {"message": "Historial actualizado"}

    @app.get("/api/{user_id}/historial")
    async def list_history(user_id: str, request: Request) -> list[str]:
        """Return the user's viewing history, oldest first."""
        state_container: AppContainer = request.app.state.container
        user = await state_container.user_service.get_user(user_id)
        return user.history

    @app.get("/api/{user_id}/estadisticas")
    async def statistics(user_id: str, request: Request) -> dict[str, int]:
        """Return favorite and history counts for the user."""
        state_container: AppContainer = request.app.state.container
        stats = await state_container.user_service.get_statistics(user_id)
        return {
            "totalFavoritos": stats.favorite_count,
            "totalHistorial": stats.history_count,
        }

    return app


def _require_image_id(payload: ImageReference | None) -> str:
    if payload is None or not payload.id:
        raise MissingFieldsError("image id is required")
    return payload.id


def _error_response(
    container: AppContainer, exc: Exception, message: str
) -> JSONResponse:
    """Return a 500 envelope, with debug detail in the local environment."""
    if container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            message = f"{message} (debug: {detail})"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": message},
    )

"""ASGI entrypoint for the image board API."""

from image_board.api.app import create_app
from image_board.containers import build_container

app = create_app(build_container())

"""HTTP adapter that serves the task board to a browser view."""

from .api import create_app, create_board_router

__all__ = ["create_app", "create_board_router"]

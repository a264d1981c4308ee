"""HTTP surface of the Non-Rev planner."""

from .app import create_app, register_error_handlers
from .routes import api_router

__all__ = ["create_app", "register_error_handlers", "api_router"]

"""Dependencies for FastAPI endpoints."""

from fastapi import Request

from spacehub.context import AppContext
from spacehub.errors import ConfigError


def get_context(request: Request) -> AppContext:
    """Application context built at startup and stored on app.state."""
    ctx = getattr(request.app.state, "ctx", None)
    if ctx is None:
        raise ConfigError("Application context is not initialised")
    return ctx

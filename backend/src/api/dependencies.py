"""FastAPI dependencies for injection."""
from core.auth import (
    get_backend,
    get_backend_factory,
    get_current_session,
    get_current_user,
)
from core.config import get_settings
from services.live_pages import get_live_pages

__all__ = [
    "get_backend",
    "get_backend_factory",
    "get_current_session",
    "get_current_user",
    "get_live_pages",
    "get_settings",
]

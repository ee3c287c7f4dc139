"""API routers for NoteGuard."""

from .auth import router as auth_router
from .health import router as health_router
from .locks import router as locks_router
from .notes import router as notes_router

__all__ = ["auth_router", "notes_router", "locks_router", "health_router"]

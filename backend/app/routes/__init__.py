"""API routes."""

from .observe import router as observe_router
from .soulfile import router as soulfile_router
from .wake import router as wake_router

__all__ = [
    "observe_router",
    "soulfile_router",
    "wake_router",
]

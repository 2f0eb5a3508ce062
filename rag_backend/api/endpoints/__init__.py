"""
API endpoints module initialization.

Exports all endpoint routers.
"""

from .health import router as health_router
from .embeddings import router as embeddings_router
from .system import router as system_router

__all__ = [
    "health_router",
    "embeddings_router",
    "system_router"
]

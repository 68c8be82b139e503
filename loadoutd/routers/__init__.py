"""API routers for loadoutd daemon.

This module contains FastAPI routers for all API endpoints.
"""

from .catalog import router as catalog_router
from .plugins import router as plugins_router
from .profiles import router as profiles_router

__all__ = [
    "catalog_router",
    "plugins_router",
    "profiles_router",
]

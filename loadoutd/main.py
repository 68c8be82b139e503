"""Main FastAPI application for loadoutd daemon.

This module creates and configures the FastAPI application that exposes
loadout_library over a local REST API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from loadout_library.config.loader import load_config

from . import __version__
from .dependencies import get_container
from .dependencies import reset_container
from .routers import catalog_router
from .routers import plugins_router
from .routers import profiles_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Builds the service container on startup so configuration and storage
    problems surface before the first request.

    Args:
        app: FastAPI application instance
    """
    # Startup
    config = load_config()
    logging.getLogger().setLevel(config.log_level.upper())
    logger.info(f"Starting loadoutd daemon on {config.host}:{config.port}")

    container = get_container()
    logger.info(f"Active profile: {container.coordinator.current_profile.id}")

    yield

    # Shutdown
    logger.info("Shutting down loadoutd daemon")
    reset_container()


# Create FastAPI application
app = FastAPI(
    title="loadoutd",
    description="REST API daemon for loadout profile and plugin subscriptions",
    version=__version__,
    lifespan=lifespan,
)

# Include routers
app.include_router(profiles_router)
app.include_router(plugins_router)
app.include_router(catalog_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint.

    Returns:
        Welcome message with API information
    """
    return {
        "name": "loadoutd",
        "version": __version__,
        "description": "REST API daemon for loadout",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }

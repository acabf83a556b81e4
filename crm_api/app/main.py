"""
Main entrypoint for the Service CRM API.

This module assembles the FastAPI application, sets up logging and
includes versioned routers.  ``create_app`` builds and configures the
app, which is then instantiated at import time as ``app``::

    uvicorn crm_api.app.main:app --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Apply pending migrations before serving requests."""
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI instance with all v1 routes under ``/api/v1``.
    """
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version, lifespan=lifespan)
    app.include_router(v1_router, prefix="/api/v1")
    return app


app = create_app()

"""FastAPI application factory for the File Service API.

Creates the application with:
- File endpoints (/v1/files) and SAS endpoints (/v1/sas)
- Health probes (/health, /health/live, /health/ready)
- Correlation IDs and security headers middleware
- Problem-details error handling for API and storage errors
- Lifecycle management for the blob storage client
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI, HTTPException
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from fileservice import __version__
from fileservice.api.errors import (
    ApiError,
    api_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    storage_exception_handler,
)
from fileservice.api.middleware import CorrelationMiddleware, SecurityHeadersMiddleware
from fileservice.api.routers import files, health, sas
from fileservice.config import settings
from fileservice.observability import configure_logging
from fileservice.storage.errors import StorageError
from fileservice.storage.factory import close_blob_storage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    On startup configure logging (JSON outside dev). On shutdown close the
    blob storage client.
    """
    configure_logging(
        json_format=settings.json_logs,
        level=settings.log_level,
    )
    logger.info(f"Starting File Service API ({settings.env}), container '{settings.azure_container}'")

    yield

    logger.info("Shutting down File Service API")
    await close_blob_storage()
    logger.info("File Service API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="File Service API",
        description="Upload, query and share files stored in Azure Blob Storage",
        version=__version__,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(CorrelationMiddleware)
    if settings.enable_security_headers:
        app.add_middleware(
            SecurityHeadersMiddleware,
            enable_hsts=settings.enable_hsts,
            hsts_max_age=settings.hsts_max_age,
        )

    app.add_exception_handler(ApiError, cast(ExceptionHandler, api_exception_handler))
    app.add_exception_handler(HTTPException, cast(ExceptionHandler, http_exception_handler))
    app.add_exception_handler(StorageError, cast(ExceptionHandler, storage_exception_handler))
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    app.include_router(files.router)
    app.include_router(sas.router)

    return app

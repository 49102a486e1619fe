"""
FastAPI Application Entry Point.

This is the main application file for the Carlet backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from carlet.app.core.config import settings
from carlet.app.core.logging_config import configure_logging
from carlet.app.core.observability import ObservabilityMiddleware
from carlet.app.core.redis_client import create_redis_client, ping_redis
from carlet.app.api.v1.router import router as api_v1_router
from carlet.app.db.session import Database
from carlet.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from carlet.app.services.file_storage import FileStorage, get_file_storage
from carlet.seed_data import seed_defaults

# Import models to ensure they are registered with Base
from carlet.app.models.location import Location
from carlet.app.models.car import Car
from carlet.app.models.note import Note
from carlet.app.models.part import Part
from carlet.app.models.user import User
from carlet.app.models.audit_log import AuditLog
from carlet.app.models.stored_file import StoredFile

logger = logging.getLogger("carlet")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.
    
    1. Configures logging.
    2. Opens the database engine and Redis client and stores them on app.state.
    3. Creates tables and seeds the default location on a fresh database.
    4. Disposes of both connections on shutdown.
    """
    configure_logging(settings.log_level)
    
    database = Database.from_settings(settings)
    app.state.database = database
    app.state.redis = create_redis_client(settings)
    
    await database.create_all()
    if settings.seed_on_startup:
        async with database.session() as db:
            await seed_defaults(db, settings)
    
    if not await ping_redis(app.state.redis):
        logger.warning("Redis unreachable; token revocation checks will be skipped")
    
    logger.info("%s %s started", settings.app_name, settings.api_version)
    yield
    
    await app.state.redis.aclose()
    await database.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Vehicle intake and repair workflow tracking for multi-location shops",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    
    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get(f"{settings.upload_url_prefix}/{{name}}", tags=["Uploads"])
async def serve_upload(name: str, storage: FileStorage = Depends(get_file_storage)):
    """Serve a stored photo by name."""
    data = storage.serve(f"{storage.url_prefix}/{name}")
    return Response(content=data, media_type="application/octet-stream")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.
    
    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Carlet API",
        "docs": "/docs",
        "health": "/health",
    }

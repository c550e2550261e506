"""
FastAPI Application Entry Point.

This is the main application file for the Postal Backend: shipment
tracking with an admin dashboard and a per-user dashboard.
"""

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from postal.app.core.config import settings
from postal.app.api.v1.router import router as api_v1_router
from postal.app.core.logging_config import setup_logging
from postal.app.core.observability import ObservabilityMiddleware
from postal.app.core.redis_client import get_redis, ping_redis
from postal.app.db.session import engine, Base
from postal.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from postal.app.models.user import User  # noqa: F401
from postal.app.models.account import Account  # noqa: F401
from postal.app.models.shipping_method import ShippingMethod  # noqa: F401
from postal.app.models.shipment import Shipment  # noqa: F401


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures structured logging.
    2. Creates database tables on startup.
    3. Disposes of the connection pool on shutdown.
    """
    setup_logging(settings.log_level, settings.log_json)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Shipment tracking backend with admin and user dashboards",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(redis_client=Depends(get_redis)):
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis(redis_client) else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Postal Backend API",
        "docs": "/docs",
        "health": "/health",
        "login": f"/{settings.api_version}/auth/login",
    }

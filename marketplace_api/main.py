"""
FastAPI application entry point for the Services Marketplace API.

This module provides the application factory with:
- Health and readiness endpoints
- Authentication and role-based authorization
- Request/response logging with correlation ids
- Prometheus metrics
- CORS
- MongoDB client management
- Graceful startup and shutdown

Settings are required (the JWT secret has no default), so there is no
module-level app. Run with the factory:

    uvicorn marketplace_api.main:create_app --factory
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pymongo import AsyncMongoClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace_api.config import Settings, get_settings
from marketplace_api.errors import MarketplaceError
from marketplace_api.middleware.request_logging import RequestLoggingMiddleware
from marketplace_api.models.common import error_response
from marketplace_api.repositories.booking_repo import BookingRepository
from marketplace_api.repositories.service_repo import ServiceRepository
from marketplace_api.repositories.user_repo import UserRepository
from marketplace_api.routers import auth, bookings, services
from marketplace_api.services.password_hasher import PasswordHasher
from marketplace_api.services.token_service import TokenService
from shared.logging import configure_logging

# Initialize logger
logger = structlog.get_logger(__name__)


# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - MongoDB client creation and index setup
    - Graceful shutdown and resource cleanup
    """
    settings: Settings = app.state.settings

    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment
    )

    # ========================================================================
    # Startup: Initialize Resources
    # ========================================================================

    client: AsyncMongoClient = AsyncMongoClient(
        settings.mongodb_url,
        serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        tz_aware=True
    )
    app.state.mongo_client = client
    app.state.mongo_db = client[settings.mongodb_database]

    try:
        logger.info("ensuring_indexes", database=settings.mongodb_database)
        for repo_cls in (UserRepository, ServiceRepository, BookingRepository):
            await repo_cls(app.state.mongo_db).ensure_indexes()

        logger.info(
            "application_started",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment
        )

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    # ========================================================================
    # Shutdown: Cleanup Resources
    # ========================================================================

    finally:
        logger.info("application_shutting_down")
        await client.close()
        app.state.mongo_client = None
        app.state.mongo_db = None
        logger.info("application_shutdown_complete")


# ============================================================================
# Exception Handlers
# ============================================================================

async def marketplace_exception_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    """Map domain errors onto the failure envelope."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_error",
        path=request.url.path,
        status_code=exc.status_code,
        error_type=type(exc).__name__,
        detail=exc.message
    )
    return error_response(exc.status_code, exc.message, exc.details, exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors as 400s."""
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"]
        }
        for err in exc.errors()
    ]
    logger.warning("validation_error", path=request.url.path, errors=errors)
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Please provide all required fields",
        errors
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions raised by routing."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "Route not found"
    else:
        message = str(exc.detail)
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail
    )
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


def general_exception_handler_for(settings: Settings):
    """Build the catch-all handler; error text is only exposed outside production."""

    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unexpected_exception",
            path=request.url.path,
            error=str(exc),
            exc_info=True
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Server error",
            None if settings.is_production else str(exc)
        )

    return general_exception_handler


# ============================================================================
# Application Factory
# ============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Explicit settings; loaded from the environment when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    configure_logging(
        log_level="DEBUG" if settings.debug else settings.log_level,
        json_logs=settings.log_format == "json",
        app_name=settings.app_name,
        environment=settings.environment
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Services marketplace API. Public service catalog, booking "
            "requests, and admin management of both."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        debug=settings.debug,
    )

    # Shared, read-only after startup
    app.state.settings = settings
    app.state.password_hasher = PasswordHasher(settings)
    app.state.token_service = TokenService(settings)
    app.state.mongo_client = None
    app.state.mongo_db = None

    # ========================================================================
    # Middleware Configuration
    # ========================================================================

    logger.info("configuring_cors", origins=settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # ========================================================================
    # Exception Handlers
    # ========================================================================

    app.add_exception_handler(MarketplaceError, marketplace_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler_for(settings))

    # ========================================================================
    # Routers
    # ========================================================================

    app.include_router(auth.router, prefix=settings.api_prefix)
    app.include_router(services.router, prefix=settings.api_prefix)
    app.include_router(bookings.router, prefix=settings.api_prefix)

    # ========================================================================
    # Index, Health and Readiness Endpoints
    # ========================================================================

    @app.get("/", tags=["Health"])
    async def index() -> Dict[str, Any]:
        """API index."""
        return {
            "success": True,
            "message": settings.app_name,
            "version": settings.app_version,
            "endpoints": {
                "health": f"{settings.api_prefix}/health",
                "auth": f"{settings.api_prefix}/auth",
                "services": f"{settings.api_prefix}/services",
                "bookings": f"{settings.api_prefix}/bookings"
            }
        }

    @app.get(f"{settings.api_prefix}/health", tags=["Health"])
    async def health_check() -> Dict[str, Any]:
        """
        Health check endpoint.

        Returns basic health status without checking dependencies.
        Use for container health checks.
        """
        return {
            "success": True,
            "message": "Server is running",
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    @app.get(f"{settings.api_prefix}/ready", tags=["Health"])
    async def readiness_check(request: Request) -> JSONResponse:
        """
        Readiness check endpoint.

        Pings MongoDB; 503 when the database is unreachable.
        """
        checks = {"database": "unknown"}

        client = request.app.state.mongo_client
        if client is None:
            checks["database"] = "unavailable"
        else:
            try:
                await client.admin.command("ping")
                checks["database"] = "healthy"
            except Exception as e:
                logger.error("database_health_check_failed", error=str(e))
                checks["database"] = "unhealthy"

        all_healthy = all(state == "healthy" for state in checks.values())
        return JSONResponse(
            status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "success": all_healthy,
                "status": "ready" if all_healthy else "not_ready",
                "version": settings.app_version,
                "checks": checks
            }
        )

    # ========================================================================
    # Metrics Endpoint
    # ========================================================================

    if settings.metrics_enabled:
        @app.get("/metrics", tags=["Monitoring"], response_class=PlainTextResponse)
        async def metrics() -> Response:
            """Prometheus metrics endpoint."""
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    """
    Run the application with Uvicorn for development.
    """
    settings = get_settings()

    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        environment=settings.environment
    )

    uvicorn.run(
        "marketplace_api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower()
    )

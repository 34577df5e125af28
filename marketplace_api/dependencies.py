"""
FastAPI dependency injection for database, repositories and services.

Provides injectable dependencies for:
- Settings and the MongoDB database handle (from ``app.state``)
- Repository instances
- The shared password hasher and token service
- Service instances
- Pagination parameters

Everything long-lived is built once in ``create_app`` and stored on
``app.state``; these dependencies only hand it out, which keeps them easy
to override in tests.
"""

from typing import Optional

import structlog
from fastapi import Depends, Query, Request
from pymongo.asynchronous.database import AsyncDatabase

from marketplace_api.config import Settings
from marketplace_api.repositories.booking_repo import BookingRepository
from marketplace_api.repositories.service_repo import ServiceRepository
from marketplace_api.repositories.user_repo import UserRepository
from marketplace_api.services.auth_service import AuthService
from marketplace_api.services.booking_service import BookingService
from marketplace_api.services.catalog_service import CatalogService
from marketplace_api.services.password_hasher import PasswordHasher
from marketplace_api.services.token_service import TokenService

logger = structlog.get_logger(__name__)


# ============================================================================
# APPLICATION STATE
# ============================================================================


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> AsyncDatabase:
    """
    Get the MongoDB database handle opened during startup.

    Raises:
        RuntimeError: If the database is not initialized
    """
    db = getattr(request.app.state, "mongo_db", None)
    if db is None:
        logger.error("database_not_initialized")
        raise RuntimeError("Database not initialized. Start the app through its lifespan.")
    return db


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


# ============================================================================
# REPOSITORY DEPENDENCIES
# ============================================================================


def get_user_repository(db: AsyncDatabase = Depends(get_database)) -> UserRepository:
    return UserRepository(db)


def get_service_repository(db: AsyncDatabase = Depends(get_database)) -> ServiceRepository:
    return ServiceRepository(db)


def get_booking_repository(db: AsyncDatabase = Depends(get_database)) -> BookingRepository:
    return BookingRepository(db)


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service)
) -> AuthService:
    """
    Get authentication service instance.

    Example:
        @app.post("/login")
        async def login(auth_service: AuthService = Depends(get_auth_service)):
            ...
    """
    return AuthService(user_repo, hasher, tokens)


def get_catalog_service(
    service_repo: ServiceRepository = Depends(get_service_repository)
) -> CatalogService:
    return CatalogService(service_repo)


def get_booking_service(
    booking_repo: BookingRepository = Depends(get_booking_repository),
    service_repo: ServiceRepository = Depends(get_service_repository),
    user_repo: UserRepository = Depends(get_user_repository)
) -> BookingService:
    return BookingService(booking_repo, service_repo, user_repo)


# ============================================================================
# PAGINATION
# ============================================================================


class PaginationParams:
    """
    Page/limit query parameters bounded by the configured maximum.

    Example:
        @app.get("/items")
        async def list_items(pagination: PaginationParams = Depends()):
            skip = (pagination.page - 1) * pagination.limit
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)"),
        limit: Optional[int] = Query(None, ge=1, description="Items per page"),
        settings: Settings = Depends(get_app_settings)
    ):
        self.page = page
        self.limit = min(
            limit or settings.pagination_default_limit,
            settings.pagination_max_limit
        )

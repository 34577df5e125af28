"""
Service catalog router.

Reads are public; create, update and delete require the admin role.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from marketplace_api.dependencies import get_catalog_service
from marketplace_api.middleware.rbac import require_admin
from marketplace_api.models.common import ErrorResponse, api_response
from marketplace_api.models.service import (
    ServiceCategory,
    ServiceCreate,
    ServiceSort,
    ServiceUpdate,
)
from marketplace_api.services.catalog_service import CatalogService

router = APIRouter(
    prefix="/services",
    tags=["Services"],
    responses={
        400: {"model": ErrorResponse, "description": "Validation Error"},
        404: {"model": ErrorResponse, "description": "Not Found"}
    }
)

ADMIN_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Unauthorized"},
    403: {"model": ErrorResponse, "description": "Forbidden"}
}


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================


@router.get("", summary="List active services")
async def list_services(
    category: Optional[ServiceCategory] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, description="Match name, description or tags"),
    sort: ServiceSort = Query(ServiceSort.NEWEST, description="Sort order"),
    catalog: CatalogService = Depends(get_catalog_service)
) -> JSONResponse:
    services = await catalog.list_services(category=category, search=search, sort=sort)
    return api_response([s.to_api() for s in services], count=len(services))


@router.get("/slug/{slug}", summary="Get service by slug")
async def get_service_by_slug(
    slug: str,
    catalog: CatalogService = Depends(get_catalog_service)
) -> JSONResponse:
    service = await catalog.get_service_by_slug(slug)
    return api_response(service.to_api())


@router.get("/{service_id}", summary="Get service by ID")
async def get_service(
    service_id: str,
    catalog: CatalogService = Depends(get_catalog_service)
) -> JSONResponse:
    service = await catalog.get_service(service_id)
    return api_response(service.to_api())


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create service",
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(require_admin)]
)
async def create_service(
    payload: ServiceCreate,
    catalog: CatalogService = Depends(get_catalog_service)
) -> JSONResponse:
    """Create a service; its slug is derived from the name."""
    service = await catalog.create_service(payload)
    return api_response(service.to_api(), status_code=status.HTTP_201_CREATED)


@router.put(
    "/{service_id}",
    summary="Update service",
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(require_admin)]
)
async def update_service(
    service_id: str,
    payload: ServiceUpdate,
    catalog: CatalogService = Depends(get_catalog_service)
) -> JSONResponse:
    """Partially update a service; renaming regenerates the slug."""
    service = await catalog.update_service(service_id, payload)
    return api_response(service.to_api())


@router.delete(
    "/{service_id}",
    summary="Delete service",
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(require_admin)]
)
async def delete_service(
    service_id: str,
    catalog: CatalogService = Depends(get_catalog_service)
) -> JSONResponse:
    await catalog.delete_service(service_id)
    return api_response({}, message="Service deleted successfully")

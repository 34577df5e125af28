"""
Booking router.

Provides REST API endpoints for:
- Public booking requests (optionally attributed to the caller)
- The caller's own bookings
- Admin listing, statistics, status/notes updates and deletion
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from marketplace_api.dependencies import PaginationParams, get_booking_service
from marketplace_api.middleware.auth import attach_identity_if_present, require_identity
from marketplace_api.middleware.rbac import require_admin
from marketplace_api.models.auth import CurrentUser
from marketplace_api.models.booking import BookingCreate, BookingStatus, BookingUpdate
from marketplace_api.models.common import ErrorResponse, api_response
from marketplace_api.services.booking_service import BookingService

router = APIRouter(
    prefix="/bookings",
    tags=["Bookings"],
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
# PUBLIC / AUTHENTICATED ENDPOINTS
# ============================================================================


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Request a booking",
    description="""
    Create a booking for a service. The booking always starts ``pending``.

    **Authentication:** Optional. A valid bearer token attributes the
    booking to the caller; a missing or invalid one leaves ``userId`` null.

    **Error Responses:**
    - 400: Missing fields or values outside the budget/timeline choices
    - 404: Service not found
    """
)
async def create_booking(
    payload: BookingCreate,
    owner: Optional[CurrentUser] = Depends(attach_identity_if_present),
    bookings: BookingService = Depends(get_booking_service)
) -> JSONResponse:
    booking = await bookings.create_booking(payload, owner=owner)
    return api_response(
        booking.to_api(),
        message="Booking created successfully",
        status_code=status.HTTP_201_CREATED
    )


@router.get(
    "/my-bookings",
    summary="Current user's bookings",
    responses={401: {"model": ErrorResponse, "description": "Unauthorized"}}
)
async def my_bookings(
    user: CurrentUser = Depends(require_identity),
    bookings: BookingService = Depends(get_booking_service)
) -> JSONResponse:
    """Bookings owned by the caller or made with the caller's email."""
    results = await bookings.my_bookings(user)
    return api_response([b.to_api() for b in results], count=len(results))


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@router.get(
    "",
    summary="List bookings",
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(require_admin)]
)
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    pagination: PaginationParams = Depends(),
    bookings: BookingService = Depends(get_booking_service)
) -> JSONResponse:
    results, total, total_pages = await bookings.list_bookings(
        status=status_filter,
        page=pagination.page,
        limit=pagination.limit
    )
    return api_response(
        [b.to_api() for b in results],
        count=len(results),
        total=total,
        totalPages=total_pages,
        currentPage=pagination.page
    )


@router.get(
    "/stats",
    summary="Booking statistics",
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(require_admin)]
)
async def booking_stats(
    bookings: BookingService = Depends(get_booking_service)
) -> JSONResponse:
    stats = await bookings.get_stats()
    return api_response(stats.to_api())


@router.get(
    "/{booking_id}",
    summary="Get booking",
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(require_admin)]
)
async def get_booking(
    booking_id: str,
    bookings: BookingService = Depends(get_booking_service)
) -> JSONResponse:
    booking = await bookings.get_booking_detail(booking_id)
    return api_response(booking.to_api())


@router.put(
    "/{booking_id}",
    summary="Update booking status or notes",
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(require_admin)]
)
async def update_booking(
    booking_id: str,
    payload: BookingUpdate,
    bookings: BookingService = Depends(get_booking_service)
) -> JSONResponse:
    booking = await bookings.update_booking(booking_id, payload)
    return api_response(booking.to_api(), message="Booking updated successfully")


@router.delete(
    "/{booking_id}",
    summary="Delete booking",
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(require_admin)]
)
async def delete_booking(
    booking_id: str,
    bookings: BookingService = Depends(get_booking_service)
) -> JSONResponse:
    await bookings.delete_booking(booking_id)
    return api_response({}, message="Booking deleted successfully")

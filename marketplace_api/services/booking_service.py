"""
Booking lifecycle service.

Creation is public and optionally attributed to the requesting user; every
other mutation is an admin operation. Status transitions are unrestricted:
any member of ``BookingStatus`` may be written at any time.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog

from marketplace_api.errors import InputValidationError, NotFoundError
from marketplace_api.metrics import bookings_created_total
from marketplace_api.models.auth import CurrentUser, UserSummary
from marketplace_api.models.booking import (
    BookingCreate,
    BookingDB,
    BookingDetail,
    BookingFullDetail,
    BookingStats,
    BookingStatus,
    BookingUpdate,
)
from marketplace_api.models.service import ServiceSummary
from marketplace_api.repositories.booking_repo import BookingRepository
from marketplace_api.repositories.service_repo import ServiceRepository
from marketplace_api.repositories.user_repo import UserRepository

logger = structlog.get_logger(__name__)

RECENT_BOOKINGS_LIMIT = 5


def apply_booking_update(
    booking: BookingDB,
    update: BookingUpdate,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Compute the field changes an admin update makes to a booking.

    Only fields explicitly present in ``update`` are written. ``updated_at``
    always advances.

    Args:
        booking: Current booking
        update: Validated update request
        now: Mutation time (defaults to the current UTC time)

    Returns:
        Mapping of stored field name to new value

    Raises:
        InputValidationError: ``status`` explicitly set to null
    """
    changes: Dict[str, Any] = {}

    if "status" in update.model_fields_set:
        if update.status is None:
            raise InputValidationError("Invalid booking status")
        if update.status != booking.status:
            logger.info(
                "booking_status_changed",
                booking_id=booking.id,
                from_status=booking.status.value,
                to_status=update.status.value
            )
        changes["status"] = update.status.value

    if "admin_notes" in update.model_fields_set:
        changes["admin_notes"] = update.admin_notes

    changes["updated_at"] = now or datetime.now(timezone.utc)
    return changes


class BookingService:
    """Service for booking operations."""

    def __init__(
        self,
        booking_repo: BookingRepository,
        service_repo: ServiceRepository,
        user_repo: UserRepository
    ):
        self.booking_repo = booking_repo
        self.service_repo = service_repo
        self.user_repo = user_repo

    async def create_booking(
        self,
        payload: BookingCreate,
        owner: Optional[CurrentUser] = None
    ) -> BookingDB:
        """
        Create a pending booking with a snapshot of the service.

        Args:
            payload: Validated booking request
            owner: Authenticated requester, if any

        Raises:
            NotFoundError: Referenced service does not exist; nothing is stored
        """
        service = await self.service_repo.get_service_by_id(payload.service_id)
        if not service:
            logger.warning("booking_service_not_found", service_id=payload.service_id)
            raise NotFoundError("Service not found")

        fields = payload.model_dump(mode="json")
        fields.update(
            service_id=service.id,
            service_name=service.name,
            service_price=service.price,
            user_id=owner.id if owner else None,
            status=BookingStatus.PENDING.value,
            admin_notes=None,
        )

        booking = await self.booking_repo.create_booking(fields)
        bookings_created_total.labels(authenticated=str(owner is not None).lower()).inc()

        logger.info(
            "booking_created",
            booking_id=booking.id,
            service_id=service.id,
            user_id=booking.user_id
        )
        return booking

    async def list_bookings(
        self,
        status: Optional[BookingStatus] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[BookingDetail], int, int]:
        """
        Page through bookings, newest first, with service and owner summaries.

        Returns:
            Tuple of (bookings, total matching, total pages)
        """
        total = await self.booking_repo.count_bookings(status=status)
        bookings = await self.booking_repo.list_bookings(
            status=status,
            skip=(page - 1) * limit,
            limit=limit
        )

        services = await self.service_repo.get_services_by_ids(
            {b.service_id for b in bookings}
        )
        users = await self.user_repo.get_users_by_ids(
            {b.user_id for b in bookings if b.user_id}
        )

        details = []
        for booking in bookings:
            service = services.get(booking.service_id)
            user = users.get(booking.user_id) if booking.user_id else None
            details.append(BookingDetail(
                **booking.model_dump(),
                service=ServiceSummary(
                    id=service.id, name=service.name, category=service.category
                ) if service else None,
                user=UserSummary(
                    id=user.id, name=user.name, email=user.email
                ) if user else None,
            ))

        total_pages = math.ceil(total / limit) if limit else 0
        return details, total, total_pages

    async def get_stats(self) -> BookingStats:
        counts = {
            status: await self.booking_repo.count_bookings(status=status)
            for status in BookingStatus
        }
        recent = await self.booking_repo.list_bookings(
            status=None, skip=0, limit=RECENT_BOOKINGS_LIMIT
        )
        return BookingStats(
            total=await self.booking_repo.count_bookings(),
            pending=counts[BookingStatus.PENDING],
            contacted=counts[BookingStatus.CONTACTED],
            in_progress=counts[BookingStatus.IN_PROGRESS],
            completed=counts[BookingStatus.COMPLETED],
            cancelled=counts[BookingStatus.CANCELLED],
            recent_bookings=recent,
        )

    async def my_bookings(self, user: CurrentUser) -> List[BookingDB]:
        """Bookings owned by ``user`` or made with their email, newest first."""
        return await self.booking_repo.list_bookings_for_user(user.id, user.email)

    async def get_booking(self, booking_id: str) -> BookingDB:
        booking = await self.booking_repo.get_booking_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    async def get_booking_detail(self, booking_id: str) -> BookingFullDetail:
        """
        Load one booking with its full service and the owner summary.

        Either is None when the referenced document no longer exists.

        Raises:
            NotFoundError: Unknown booking
        """
        booking = await self.get_booking(booking_id)
        service = await self.service_repo.get_service_by_id(booking.service_id)
        user = await self.user_repo.get_user_by_id(booking.user_id) if booking.user_id else None
        return BookingFullDetail(
            **booking.model_dump(),
            service=service,
            user=UserSummary(id=user.id, name=user.name, email=user.email) if user else None,
        )

    async def update_booking(self, booking_id: str, update: BookingUpdate) -> BookingDB:
        """
        Apply an admin update to status and/or notes.

        Raises:
            NotFoundError: Unknown booking
        """
        booking = await self.get_booking(booking_id)
        changes = apply_booking_update(booking, update)

        updated = await self.booking_repo.update_booking(booking_id, changes)
        if not updated:
            raise NotFoundError("Booking not found")

        logger.info("booking_updated", booking_id=booking_id, fields=sorted(changes))
        return updated

    async def delete_booking(self, booking_id: str) -> None:
        deleted = await self.booking_repo.delete_booking(booking_id)
        if not deleted:
            raise NotFoundError("Booking not found")
        logger.info("booking_deleted", booking_id=booking_id)

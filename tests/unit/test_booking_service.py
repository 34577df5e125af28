"""
Unit tests for the booking service.

Tests cover:
- Creation: service snapshot, forced pending status, optional owner
- Unknown or malformed service ids persist nothing
- Admin listing with pagination and populated summaries
- Statistics
- Single-booking detail with the full service and owner
- "My bookings" matching owner id or contact email
- Update and delete of unknown bookings
"""

import pytest

from marketplace_api.errors import NotFoundError
from marketplace_api.models.auth import CurrentUser
from marketplace_api.models.booking import BookingCreate, BookingStatus, BookingUpdate
from marketplace_api.services.booking_service import BookingService
from marketplace_api.metrics import bookings_created_total

UNKNOWN_ID = "665f1c2e8b3e4a00ffffffff"


@pytest.fixture
def booking_service(booking_repo, service_repo, user_repo) -> BookingService:
    return BookingService(booking_repo, service_repo, user_repo)


@pytest.fixture
def payload(booking_payload) -> BookingCreate:
    return BookingCreate.model_validate(booking_payload)


# ============================================================================
# CREATION
# ============================================================================


class TestCreateBooking:
    """Tests for BookingService.create_booking."""

    @pytest.mark.asyncio
    async def test_anonymous_booking_is_pending_without_owner(self, booking_service, payload, sample_service):
        booking = await booking_service.create_booking(payload)

        assert booking.status == BookingStatus.PENDING
        assert booking.user_id is None
        assert booking.service_id == sample_service.id
        assert booking.email == "jane@example.com"

    @pytest.mark.asyncio
    async def test_booking_snapshots_service(self, booking_service, payload, sample_service):
        booking = await booking_service.create_booking(payload)

        assert booking.service_name == sample_service.name
        assert booking.service_price == sample_service.price

    @pytest.mark.asyncio
    async def test_client_status_is_ignored(self, booking_service, booking_payload):
        payload = BookingCreate.model_validate({**booking_payload, "status": "completed"})

        booking = await booking_service.create_booking(payload)

        assert booking.status == BookingStatus.PENDING

    @pytest.mark.asyncio
    async def test_authenticated_booking_records_owner(self, booking_service, payload, regular_user):
        owner = CurrentUser.from_user(regular_user)

        booking = await booking_service.create_booking(payload, owner=owner)

        assert booking.user_id == regular_user.id

    @pytest.mark.asyncio
    async def test_creation_increments_metric(self, booking_service, payload):
        counter = bookings_created_total.labels(authenticated="false")
        before = counter._value.get()

        await booking_service.create_booking(payload)

        assert counter._value.get() == before + 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("service_id", [UNKNOWN_ID, "not-an-object-id"])
    async def test_unknown_service_persists_nothing(self, booking_service, booking_repo, booking_payload, service_id):
        payload = BookingCreate.model_validate({**booking_payload, "serviceId": service_id})

        with pytest.raises(NotFoundError) as exc_info:
            await booking_service.create_booking(payload)

        assert exc_info.value.message == "Service not found"
        assert booking_repo.bookings == {}


# ============================================================================
# ADMIN QUERIES
# ============================================================================


class TestListBookings:
    """Tests for listing and statistics."""

    @pytest.mark.asyncio
    async def test_pagination_metadata(self, booking_service, payload):
        for _ in range(3):
            await booking_service.create_booking(payload)

        page, total, total_pages = await booking_service.list_bookings(page=2, limit=2)

        assert total == 3
        assert total_pages == 2
        assert len(page) == 1

    @pytest.mark.asyncio
    async def test_newest_first(self, booking_service, payload):
        first = await booking_service.create_booking(payload)
        second = await booking_service.create_booking(payload)

        page, _, _ = await booking_service.list_bookings()

        assert [b.id for b in page] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_status_filter(self, booking_service, payload):
        booking = await booking_service.create_booking(payload)
        await booking_service.create_booking(payload)
        await booking_service.update_booking(booking.id, BookingUpdate(status=BookingStatus.CONTACTED))

        page, total, _ = await booking_service.list_bookings(status=BookingStatus.CONTACTED)

        assert total == 1
        assert page[0].id == booking.id

    @pytest.mark.asyncio
    async def test_summaries_are_populated(self, booking_service, payload, regular_user, sample_service):
        await booking_service.create_booking(payload, owner=CurrentUser.from_user(regular_user))

        page, _, _ = await booking_service.list_bookings()

        assert page[0].service.name == sample_service.name
        assert page[0].service.category == sample_service.category
        assert page[0].user.email == regular_user.email

    @pytest.mark.asyncio
    async def test_missing_references_leave_summaries_empty(self, booking_service, service_repo, payload, sample_service):
        await booking_service.create_booking(payload)
        await service_repo.delete_service(sample_service.id)

        page, _, _ = await booking_service.list_bookings()

        assert page[0].service is None
        assert page[0].user is None
        assert page[0].service_name == sample_service.name

    @pytest.mark.asyncio
    async def test_stats(self, booking_service, payload):
        bookings = [await booking_service.create_booking(payload) for _ in range(6)]
        await booking_service.update_booking(bookings[0].id, BookingUpdate(status=BookingStatus.COMPLETED))
        await booking_service.update_booking(bookings[1].id, BookingUpdate(status=BookingStatus.IN_PROGRESS))

        stats = await booking_service.get_stats()

        assert stats.total == 6
        assert stats.pending == 4
        assert stats.completed == 1
        assert stats.in_progress == 1
        assert stats.cancelled == 0
        assert len(stats.recent_bookings) == 5
        assert stats.recent_bookings[0].id == bookings[-1].id


class TestMyBookings:
    """Tests for BookingService.my_bookings."""

    @pytest.mark.asyncio
    async def test_matches_owner_or_email(self, booking_service, booking_payload, regular_user):
        owner = CurrentUser.from_user(regular_user)
        owned = await booking_service.create_booking(
            BookingCreate.model_validate(booking_payload), owner=owner
        )
        by_email = await booking_service.create_booking(
            BookingCreate.model_validate({**booking_payload, "email": "USER@example.com"})
        )
        await booking_service.create_booking(BookingCreate.model_validate(booking_payload))

        results = await booking_service.my_bookings(owner)

        assert [b.id for b in results] == [by_email.id, owned.id]


class TestGetBookingDetail:
    """Tests for BookingService.get_booking_detail."""

    @pytest.mark.asyncio
    async def test_full_service_and_owner_are_populated(self, booking_service, payload, regular_user, sample_service):
        booking = await booking_service.create_booking(payload, owner=CurrentUser.from_user(regular_user))

        detail = await booking_service.get_booking_detail(booking.id)

        assert detail.id == booking.id
        assert detail.service == sample_service
        assert detail.user.email == regular_user.email

    @pytest.mark.asyncio
    async def test_deleted_service_leaves_detail_empty(self, booking_service, service_repo, payload, sample_service):
        booking = await booking_service.create_booking(payload)
        await service_repo.delete_service(sample_service.id)

        detail = await booking_service.get_booking_detail(booking.id)

        assert detail.service is None
        assert detail.user is None

    @pytest.mark.asyncio
    async def test_unknown_booking(self, booking_service):
        with pytest.raises(NotFoundError):
            await booking_service.get_booking_detail(UNKNOWN_ID)


class TestMutations:
    """Tests for update and delete."""

    @pytest.mark.asyncio
    async def test_update_unknown_booking(self, booking_service):
        with pytest.raises(NotFoundError):
            await booking_service.update_booking(UNKNOWN_ID, BookingUpdate(status=BookingStatus.CONTACTED))

    @pytest.mark.asyncio
    async def test_update_advances_updated_at(self, booking_service, payload):
        booking = await booking_service.create_booking(payload)

        updated = await booking_service.update_booking(booking.id, BookingUpdate(admin_notes="n"))

        assert updated.updated_at > booking.updated_at
        assert updated.admin_notes == "n"

    @pytest.mark.asyncio
    async def test_delete(self, booking_service, booking_repo, payload):
        booking = await booking_service.create_booking(payload)

        await booking_service.delete_booking(booking.id)

        assert booking.id not in booking_repo.bookings
        with pytest.raises(NotFoundError):
            await booking_service.delete_booking(booking.id)

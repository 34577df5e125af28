"""
Shared pytest fixtures.

Provides:
- Test settings (fast bcrypt, development environment)
- In-memory repository doubles with the same interface as the MongoDB
  repositories
- An application wired to those doubles and a TestClient for it
- Ready-made users, tokens and a catalog entry
"""

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any, Dict, Iterable, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from marketplace_api.config import Settings
from marketplace_api.dependencies import (
    get_booking_repository,
    get_service_repository,
    get_user_repository,
)
from marketplace_api.errors import ConflictError
from marketplace_api.main import create_app
from marketplace_api.models.auth import Role, UserDB
from marketplace_api.models.booking import BookingDB, BookingStatus
from marketplace_api.models.service import ServiceCategory, ServiceDB, ServiceSort
from marketplace_api.services.password_hasher import PasswordHasher
from marketplace_api.services.token_service import TokenService

TEST_SECRET = "test-secret-key-that-is-at-least-32-characters"
TEST_PASSWORD = "secret1"

_BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class _Clock:
    """Strictly increasing timestamps so newest-first ordering is deterministic."""

    def __init__(self):
        self._ticks = count()

    def now(self) -> datetime:
        return _BASE_TIME + timedelta(seconds=next(self._ticks))


# ============================================================================
# IN-MEMORY REPOSITORIES (Test Doubles)
# ============================================================================


class InMemoryUserRepository:
    """Dict-backed stand-in for UserRepository."""

    def __init__(self, clock: _Clock):
        self.clock = clock
        self.users: Dict[str, UserDB] = {}

    def add(self, name: str, email: str, password_hash: str, role: Role = Role.USER) -> UserDB:
        if any(u.email == email for u in self.users.values()):
            raise ConflictError("User already exists")
        user = UserDB(
            id=str(ObjectId()),
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            created_at=self.clock.now()
        )
        self.users[user.id] = user
        return user

    async def create_user(self, name, email, password_hash, role=Role.USER) -> UserDB:
        return self.add(name, email, password_hash, role)

    async def get_user_by_id(self, user_id: str) -> Optional[UserDB]:
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[UserDB]:
        email = email.strip().lower()
        return next((u for u in self.users.values() if u.email == email), None)

    async def get_users_by_ids(self, user_ids: Iterable[str]) -> Dict[str, UserDB]:
        return {uid: self.users[uid] for uid in user_ids if uid in self.users}

    async def update_password_hash(self, user_id: str, password_hash: str) -> bool:
        if user_id not in self.users:
            return False
        self.users[user_id] = self.users[user_id].model_copy(update={"password_hash": password_hash})
        return True


class InMemoryServiceRepository:
    """Dict-backed stand-in for ServiceRepository."""

    def __init__(self, clock: _Clock):
        self.clock = clock
        self.services: Dict[str, ServiceDB] = {}

    def _check_slug(self, slug: str, exclude_id: Optional[str] = None) -> None:
        if any(s.slug == slug and s.id != exclude_id for s in self.services.values()):
            raise ConflictError("A service with this name already exists")

    def add(self, fields: Dict[str, Any]) -> ServiceDB:
        self._check_slug(fields["slug"])
        now = self.clock.now()
        service = ServiceDB(id=str(ObjectId()), created_at=now, updated_at=now, **fields)
        self.services[service.id] = service
        return service

    async def list_services(self, category=None, search=None, sort=ServiceSort.NEWEST) -> List[ServiceDB]:
        results = [s for s in self.services.values() if s.is_active]
        if category:
            results = [s for s in results if s.category == category]
        if search:
            needle = search.lower()
            results = [
                s for s in results
                if needle in s.name.lower()
                or needle in s.description.lower()
                or any(needle in t.lower() for t in s.tags)
            ]
        keys = {
            ServiceSort.NEWEST: (lambda s: s.created_at, True),
            ServiceSort.PRICE_ASC: (lambda s: s.price, False),
            ServiceSort.PRICE_DESC: (lambda s: s.price, True),
            ServiceSort.NAME: (lambda s: s.name, False),
        }
        key, reverse = keys[sort]
        return sorted(results, key=key, reverse=reverse)

    async def get_service_by_id(self, service_id: str) -> Optional[ServiceDB]:
        return self.services.get(service_id)

    async def get_service_by_slug(self, slug: str) -> Optional[ServiceDB]:
        return next((s for s in self.services.values() if s.slug == slug), None)

    async def get_services_by_ids(self, service_ids: Iterable[str]) -> Dict[str, ServiceDB]:
        return {sid: self.services[sid] for sid in service_ids if sid in self.services}

    async def create_service(self, fields: Dict[str, Any]) -> ServiceDB:
        return self.add(fields)

    async def update_service(self, service_id: str, changes: Dict[str, Any]) -> Optional[ServiceDB]:
        service = self.services.get(service_id)
        if not service:
            return None
        if "slug" in changes:
            self._check_slug(changes["slug"], exclude_id=service_id)
        updated = ServiceDB(**{**service.model_dump(), **changes})
        self.services[service_id] = updated
        return updated

    async def delete_service(self, service_id: str) -> bool:
        return self.services.pop(service_id, None) is not None


class InMemoryBookingRepository:
    """Dict-backed stand-in for BookingRepository."""

    def __init__(self, clock: _Clock):
        self.clock = clock
        self.bookings: Dict[str, BookingDB] = {}

    def _newest_first(self, bookings: Iterable[BookingDB]) -> List[BookingDB]:
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    async def create_booking(self, fields: Dict[str, Any]) -> BookingDB:
        now = self.clock.now()
        booking = BookingDB(id=str(ObjectId()), created_at=now, updated_at=now, **fields)
        self.bookings[booking.id] = booking
        return booking

    async def get_booking_by_id(self, booking_id: str) -> Optional[BookingDB]:
        return self.bookings.get(booking_id)

    async def list_bookings(self, status=None, skip=0, limit=10) -> List[BookingDB]:
        matching = [b for b in self.bookings.values() if status is None or b.status == status]
        return self._newest_first(matching)[skip:skip + limit]

    async def count_bookings(self, status: Optional[BookingStatus] = None) -> int:
        return sum(1 for b in self.bookings.values() if status is None or b.status == status)

    async def list_bookings_for_user(self, user_id: str, email: str) -> List[BookingDB]:
        email = email.lower()
        return self._newest_first(
            b for b in self.bookings.values() if b.user_id == user_id or b.email == email
        )

    async def update_booking(self, booking_id: str, changes: Dict[str, Any]) -> Optional[BookingDB]:
        booking = self.bookings.get(booking_id)
        if not booking:
            return None
        updated = BookingDB(**{**booking.model_dump(), **changes})
        self.bookings[booking_id] = updated
        return updated

    async def delete_booking(self, booking_id: str) -> bool:
        return self.bookings.pop(booking_id, None) is not None


# ============================================================================
# PYTEST FIXTURES
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings for tests: cheapest bcrypt cost, readable logs."""
    return Settings(
        jwt_secret_key=TEST_SECRET,
        environment="development",
        password_bcrypt_rounds=4,
        log_format="text",
        log_level="WARNING",
        _env_file=None,
    )


@pytest.fixture
def hasher(settings) -> PasswordHasher:
    return PasswordHasher(settings)


@pytest.fixture
def token_service(settings) -> TokenService:
    return TokenService(settings)


@pytest.fixture
def clock() -> _Clock:
    return _Clock()


@pytest.fixture
def user_repo(clock) -> InMemoryUserRepository:
    return InMemoryUserRepository(clock)


@pytest.fixture
def service_repo(clock) -> InMemoryServiceRepository:
    return InMemoryServiceRepository(clock)


@pytest.fixture
def booking_repo(clock) -> InMemoryBookingRepository:
    return InMemoryBookingRepository(clock)


@pytest.fixture
def app(settings, user_repo, service_repo, booking_repo):
    """Application wired to the in-memory repositories (lifespan not run)."""
    application = create_app(settings)
    application.dependency_overrides[get_user_repository] = lambda: user_repo
    application.dependency_overrides[get_service_repository] = lambda: service_repo
    application.dependency_overrides[get_booking_repository] = lambda: booking_repo
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def regular_user(user_repo, hasher) -> UserDB:
    return user_repo.add("Regular User", "user@example.com", hasher.hash(TEST_PASSWORD))


@pytest.fixture
def admin_user(user_repo, hasher) -> UserDB:
    return user_repo.add("Admin User", "admin@example.com", hasher.hash(TEST_PASSWORD), Role.ADMIN)


@pytest.fixture
def user_headers(regular_user, token_service) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_service.issue(regular_user.id)}"}


@pytest.fixture
def admin_headers(admin_user, token_service) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_service.issue(admin_user.id)}"}


@pytest.fixture
def sample_service(service_repo) -> ServiceDB:
    return service_repo.add({
        "name": "Custom Website Development",
        "slug": "custom-website-development",
        "description": "Tailored websites built from scratch.",
        "full_description": "Design, build and launch a bespoke website.",
        "price": 4999.0,
        "category": ServiceCategory.DEVELOPMENT,
        "delivery_time": "4-6 weeks",
        "features": ["Responsive design"],
        "tags": ["web", "frontend"],
    })


@pytest.fixture
def booking_payload(sample_service) -> Dict[str, Any]:
    """Valid camelCase booking request body."""
    return {
        "serviceId": sample_service.id,
        "name": "Jane Doe",
        "email": "Jane@Example.com",
        "phone": "+1 555 0100",
        "company": "Acme",
        "projectDescription": "Rebuild our storefront.",
        "budget": "$5,000 - $10,000",
        "timeline": "1-2 months",
    }

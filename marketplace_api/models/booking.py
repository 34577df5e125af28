"""
Booking models.

Provides Pydantic schemas for:
- Booking status, budget and timeline enumerations
- Public booking creation and admin updates
- Stored booking documents and the admin detail view
- Booking statistics
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from marketplace_api.models.auth import UserSummary
from marketplace_api.models.common import CamelModel
from marketplace_api.models.service import ServiceDB, ServiceSummary


# ============================================================================
# Enumerations
# ============================================================================


class BookingStatus(str, Enum):
    """
    Lifecycle state of a booking.

    Every booking starts as PENDING. Admins may move a booking to any
    member at any time; COMPLETED and CANCELLED are terminal for reporting.
    """
    PENDING = "pending"
    CONTACTED = "contacted"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)


class Budget(str, Enum):
    UNDER_5K = "< $5,000"
    FROM_5K_TO_10K = "$5,000 - $10,000"
    FROM_10K_TO_25K = "$10,000 - $25,000"
    FROM_25K_TO_50K = "$25,000 - $50,000"
    OVER_50K = "$50,000+"
    NOT_SURE = "Not sure"


class Timeline(str, Enum):
    ASAP = "ASAP"
    ONE_TO_TWO_WEEKS = "1-2 weeks"
    TWO_TO_FOUR_WEEKS = "2-4 weeks"
    ONE_TO_TWO_MONTHS = "1-2 months"
    THREE_PLUS_MONTHS = "3+ months"
    FLEXIBLE = "Flexible"


# ============================================================================
# Request Models
# ============================================================================


class BookingCreate(CamelModel):
    """
    Public booking request.

    Any client-supplied ``status`` is ignored; new bookings are always
    pending.
    """
    service_id: str = Field(
        ...,
        min_length=1,
        description="ID of the service being booked"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Contact name"
    )
    email: EmailStr = Field(
        ...,
        description="Contact email (stored lowercase)"
    )
    phone: str = Field(
        ...,
        min_length=1,
        description="Contact phone number"
    )
    company: Optional[str] = Field(
        None,
        description="Company name"
    )
    project_description: str = Field(
        ...,
        min_length=1,
        description="Free-form project description"
    )
    budget: Budget
    timeline: Timeline

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    model_config = {
        "json_schema_extra": {
            "example": {
                "serviceId": "665f1c2e8b3e4a0012345678",
                "name": "Jane Doe",
                "email": "jane@example.com",
                "phone": "+1 555 0100",
                "company": "Acme",
                "projectDescription": "Rebuild our storefront.",
                "budget": "$5,000 - $10,000",
                "timeline": "1-2 months"
            }
        }
    }


class BookingUpdate(CamelModel):
    """
    Admin update of a booking.

    Only fields present in the request body are written; an explicit
    ``adminNotes`` of null or "" clears the notes.
    """
    status: Optional[BookingStatus] = None
    admin_notes: Optional[str] = None


# ============================================================================
# Stored / Response Models
# ============================================================================


class BookingDB(CamelModel):
    """Booking document as stored, with the service snapshot taken at creation."""
    id: str
    user_id: Optional[str] = None
    service_id: str
    service_name: str
    service_price: float
    name: str
    email: str
    phone: str
    company: Optional[str] = None
    project_description: str
    budget: Budget
    timeline: Timeline
    status: BookingStatus = BookingStatus.PENDING
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class BookingDetail(BookingDB):
    """Admin list view with populated service and owner summaries."""
    service: Optional[ServiceSummary] = None
    user: Optional[UserSummary] = None


class BookingFullDetail(BookingDB):
    """Single-booking admin view with the complete service document and owner summary."""
    service: Optional[ServiceDB] = None
    user: Optional[UserSummary] = None


class BookingStats(CamelModel):
    """Per-status counts plus the most recent bookings."""
    total: int
    pending: int = 0
    contacted: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0
    recent_bookings: List[BookingDB] = Field(default_factory=list, alias="recent")

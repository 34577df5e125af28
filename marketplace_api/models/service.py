"""
Service catalog models.

A service is a purchasable catalog entry identified publicly by its slug.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from marketplace_api.models.common import CamelModel


DEFAULT_SERVICE_IMAGE = "/images/default-service.jpg"


class ServiceCategory(str, Enum):
    """Fixed set of catalog categories."""
    DEVELOPMENT = "development"
    DESIGN = "design"
    SECURITY = "security"
    OPTIMIZATION = "optimization"
    CONSULTING = "consulting"
    MAINTENANCE = "maintenance"


class ServiceSort(str, Enum):
    """Sort orders accepted by the public catalog listing."""
    NEWEST = "newest"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    NAME = "name"


class ServiceDB(CamelModel):
    """Service document as stored, also used as the API representation."""
    id: str
    name: str
    slug: str
    description: str
    full_description: str
    price: float
    category: ServiceCategory
    delivery_time: str
    features: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    image: str = DEFAULT_SERVICE_IMAGE
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class ServiceCreate(CamelModel):
    """Create service request schema."""
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Service name (slug is derived from it)"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Short description"
    )
    full_description: str = Field(
        ...,
        min_length=1,
        description="Full description"
    )
    price: float = Field(
        ...,
        ge=0,
        description="Price, cannot be negative"
    )
    category: ServiceCategory
    delivery_time: str = Field(
        ...,
        min_length=1,
        description="Delivery time estimate, e.g. '2-4 weeks'"
    )
    features: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    image: str = DEFAULT_SERVICE_IMAGE
    is_active: bool = True

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Custom Website Development",
                "description": "Tailored websites built from scratch.",
                "fullDescription": "Design, build and launch a bespoke website.",
                "price": 4999,
                "category": "development",
                "deliveryTime": "4-6 weeks",
                "features": ["Responsive design", "CMS integration"],
                "tags": ["web", "frontend"]
            }
        }
    }


class ServiceUpdate(CamelModel):
    """Partial update; only fields present in the body are written."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    full_description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    category: Optional[ServiceCategory] = None
    delivery_time: Optional[str] = Field(None, min_length=1)
    features: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None


class ServiceSummary(CamelModel):
    """Service summary embedded in admin booking views."""
    id: str
    name: str
    category: ServiceCategory

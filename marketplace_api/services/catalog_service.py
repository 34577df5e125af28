"""
Service catalog operations and slug derivation.
"""

import re
from datetime import datetime, timezone
from typing import List, Optional

import structlog

from marketplace_api.errors import InputValidationError, NotFoundError
from marketplace_api.models.service import (
    ServiceCategory,
    ServiceCreate,
    ServiceDB,
    ServiceSort,
    ServiceUpdate,
)
from marketplace_api.repositories.service_repo import ServiceRepository

logger = structlog.get_logger(__name__)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """
    Derive a URL slug from a service name.

    Example:
        >>> slugify("Custom Website Development!")
        'custom-website-development'
    """
    slug = _NON_SLUG_CHARS.sub("-", name.lower())
    if slug.startswith("-"):
        slug = slug[1:]
    if slug.endswith("-"):
        slug = slug[:-1]
    return slug


def _slug_for(name: str) -> str:
    slug = slugify(name)
    if not slug:
        raise InputValidationError("Service name must contain at least one letter or digit")
    return slug


class CatalogService:
    """Public catalog reads and admin catalog writes."""

    def __init__(self, service_repo: ServiceRepository):
        self.service_repo = service_repo

    async def list_services(
        self,
        category: Optional[ServiceCategory] = None,
        search: Optional[str] = None,
        sort: ServiceSort = ServiceSort.NEWEST
    ) -> List[ServiceDB]:
        """List active services, optionally filtered and sorted."""
        return await self.service_repo.list_services(
            category=category,
            search=search.strip() if search else None,
            sort=sort
        )

    async def get_service(self, service_id: str) -> ServiceDB:
        service = await self.service_repo.get_service_by_id(service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    async def get_service_by_slug(self, slug: str) -> ServiceDB:
        service = await self.service_repo.get_service_by_slug(slug)
        if not service:
            raise NotFoundError("Service not found")
        return service

    async def create_service(self, payload: ServiceCreate) -> ServiceDB:
        """
        Create a service with a slug derived from its name.

        Raises:
            InputValidationError: Name yields an empty slug
            ConflictError: Slug already taken
        """
        fields = payload.model_dump(mode="json")
        fields["slug"] = _slug_for(payload.name)

        service = await self.service_repo.create_service(fields)
        logger.info("service_created", service_id=service.id, slug=service.slug)
        return service

    async def update_service(self, service_id: str, payload: ServiceUpdate) -> ServiceDB:
        """
        Apply a partial update; the slug follows the name.

        Raises:
            NotFoundError: Unknown service
            InputValidationError: New name yields an empty slug
            ConflictError: New slug already taken
        """
        existing = await self.get_service(service_id)

        changes = payload.model_dump(mode="json", exclude_unset=True)
        # Explicit nulls never clear required catalog fields.
        changes = {k: v for k, v in changes.items() if v is not None}
        if "name" in changes and changes["name"] != existing.name:
            changes["slug"] = _slug_for(changes["name"])
        changes["updated_at"] = datetime.now(timezone.utc)

        service = await self.service_repo.update_service(service_id, changes)
        if not service:
            raise NotFoundError("Service not found")

        logger.info("service_updated", service_id=service_id, fields=sorted(changes))
        return service

    async def delete_service(self, service_id: str) -> None:
        deleted = await self.service_repo.delete_service(service_id)
        if not deleted:
            raise NotFoundError("Service not found")
        logger.info("service_deleted", service_id=service_id)

"""
Service catalog repository on the ``services`` collection.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import structlog
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from marketplace_api.errors import ConflictError
from marketplace_api.models.service import ServiceCategory, ServiceDB, ServiceSort
from marketplace_api.repositories.base import (
    MongoRepository,
    stringify_ids,
    to_object_id,
    to_object_ids,
)

logger = structlog.get_logger(__name__)

SORT_ORDERS = {
    ServiceSort.NEWEST: [("created_at", DESCENDING)],
    ServiceSort.PRICE_ASC: [("price", ASCENDING)],
    ServiceSort.PRICE_DESC: [("price", DESCENDING)],
    ServiceSort.NAME: [("name", ASCENDING)],
}


class ServiceRepository(MongoRepository):
    """Repository for catalog entries."""

    collection_name = "services"

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("slug", ASCENDING)], unique=True)
        await self.collection.create_index([("is_active", ASCENDING), ("category", ASCENDING)])

    @staticmethod
    def _to_model(document: dict) -> ServiceDB:
        return ServiceDB(**stringify_ids(document))

    async def list_services(
        self,
        category: Optional[ServiceCategory] = None,
        search: Optional[str] = None,
        sort: ServiceSort = ServiceSort.NEWEST
    ) -> List[ServiceDB]:
        """
        List active services.

        Args:
            category: Restrict to one category
            search: Case-insensitive substring matched against name,
                description and tags
            sort: Sort order
        """
        query: Dict[str, Any] = {"is_active": True}
        if category:
            query["category"] = category.value
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [
                {"name": pattern},
                {"description": pattern},
                {"tags": pattern},
            ]

        cursor = self.collection.find(query).sort(SORT_ORDERS[sort])
        documents = await cursor.to_list(length=None)
        return [self._to_model(d) for d in documents]

    async def get_service_by_id(self, service_id: str) -> Optional[ServiceDB]:
        oid = to_object_id(service_id)
        if oid is None:
            return None
        document = await self.collection.find_one({"_id": oid})
        return self._to_model(document) if document else None

    async def get_service_by_slug(self, slug: str) -> Optional[ServiceDB]:
        document = await self.collection.find_one({"slug": slug})
        return self._to_model(document) if document else None

    async def get_services_by_ids(self, service_ids: Iterable[str]) -> Dict[str, ServiceDB]:
        oids = to_object_ids(service_ids)
        if not oids:
            return {}
        cursor = self.collection.find({"_id": {"$in": oids}})
        documents = await cursor.to_list(length=None)
        services = (self._to_model(d) for d in documents)
        return {service.id: service for service in services}

    async def create_service(self, fields: Dict[str, Any]) -> ServiceDB:
        """
        Insert a service.

        Raises:
            ConflictError: Slug already exists
        """
        now = datetime.now(timezone.utc)
        document = {**fields, "created_at": now, "updated_at": now}
        try:
            result = await self.collection.insert_one(document)
        except DuplicateKeyError:
            logger.warning("service_slug_exists", slug=fields.get("slug"))
            raise ConflictError("A service with this name already exists")

        document["_id"] = result.inserted_id
        return self._to_model(document)

    async def update_service(
        self,
        service_id: str,
        changes: Dict[str, Any]
    ) -> Optional[ServiceDB]:
        """
        Set ``changes`` on a service.

        Returns:
            Updated service, or None if it does not exist

        Raises:
            ConflictError: New slug already exists
        """
        oid = to_object_id(service_id)
        if oid is None:
            return None
        try:
            document = await self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            logger.warning("service_slug_exists", slug=changes.get("slug"))
            raise ConflictError("A service with this name already exists")
        return self._to_model(document) if document else None

    async def delete_service(self, service_id: str) -> bool:
        oid = to_object_id(service_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count == 1

"""
Booking repository on the ``bookings`` collection.

``service_id`` and ``user_id`` are stored as ObjectId references.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from marketplace_api.models.booking import BookingDB, BookingStatus
from marketplace_api.repositories.base import (
    MongoRepository,
    stringify_ids,
    to_object_id,
)

logger = structlog.get_logger(__name__)

REF_FIELDS = ("service_id", "user_id")
NEWEST_FIRST = [("created_at", DESCENDING)]


class BookingRepository(MongoRepository):
    """Repository for booking database operations."""

    collection_name = "bookings"

    async def ensure_indexes(self) -> None:
        await self.collection.create_index(NEWEST_FIRST)
        await self.collection.create_index([("status", ASCENDING), ("created_at", DESCENDING)])
        await self.collection.create_index([("user_id", ASCENDING)])
        await self.collection.create_index([("email", ASCENDING)])

    @staticmethod
    def _to_model(document: dict) -> BookingDB:
        return BookingDB(**stringify_ids(document, *REF_FIELDS))

    @staticmethod
    def _status_filter(status: Optional[BookingStatus]) -> Dict[str, Any]:
        return {"status": status.value} if status else {}

    async def create_booking(self, fields: Dict[str, Any]) -> BookingDB:
        """
        Insert a booking.

        Args:
            fields: Booking fields with string references

        Returns:
            Created booking
        """
        now = datetime.now(timezone.utc)
        document = {**fields, "created_at": now, "updated_at": now}
        for ref in REF_FIELDS:
            document[ref] = to_object_id(document.get(ref))

        result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        return self._to_model(document)

    async def get_booking_by_id(self, booking_id: str) -> Optional[BookingDB]:
        oid = to_object_id(booking_id)
        if oid is None:
            return None
        document = await self.collection.find_one({"_id": oid})
        return self._to_model(document) if document else None

    async def list_bookings(
        self,
        status: Optional[BookingStatus] = None,
        skip: int = 0,
        limit: int = 10
    ) -> List[BookingDB]:
        """List bookings newest first, optionally filtered by status."""
        cursor = (
            self.collection.find(self._status_filter(status))
            .sort(NEWEST_FIRST)
            .skip(skip)
            .limit(limit)
        )
        documents = await cursor.to_list(length=None)
        return [self._to_model(d) for d in documents]

    async def count_bookings(self, status: Optional[BookingStatus] = None) -> int:
        return await self.collection.count_documents(self._status_filter(status))

    async def list_bookings_for_user(self, user_id: str, email: str) -> List[BookingDB]:
        """Bookings owned by ``user_id`` or made with ``email``, newest first."""
        clauses: List[Dict[str, Any]] = [{"email": email.lower()}]
        oid = to_object_id(user_id)
        if oid is not None:
            clauses.append({"user_id": oid})

        cursor = self.collection.find({"$or": clauses}).sort(NEWEST_FIRST)
        documents = await cursor.to_list(length=None)
        return [self._to_model(d) for d in documents]

    async def update_booking(
        self,
        booking_id: str,
        changes: Dict[str, Any]
    ) -> Optional[BookingDB]:
        oid = to_object_id(booking_id)
        if oid is None:
            return None
        document = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER
        )
        return self._to_model(document) if document else None

    async def delete_booking(self, booking_id: str) -> bool:
        oid = to_object_id(booking_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count == 1

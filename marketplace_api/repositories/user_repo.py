"""
User repository for database operations.

Provides async CRUD operations for users on the ``users`` collection.
Email uniqueness is enforced by a unique index.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

import structlog
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from marketplace_api.errors import ConflictError
from marketplace_api.models.auth import Role, UserDB
from marketplace_api.repositories.base import (
    MongoRepository,
    stringify_ids,
    to_object_id,
    to_object_ids,
)

logger = structlog.get_logger(__name__)


class UserRepository(MongoRepository):
    """Repository for user database operations."""

    collection_name = "users"

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("email", ASCENDING)], unique=True)

    @staticmethod
    def _to_model(document: dict) -> UserDB:
        return UserDB(**stringify_ids(document))

    async def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: Role = Role.USER
    ) -> UserDB:
        """
        Create a new user.

        Args:
            name: Display name
            email: Email address (already normalised)
            password_hash: Hashed password
            role: User role

        Returns:
            Created user

        Raises:
            ConflictError: If the email already exists
        """
        document = {
            "name": name,
            "email": email,
            "password_hash": password_hash,
            "role": role.value,
            "created_at": datetime.now(timezone.utc),
        }
        try:
            result = await self.collection.insert_one(document)
        except DuplicateKeyError:
            logger.warning("email_already_exists", email=email)
            raise ConflictError("User already exists")

        document["_id"] = result.inserted_id
        logger.info("user_created", user_id=str(result.inserted_id), role=role.value)
        return self._to_model(document)

    async def get_user_by_id(self, user_id: str) -> Optional[UserDB]:
        """
        Get user by ID.

        Returns:
            User if found, None otherwise (including malformed ids)
        """
        oid = to_object_id(user_id)
        if oid is None:
            return None
        document = await self.collection.find_one({"_id": oid})
        return self._to_model(document) if document else None

    async def get_user_by_email(self, email: str) -> Optional[UserDB]:
        document = await self.collection.find_one({"email": email.strip().lower()})
        return self._to_model(document) if document else None

    async def get_users_by_ids(self, user_ids: Iterable[str]) -> Dict[str, UserDB]:
        """Batch lookup keyed by id; unknown ids are absent from the result."""
        oids = to_object_ids(user_ids)
        if not oids:
            return {}
        cursor = self.collection.find({"_id": {"$in": oids}})
        documents = await cursor.to_list(length=None)
        users = (self._to_model(d) for d in documents)
        return {user.id: user for user in users}

    async def update_password_hash(self, user_id: str, password_hash: str) -> bool:
        """
        Replace a user's password hash.

        Returns:
            True if a user was updated
        """
        oid = to_object_id(user_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid},
            {"$set": {"password_hash": password_hash}}
        )
        return result.matched_count == 1

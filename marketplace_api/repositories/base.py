"""
Shared helpers for MongoDB repositories.

Documents are stored with snake_case keys and ObjectId references; models
expose ids as hex strings.
"""

from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase


def to_object_id(value: Optional[str]) -> Optional[ObjectId]:
    """Parse a hex id; returns None for anything that is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def to_object_ids(values: Iterable[str]) -> List[ObjectId]:
    return [oid for oid in (to_object_id(v) for v in values) if oid is not None]


def stringify_ids(document: Dict[str, Any], *ref_fields: str) -> Dict[str, Any]:
    """Map ``_id`` to ``id`` and turn ObjectId references into strings."""
    data = dict(document)
    data["id"] = str(data.pop("_id"))
    for field in ref_fields:
        if data.get(field) is not None:
            data[field] = str(data[field])
    return data


class MongoRepository:
    """Base repository bound to one collection."""

    collection_name: str = ""

    def __init__(self, db: AsyncDatabase):
        """
        Initialize repository.

        Args:
            db: MongoDB database handle
        """
        self.db = db

    @property
    def collection(self) -> AsyncCollection:
        return self.db[self.collection_name]

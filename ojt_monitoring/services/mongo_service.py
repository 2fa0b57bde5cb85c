"""
MongoDB Service - shared helpers for the collection services.

Every entity service wraps one collection and returns plain dicts
where ObjectIds are already converted to strings.
"""

import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pymongo.collection import Collection

from ojt_monitoring.db.mongodb import COLLECTIONS, get_collection


# Fields never returned for users
USER_PUBLIC_PROJECTION = {"password": 0}
# Compact user shape used when populating references
USER_SUMMARY_PROJECTION = {
    "firstName": 1, "lastName": 1, "middleName": 1, "userName": 1,
    "email": 1, "role": 1, "program": 1, "avatar": 1,
}


# ============================================================
# HELPER: Convert ObjectId to string for JSON serialization
# ============================================================

def serialize_doc(doc: Any) -> Any:
    """Convert a MongoDB document (or any nested value) to a JSON-serializable value."""
    if doc is None:
        return None
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, dict):
        return {key: serialize_doc(value) for key, value in doc.items()}
    if isinstance(doc, (list, tuple)):
        return [serialize_doc(value) for value in doc]
    return doc


def serialize_docs(docs: Iterable[dict]) -> list:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


def to_object_id(value: Any, field: str = "id") -> ObjectId:
    """Parse an id coming from a request; 400 when malformed."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid {field}")


def is_object_id(value: Any) -> bool:
    return isinstance(value, ObjectId) or (isinstance(value, str) and ObjectId.is_valid(value))


def utcnow() -> datetime:
    """Naive UTC timestamp, the form pymongo returns."""
    return datetime.utcnow()


def build_search_query(
    criteria: Dict[str, Any],
    exact_fields: Iterable[str] = (),
    id_fields: Iterable[str] = ("_id",),
) -> Dict[str, Any]:
    """
    Build a Mongo filter from free-form search criteria.

    Strings match as case-insensitive substrings unless the field is listed in
    exact_fields. Fields in id_fields are converted to ObjectId. Operator keys
    ($where, $expr, ...) are rejected.
    """
    exact_fields = set(exact_fields)
    id_fields = set(id_fields)
    query: Dict[str, Any] = {}

    for key, value in criteria.items():
        if not isinstance(key, str) or key.startswith("$"):
            raise HTTPException(status_code=400, detail=f"Invalid search field: {key}")
        if isinstance(value, dict):
            raise HTTPException(status_code=400, detail=f"Invalid search value for {key}")
        if value is None or value == "":
            continue

        if key in id_fields:
            query[key] = to_object_id(value, key)
        elif isinstance(value, str) and key not in exact_fields:
            query[key] = {"$regex": re.escape(value), "$options": "i"}
        else:
            query[key] = value

    return query


def mark_created(doc: dict) -> dict:
    """Stamp createdAt/updatedAt on a new document."""
    now = utcnow()
    doc.setdefault("createdAt", now)
    doc["updatedAt"] = now
    return doc


class BaseService:
    """Common CRUD plumbing for one collection."""

    collection_key: str = ""
    not_found_message: str = "Not found"

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS[self.collection_key])

    def get_raw(self, doc_id: Any) -> Optional[dict]:
        """Fetch the stored document (ObjectIds intact) or None."""
        return self.collection.find_one({"_id": to_object_id(doc_id)})

    def get_or_404(self, doc_id: Any) -> dict:
        doc = self.get_raw(doc_id)
        if not doc:
            raise HTTPException(status_code=404, detail=self.not_found_message)
        return doc

    def insert(self, doc: dict) -> dict:
        mark_created(doc)
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def update_fields(self, doc_id: Any, fields: dict) -> dict:
        """$set the given fields and return the updated document; 404 if missing."""
        fields = dict(fields)
        fields["updatedAt"] = utcnow()
        result = self.collection.update_one({"_id": to_object_id(doc_id)}, {"$set": fields})
        if result.matched_count == 0:
            raise HTTPException(status_code=404, detail=self.not_found_message)
        return self.get_raw(doc_id)

    def delete(self, doc_id: Any) -> None:
        result = self.collection.delete_one({"_id": to_object_id(doc_id)})
        if result.deleted_count == 0:
            raise HTTPException(status_code=404, detail=self.not_found_message)


# ============================================================
# POPULATE: resolve user/company references into summaries
# ============================================================

def fetch_users_by_ids(ids: Iterable[Any], projection: Optional[dict] = None) -> Dict[ObjectId, dict]:
    """Batch-load users for populating references, keyed by ObjectId."""
    object_ids = list({oid for oid in ids if isinstance(oid, ObjectId)})
    if not object_ids:
        return {}
    users = get_collection(COLLECTIONS["users"])
    cursor = users.find({"_id": {"$in": object_ids}}, projection or USER_SUMMARY_PROJECTION)
    return {user["_id"]: user for user in cursor}


def populate_users(docs: List[dict], *fields: str) -> List[dict]:
    """
    Replace user-id references with user summaries in place.

    A field may hold a single ObjectId or a list of them; unknown ids are kept as-is.
    """
    ids = []
    for doc in docs:
        for field in fields:
            value = doc.get(field)
            if isinstance(value, list):
                ids.extend(value)
            elif value is not None:
                ids.append(value)

    users = fetch_users_by_ids(ids)
    for doc in docs:
        for field in fields:
            value = doc.get(field)
            if isinstance(value, list):
                doc[field] = [users.get(item, item) for item in value]
            elif value is not None:
                doc[field] = users.get(value, value)
    return docs

"""
Archive Service - archived users/documents, restore, purge, export and import.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException

from ojt_monitoring.core.auth import hash_password, looks_like_password_hash
from ojt_monitoring.core.logging_config import logger
from ojt_monitoring.services.document_service import DocumentService
from ojt_monitoring.services.mongo_service import (
    USER_PUBLIC_PROJECTION,
    is_object_id,
    serialize_docs,
    to_object_id,
    utcnow,
)
from ojt_monitoring.services.storage_service import get_storage_service
from ojt_monitoring.services.user_service import ARCHIVE_MARKER, UserService, strip_archive_suffix

USER_DATE_FIELDS = ("createdAt", "updatedAt", "archivedAt", "lastUsernameChangeDate", "metadata.deploymentDate")
USER_ID_FIELDS = ("metadata.company", "metadata.coordinator")
DOCUMENT_DATE_FIELDS = ("createdAt", "updatedAt", "archivedAt", "uploadedAt", "statusUpdatedAt")
DOCUMENT_ID_FIELDS = ("student",)


def _convert_paths(doc: dict, paths: Iterable[str], convert) -> None:
    """Apply convert() to dotted paths that hold strings."""
    for path in paths:
        *parents, leaf = path.split(".")
        target = doc
        for part in parents:
            target = target.get(part) if isinstance(target, dict) else None
        if isinstance(target, dict) and isinstance(target.get(leaf), str):
            target[leaf] = convert(target[leaf])


def _parse_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _restore_types(doc: dict, date_fields: Iterable[str], id_fields: Iterable[str]) -> dict:
    """Undo JSON export: ISO strings back to datetimes, id strings back to ObjectIds."""
    doc = dict(doc)
    if isinstance(doc.get("metadata"), dict):
        doc["metadata"] = dict(doc["metadata"])
    _convert_paths(doc, date_fields, _parse_datetime)
    _convert_paths(doc, id_fields, lambda v: to_object_id(v) if is_object_id(v) else v)
    return doc


class ArchiveService:

    def __init__(self):
        self.users = UserService()
        self.documents = DocumentService()

    # ------------------------------------------------------------
    # Users
    # ------------------------------------------------------------

    def archived_users(self, actor: dict) -> List[dict]:
        query: Dict[str, Any] = {"isArchived": True}
        if actor["role"] == "coordinator":
            query["program"] = actor.get("program")
        users = self.users.collection.find(query, USER_PUBLIC_PROJECTION).sort("archivedAt", -1)
        return serialize_docs(users)

    def _archived_user_or_404(self, actor: dict, user_id: str) -> dict:
        user = self.users.get_or_404(user_id)
        if not user.get("isArchived"):
            raise HTTPException(status_code=400, detail="User is not archived")
        if actor["role"] == "coordinator" and user.get("program") != actor.get("program"):
            raise HTTPException(status_code=403, detail="You can only manage students of your own program")
        return user

    def restore_user(self, actor: dict, user_id: str) -> dict:
        user = self._archived_user_or_404(actor, user_id)
        email = strip_archive_suffix(user.get("email", ""))
        user_name = strip_archive_suffix(user.get("userName", ""))

        if self.users.get_active_by_email(email):
            raise HTTPException(
                status_code=400,
                detail=f"Cannot restore user: email {email} is already used by an active account",
            )
        if self.users.get_active_by_username(user_name):
            raise HTTPException(
                status_code=400,
                detail=f"Cannot restore user: username {user_name} is already taken",
            )

        self.users.collection.update_one(
            {"_id": user["_id"]},
            {
                "$set": {"isArchived": False, "email": email, "userName": user_name, "updatedAt": utcnow()},
                "$unset": {"archivedAt": ""},
            },
        )
        logger.info(f"User {user['_id']} restored by {actor['id']}")
        return self.users.get_user(user["_id"])

    def delete_user(self, actor: dict, user_id: str) -> None:
        user = self._archived_user_or_404(actor, user_id)
        self.users.delete_with_cascade(user["_id"])
        logger.info(f"Archived user {user['_id']} permanently deleted by {actor['id']}")

    # ------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------

    def archived_documents(self, actor: dict) -> List[dict]:
        return self.documents.list_archived(actor)

    def restore_document(self, actor: dict, document_id: str) -> dict:
        return self.documents.restore(actor, document_id)

    async def delete_document(self, actor: dict, document_id: str) -> None:
        document = self.documents.get_or_404(document_id)
        if not document.get("isArchived"):
            raise HTTPException(status_code=400, detail="Document is not archived")
        self.documents.ensure_can_manage_owner(actor, document)
        self.documents.collection.delete_one({"_id": document["_id"]})

        storage = get_storage_service()
        for url in document.get("documents", []):
            await storage.delete_file(url)
        logger.info(f"Archived document {document['_id']} permanently deleted by {actor['id']}")

    # ------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------

    def export_data(self, actor: dict) -> dict:
        """Archived users (password hashes included) and archived documents."""
        user_query: Dict[str, Any] = {"isArchived": True}
        document_query: Dict[str, Any] = {"isArchived": True}
        if actor["role"] == "coordinator":
            user_query["program"] = actor.get("program")
            document_query["student"] = {"$in": self.documents.program_student_ids(actor.get("program"))}
        users = list(self.users.collection.find(user_query))
        documents = list(self.documents.collection.find(document_query))
        return {
            "users": serialize_docs(users),
            "documents": serialize_docs(documents),
            "exportDate": utcnow(),
        }

    def import_data(self, actor: dict, users: List[dict], documents: List[dict]) -> dict:
        """
        Upsert users by email and documents by id. Bad records are reported,
        never fatal. Coordinators may only import students of their own program.
        """
        result = {"usersImported": 0, "documentsImported": 0, "errors": []}

        for raw in users:
            try:
                self._import_user(actor, raw)
                result["usersImported"] += 1
            except (HTTPException, ValueError, KeyError, TypeError) as e:
                detail = e.detail if isinstance(e, HTTPException) else str(e)
                result["errors"].append(f"User {raw.get('email', '?')}: {detail}")

        for raw in documents:
            try:
                self._import_document(actor, raw)
                result["documentsImported"] += 1
            except (HTTPException, ValueError, KeyError, TypeError) as e:
                detail = e.detail if isinstance(e, HTTPException) else str(e)
                result["errors"].append(f"Document {raw.get('documentName', '?')}: {detail}")

        logger.info(
            f"Archive import by {actor['id']}: {result['usersImported']} user(s), "
            f"{result['documentsImported']} document(s), {len(result['errors'])} error(s)"
        )
        return result

    def _check_import_target(self, actor: dict, existing: Optional[dict], doc: dict) -> None:
        """Coordinators may only create or overwrite students of their own program."""
        if actor["role"] == "admin":
            return
        program = actor.get("program")
        current = existing or {"role": "student", "program": program}
        role = doc.get("role", current.get("role"))
        target_program = doc.get("program", current.get("program"))
        if (
            not program
            or current.get("role") != "student"
            or current.get("program") != program
            or role != "student"
            or target_program != program
        ):
            raise HTTPException(status_code=403, detail="You can only import students of your own program")

    def _import_user(self, actor: dict, raw: dict) -> None:
        doc = _restore_types(raw, USER_DATE_FIELDS, USER_ID_FIELDS)
        raw_id = doc.pop("_id", None)
        email = doc.get("email")
        if not email:
            raise ValueError("email is required")

        existing = self.users.collection.find_one({"email": email})
        self._check_import_target(actor, existing, doc)

        password = doc.pop("password", None)
        if password:
            doc["password"] = password if looks_like_password_hash(password) else hash_password(password)

        doc.setdefault("isArchived", ARCHIVE_MARKER in email)
        doc["updatedAt"] = utcnow()

        if existing:
            if actor["role"] != "admin":
                doc.pop("role", None)
                doc.pop("password", None)
            self.users.collection.update_one({"_id": existing["_id"]}, {"$set": doc})
            return

        if not doc.get("password"):
            raise ValueError("password is required for new users")
        if not (doc.get("firstName") and doc.get("lastName")):
            raise ValueError("firstName and lastName are required")
        if raw_id and is_object_id(raw_id) and not self.users.collection.count_documents({"_id": to_object_id(raw_id)}, limit=1):
            doc["_id"] = to_object_id(raw_id)
        doc.setdefault("createdAt", utcnow())
        doc.setdefault("role", "student")
        if actor["role"] != "admin":
            doc.setdefault("program", actor.get("program"))
        self.users.collection.insert_one(doc)

    def _import_document(self, actor: dict, raw: dict) -> None:
        doc = _restore_types(raw, DOCUMENT_DATE_FIELDS, DOCUMENT_ID_FIELDS)
        raw_id = doc.pop("_id", None)
        if not doc.get("documentName") or not doc.get("student"):
            raise ValueError("documentName and student are required")
        if actor["role"] != "admin":
            self.documents.ensure_can_manage_owner(actor, doc)
            if raw_id and is_object_id(raw_id):
                existing = self.documents.collection.find_one({"_id": to_object_id(raw_id)})
                if existing:
                    self.documents.ensure_can_manage_owner(actor, existing)

        doc.setdefault("documents", [])
        doc.setdefault("status", "pending")
        doc.setdefault("isArchived", True)
        doc["updatedAt"] = utcnow()

        if raw_id and is_object_id(raw_id):
            oid = to_object_id(raw_id)
            created_at = doc.pop("createdAt", None) or utcnow()
            self.documents.collection.update_one(
                {"_id": oid}, {"$set": doc, "$setOnInsert": {"createdAt": created_at}}, upsert=True
            )
            return
        doc.setdefault("createdAt", utcnow())
        self.documents.collection.insert_one(doc)

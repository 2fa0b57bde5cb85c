"""
Document Service - student requirement submissions and coordinator review.
"""

import re
from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from ojt_monitoring.core.auth import ensure_can_manage
from ojt_monitoring.core.logging_config import logger
from ojt_monitoring.db.mongodb import COLLECTIONS, get_collection
from ojt_monitoring.services.email_service import get_email_service
from ojt_monitoring.services.mongo_service import (
    BaseService,
    build_search_query,
    populate_users,
    serialize_doc,
    serialize_docs,
    to_object_id,
    utcnow,
)
from ojt_monitoring.services.storage_service import get_storage_service


class DocumentService(BaseService):
    collection_key = "documents"
    not_found_message = "Document not found"

    def _student_or_404(self, student_id: Any) -> dict:
        student = get_collection(COLLECTIONS["users"]).find_one({"_id": to_object_id(student_id, "student id")})
        if not student:
            raise HTTPException(status_code=404, detail="Student not found")
        return student

    def program_student_ids(self, program: Optional[str]) -> list:
        users = get_collection(COLLECTIONS["users"])
        return [u["_id"] for u in users.find({"role": "student", "program": program}, {"_id": 1})]

    def _check_access(self, actor: dict, document: dict) -> None:
        if actor["role"] == "student" and str(document["student"]) != actor["id"]:
            raise HTTPException(status_code=403, detail="You can only access your own documents")

    def ensure_can_manage_owner(self, actor: dict, document: dict) -> dict:
        """Program isolation applied to the student who owns the document."""
        student = self._student_or_404(document["student"])
        ensure_can_manage(actor, student)
        return student

    def create(self, actor: dict, student_id: Optional[str], document_name: str,
               urls: List[str], remarks: Optional[str] = None) -> dict:
        student = self._student_or_404(student_id or actor["id"])
        ensure_can_manage(actor, student)

        doc = {
            "student": student["_id"],
            "documentName": document_name,
            "documents": urls,
            "status": "pending",
            "uploadedAt": utcnow(),
            "isArchived": False,
        }
        if remarks:
            doc["remarks"] = remarks
        return serialize_doc(self.insert(doc))

    def get(self, actor: dict, document_id: str) -> dict:
        document = self.get_or_404(document_id)
        self._check_access(actor, document)
        return serialize_doc(populate_users([document], "student")[0])

    def list(self, actor: dict) -> List[dict]:
        """Active documents; coordinators only see their program's students."""
        query: Dict[str, Any] = {"isArchived": {"$ne": True}}
        if actor["role"] == "coordinator":
            query["student"] = {"$in": self.program_student_ids(actor.get("program"))}
        elif actor["role"] == "student":
            query["student"] = to_object_id(actor["id"])
        docs = list(self.collection.find(query).sort("uploadedAt", -1))
        return serialize_docs(populate_users(docs, "student"))

    def list_for_student(self, actor: dict, student_id: str) -> List[dict]:
        student = self._student_or_404(student_id)
        ensure_can_manage(actor, student)
        docs = self.collection.find({"student": student["_id"], "isArchived": {"$ne": True}}).sort("uploadedAt", -1)
        return serialize_docs(docs)

    async def update(self, actor: dict, document_id: str, fields: dict) -> dict:
        document = self.get_or_404(document_id)
        self._check_access(actor, document)
        if "status" not in fields:
            return serialize_doc(self.update_fields(document["_id"], fields))

        if actor["role"] == "student":
            raise HTTPException(status_code=403, detail="Students cannot change document status")
        student = self.ensure_can_manage_owner(actor, document)
        fields["statusUpdatedAt"] = utcnow()
        updated = self.update_fields(document["_id"], fields)

        if fields["status"] != document.get("status") and fields["status"] in ("approved", "rejected"):
            logger.info(f"Document {document['_id']} {fields['status']} by {actor['id']}")
            await get_email_service().send_document_status_notification(student, updated)
        return serialize_doc(updated)

    def archive(self, actor: dict, document_id: str) -> dict:
        document = self.get_or_404(document_id)
        self._check_access(actor, document)
        return serialize_doc(self.update_fields(document["_id"], {"isArchived": True, "archivedAt": utcnow()}))

    def search(self, criteria: Dict[str, Any]) -> List[dict]:
        """
        Search documents. A free-text `query` matches the document name,
        the status or the owning student's names; other keys match fields.
        """
        criteria = dict(criteria)
        term = criteria.pop("query", None)
        query = build_search_query(criteria, exact_fields=("status",), id_fields=("_id", "student"))
        query.setdefault("isArchived", {"$ne": True})

        if term:
            pattern = {"$regex": re.escape(str(term)), "$options": "i"}
            users = get_collection(COLLECTIONS["users"])
            student_ids = [
                u["_id"] for u in users.find(
                    {"$or": [{"firstName": pattern}, {"lastName": pattern}, {"userName": pattern}]},
                    {"_id": 1},
                )
            ]
            query["$or"] = [
                {"documentName": pattern},
                {"status": pattern},
                {"student": {"$in": student_ids}},
            ]

        docs = list(self.collection.find(query).sort("uploadedAt", -1))
        if not docs:
            raise HTTPException(status_code=404, detail="No documents found")
        return serialize_docs(populate_users(docs, "student"))

    def add_files(self, actor: dict, document_id: str, urls: List[str]) -> dict:
        document = self.get_or_404(document_id)
        self._check_access(actor, document)
        self.collection.update_one(
            {"_id": document["_id"]},
            {"$addToSet": {"documents": {"$each": urls}}, "$set": {"updatedAt": utcnow()}},
        )
        return serialize_doc(self.get_raw(document["_id"]))

    async def remove_files(self, actor: dict, document_id: str, urls: List[str]) -> dict:
        document = self.get_or_404(document_id)
        self._check_access(actor, document)
        self.collection.update_one(
            {"_id": document["_id"]},
            {"$pullAll": {"documents": urls}, "$set": {"updatedAt": utcnow()}},
        )

        storage = get_storage_service()
        for url in set(urls) & set(document.get("documents", [])):
            await storage.delete_file(url)
        return serialize_doc(self.get_raw(document["_id"]))

    # ------------------------------------------------------------
    # Coordinator review
    # ------------------------------------------------------------

    async def _review(self, actor: dict, document_id: str, status: str, remarks: str) -> dict:
        document = self.get_or_404(document_id)
        student = self._student_or_404(document["student"])
        ensure_can_manage(actor, student)

        updated = self.update_fields(document["_id"], {
            "status": status,
            "remarks": remarks,
            "statusUpdatedAt": utcnow(),
        })
        logger.info(f"Document {document['_id']} {status} by {actor['id']}")
        await get_email_service().send_document_status_notification(student, updated)
        return serialize_doc(updated)

    async def approve(self, actor: dict, document_id: str, remarks: Optional[str]) -> dict:
        document = self.get_or_404(document_id)
        if document.get("status") == "approved":
            raise HTTPException(status_code=400, detail="Document is already approved")
        return await self._review(actor, document_id, "approved", remarks or "Document approved")

    async def disapprove(self, actor: dict, document_id: str, remarks: Optional[str]) -> dict:
        if not remarks or not remarks.strip():
            raise HTTPException(status_code=400, detail="Remarks are required when disapproving a document")
        self.get_or_404(document_id)
        return await self._review(actor, document_id, "rejected", remarks.strip())

    # ------------------------------------------------------------
    # Archive
    # ------------------------------------------------------------

    def list_archived(self, actor: dict) -> List[dict]:
        query: Dict[str, Any] = {"isArchived": True}
        if actor["role"] == "coordinator":
            query["student"] = {"$in": self.program_student_ids(actor.get("program"))}
        docs = list(self.collection.find(query).sort("archivedAt", -1))
        return serialize_docs(populate_users(docs, "student"))

    def restore(self, actor: dict, document_id: str) -> dict:
        document = self.get_or_404(document_id)
        if not document.get("isArchived"):
            raise HTTPException(status_code=400, detail="Document is not archived")
        self.ensure_can_manage_owner(actor, document)
        self.collection.update_one(
            {"_id": document["_id"]},
            {"$set": {"isArchived": False, "updatedAt": utcnow()}, "$unset": {"archivedAt": ""}},
        )
        return serialize_doc(self.get_raw(document["_id"]))

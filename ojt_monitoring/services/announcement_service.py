"""
Announcement Service - program-targeted announcements with email notices.
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException

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
)


class AnnouncementService(BaseService):
    collection_key = "announcements"
    not_found_message = "Announcement not found"

    async def create(self, actor: dict, data: dict) -> dict:
        target = data.get("targetProgram")
        if not target:
            target = actor.get("program") if actor["role"] == "coordinator" and actor.get("program") else "all"

        announcement = self.insert({
            "title": data["title"],
            "content": data["content"],
            "createdBy": to_object_id(actor["id"]),
            "targetProgram": target,
        })

        await self._notify_students(announcement, actor)
        return serialize_doc(announcement)

    async def _notify_students(self, announcement: dict, actor: dict) -> None:
        query: Dict[str, Any] = {"role": "student", "isArchived": {"$ne": True}}
        if announcement["targetProgram"] != "all":
            query["program"] = announcement["targetProgram"]

        users = get_collection(COLLECTIONS["users"])
        recipients = [u["email"] for u in users.find(query, {"email": 1}) if u.get("email")]
        author = users.find_one({"_id": announcement["createdBy"]}, {"firstName": 1, "lastName": 1}) or {}
        sent = await get_email_service().send_announcement_notification(announcement, author, recipients)
        if sent:
            logger.info(f"Announcement {announcement['_id']} emailed to {len(recipients)} student(s)")

    def get(self, announcement_id: str) -> dict:
        return serialize_doc(populate_users([self.get_or_404(announcement_id)], "createdBy")[0])

    def list(self, actor: dict, program: Optional[str] = None) -> List[dict]:
        """Announcements for `all` plus the given (or caller's) program."""
        program = program or actor.get("program")
        query: Dict[str, Any] = {}
        if program and program != "all":
            query["targetProgram"] = {"$in": ["all", program]}
        elif actor["role"] != "admin" and program != "all":
            query["targetProgram"] = "all"

        docs = list(self.collection.find(query).sort("createdAt", -1))
        return serialize_docs(populate_users(docs, "createdBy"))

    def _ensure_author(self, actor: dict, announcement: dict) -> None:
        if actor["role"] != "admin" and str(announcement.get("createdBy")) != actor["id"]:
            raise HTTPException(status_code=403, detail="Only the author can modify this announcement")

    def update(self, actor: dict, announcement_id: str, fields: dict) -> dict:
        announcement = self.get_or_404(announcement_id)
        self._ensure_author(actor, announcement)
        return serialize_doc(self.update_fields(announcement["_id"], fields))

    def delete_announcement(self, actor: dict, announcement_id: str) -> None:
        announcement = self.get_or_404(announcement_id)
        self._ensure_author(actor, announcement)
        self.collection.delete_one({"_id": announcement["_id"]})

    def search(self, criteria: Dict[str, Any]) -> List[dict]:
        query = build_search_query(criteria, exact_fields=("targetProgram",), id_fields=("_id", "createdBy"))
        docs = list(self.collection.find(query).sort("createdAt", -1))
        if not docs:
            raise HTTPException(status_code=404, detail="No announcements found")
        return serialize_docs(populate_users(docs, "createdBy"))

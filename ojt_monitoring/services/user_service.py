"""
User Service - accounts, placements (company assignment) and dashboards.

Program isolation: coordinators only manage students of their own program
(see ensure_can_manage in core.auth).
"""

import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from ojt_monitoring.core.auth import ensure_can_manage, hash_password
from ojt_monitoring.core.logging_config import logger
from ojt_monitoring.db.mongodb import COLLECTIONS, get_collection
from ojt_monitoring.services.conversation_service import ConversationService
from ojt_monitoring.services.mongo_service import (
    USER_PUBLIC_PROJECTION,
    BaseService,
    build_search_query,
    fetch_users_by_ids,
    serialize_doc,
    serialize_docs,
    to_object_id,
    utcnow,
)

ARCHIVE_MARKER = ".archived."
USER_EXACT_FIELDS = ("role", "program", "email", "isArchived")


def archived_value(value: str, timestamp_ms: int) -> str:
    return f"{value}{ARCHIVE_MARKER}{timestamp_ms}"


def strip_archive_suffix(value: str) -> str:
    if value and ARCHIVE_MARKER in value:
        return value.split(ARCHIVE_MARKER, 1)[0]
    return value


class UserService(BaseService):
    collection_key = "users"
    not_found_message = "User not found"

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------

    def get_active_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email.lower(), "isArchived": {"$ne": True}})

    def get_active_by_username(self, user_name: str) -> Optional[dict]:
        return self.collection.find_one({"userName": user_name, "isArchived": {"$ne": True}})

    def _populate_placement(self, docs: List[dict]) -> List[dict]:
        """Resolve metadata.company and metadata.coordinator references."""
        company_ids = {(d.get("metadata") or {}).get("company") for d in docs} - {None}
        coordinator_ids = [(d.get("metadata") or {}).get("coordinator") for d in docs]

        companies = {}
        if company_ids:
            cursor = get_collection(COLLECTIONS["companies"]).find(
                {"_id": {"$in": list(company_ids)}},
                {"name": 1, "address": 1, "safeZone": 1, "safeZoneLabel": 1},
            )
            companies = {c["_id"]: c for c in cursor}
        coordinators = fetch_users_by_ids(coordinator_ids)

        for doc in docs:
            metadata = doc.get("metadata")
            if not metadata:
                continue
            if metadata.get("company") in companies:
                metadata["company"] = companies[metadata["company"]]
            if metadata.get("coordinator") in coordinators:
                metadata["coordinator"] = coordinators[metadata["coordinator"]]
        return docs

    def get_user(self, user_id: str) -> dict:
        """Public user document with placement populated; 404 if missing."""
        user = self.collection.find_one({"_id": to_object_id(user_id)}, USER_PUBLIC_PROJECTION)
        if not user:
            raise HTTPException(status_code=404, detail=self.not_found_message)
        return serialize_doc(self._populate_placement([user])[0])

    def list_users(self, actor: dict, role: Optional[str] = None, program: Optional[str] = None) -> List[dict]:
        """Active users; coordinators see admins plus their own program."""
        query: Dict[str, Any] = {"isArchived": {"$ne": True}}
        if role:
            query["role"] = role
        if program:
            query["program"] = program
        if actor["role"] == "coordinator":
            query["$or"] = [{"role": "admin"}, {"program": actor.get("program")}]

        users = list(self.collection.find(query, USER_PUBLIC_PROJECTION).sort("createdAt", -1))
        return serialize_docs(self._populate_placement(users))

    def search(self, criteria: Dict[str, Any]) -> List[dict]:
        query = build_search_query(criteria, exact_fields=USER_EXACT_FIELDS)
        query.setdefault("isArchived", {"$ne": True})
        users = list(self.collection.find(query, USER_PUBLIC_PROJECTION))
        if not users:
            raise HTTPException(status_code=404, detail="No users found")
        return serialize_docs(self._populate_placement(users))

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------

    def _ensure_unique(self, email: Optional[str], user_name: Optional[str], exclude_id=None) -> None:
        if email:
            existing = self.get_active_by_email(email)
            if existing and existing["_id"] != exclude_id:
                raise HTTPException(status_code=400, detail="User with this email already exists")
        if user_name:
            existing = self.get_active_by_username(user_name)
            if existing and existing["_id"] != exclude_id:
                raise HTTPException(status_code=400, detail="Username is already taken")

    def insert_user(self, data: dict) -> dict:
        """
        Validate uniqueness, hash the password and store a new user.

        Args:
            data: camelCase fields (firstName, lastName, email, userName, password, role, program...)

        Returns:
            The stored document (ObjectIds intact, password hash included)
        """
        data = dict(data)
        data["email"] = data["email"].lower()
        data["userName"] = data.get("userName") or data["email"]
        self._ensure_unique(data["email"], data["userName"])

        data["password"] = hash_password(data["password"])
        data.setdefault("role", "student")
        data.setdefault("metadata", {"status": "scheduled"})
        data["isArchived"] = False
        return self.insert(data)

    async def create_user(self, actor: dict, data: dict) -> dict:
        """Staff-created account. Coordinators may only create students of their program."""
        if actor["role"] == "coordinator":
            if data.get("role", "student") != "student":
                raise HTTPException(status_code=403, detail="Coordinators can only create student accounts")
            data.setdefault("program", actor.get("program"))
            if data.get("program") != actor.get("program"):
                raise HTTPException(status_code=403, detail="You can only manage students of your own program")

        user = self.insert_user(data)
        await ConversationService().join_program_group(user)
        logger.info(f"User {user['_id']} created by {actor['id']}")
        return self.get_user(user["_id"])

    async def update_user(self, actor: dict, user_id: str, fields: dict) -> dict:
        target = self.get_or_404(user_id)
        ensure_can_manage(actor, target)

        if "role" in fields and fields["role"] != target.get("role") and actor["role"] != "admin":
            raise HTTPException(status_code=403, detail="Only admins can change user roles")
        if (
            "program" in fields
            and actor["role"] == "coordinator"
            and actor["id"] != str(target["_id"])
            and fields["program"] != actor.get("program")
        ):
            raise HTTPException(status_code=403, detail="You can only manage students of your own program")

        if fields.get("email"):
            fields["email"] = fields["email"].lower()
        self._ensure_unique(fields.get("email"), fields.get("userName"), exclude_id=target["_id"])

        if fields.get("password"):
            fields["password"] = hash_password(fields["password"])
        if fields.get("userName") and fields["userName"] != target.get("userName"):
            fields["lastUsernameChangeDate"] = utcnow()

        updated = self.update_fields(target["_id"], fields)
        if fields.get("program") and fields["program"] != target.get("program"):
            await ConversationService().join_program_group(updated)
        return self.get_user(target["_id"])

    def set_avatar(self, actor: dict, user_id: str, url: str) -> dict:
        target = self.get_or_404(user_id)
        ensure_can_manage(actor, target)
        self.update_fields(target["_id"], {"avatar": url})
        return self.get_user(target["_id"])

    def archive_user(self, actor: dict, user_id: str) -> dict:
        """Soft delete; email and userName are mangled so they can be reused."""
        target = self.get_or_404(user_id)
        ensure_can_manage(actor, target)
        if target.get("isArchived"):
            raise HTTPException(status_code=400, detail="User is already archived")

        stamp = int(time.time() * 1000)
        self.update_fields(target["_id"], {
            "isArchived": True,
            "archivedAt": utcnow(),
            "email": archived_value(target["email"], stamp),
            "userName": archived_value(target.get("userName", ""), stamp),
        })
        logger.info(f"User {target['_id']} archived by {actor['id']}")
        return serialize_doc(self.collection.find_one({"_id": target["_id"]}, USER_PUBLIC_PROJECTION))

    def permanent_delete(self, actor: dict, user_id: str) -> None:
        """Hard delete with cascade to owned records and memberships."""
        target = self.get_or_404(user_id)
        if actor["role"] != "admin" and actor["id"] != str(target["_id"]):
            raise HTTPException(status_code=403, detail="You can only delete your own account")
        self.delete_with_cascade(target["_id"])
        logger.info(f"User {target['_id']} permanently deleted by {actor['id']}")

    def delete_with_cascade(self, user_oid) -> None:
        get_collection(COLLECTIONS["documents"]).delete_many({"student": user_oid})
        get_collection(COLLECTIONS["dtr"]).delete_many({"user": user_oid})
        get_collection(COLLECTIONS["tasks"]).update_many(
            {"assignedTo": user_oid},
            {"$pull": {"assignedTo": user_oid, "submissions": {"student": user_oid}}},
        )
        get_collection(COLLECTIONS["conversations"]).update_many(
            {"participants": user_oid},
            {"$pull": {"participants": user_oid, "admins": user_oid}},
        )
        self.collection.delete_one({"_id": user_oid})

    # ------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------

    def assign_company(
        self,
        actor: dict,
        user_id: str,
        company_id: str,
        coordinator_id: str,
        deployment_date: Optional[datetime] = None,
        status: str = "scheduled",
    ) -> dict:
        student = self.get_or_404(user_id)
        if student.get("role") != "student":
            raise HTTPException(status_code=400, detail="Only students can be assigned to a company")
        ensure_can_manage(actor, student)
        if (student.get("metadata") or {}).get("company"):
            raise HTTPException(status_code=400, detail="Student is already assigned to a company")

        company_oid = to_object_id(company_id, "company id")
        if not get_collection(COLLECTIONS["companies"]).count_documents({"_id": company_oid}, limit=1):
            raise HTTPException(status_code=404, detail="Company not found")

        coordinator = self.collection.find_one({"_id": to_object_id(coordinator_id, "coordinator id")})
        if not coordinator or coordinator.get("role") not in ("coordinator", "admin"):
            raise HTTPException(status_code=404, detail="Coordinator not found")

        self.update_fields(student["_id"], {
            "metadata": {
                "company": company_oid,
                "coordinator": coordinator["_id"],
                "deploymentDate": deployment_date or utcnow(),
                "status": status or "scheduled",
            }
        })
        logger.info(f"Student {student['_id']} assigned to company {company_oid}")
        return self.get_user(student["_id"])

    def unassign_company(self, actor: dict, user_id: str) -> dict:
        student = self.get_or_404(user_id)
        ensure_can_manage(actor, student)
        status = (student.get("metadata") or {}).get("status", "scheduled")
        self.update_fields(student["_id"], {"metadata": {"status": status}})
        return self.get_user(student["_id"])

    def update_deployment_status(self, actor: dict, user_id: str, status: str) -> dict:
        student = self.get_or_404(user_id)
        ensure_can_manage(actor, student)
        if not (student.get("metadata") or {}).get("company"):
            raise HTTPException(status_code=400, detail="Student is not assigned to a company")
        self.update_fields(student["_id"], {"metadata.status": status})
        return self.get_user(student["_id"])

    def update_location(self, user_id: str, lat: float, lng: float) -> dict:
        location = {"lat": lat, "lng": lng, "timestamp": utcnow()}
        self.update_fields(user_id, {"latestLocation": location})
        return serialize_doc(location)

    def students_of_company(self, company_id: str) -> List[dict]:
        """Assigned students with their latest known location (live tracking)."""
        students = self.collection.find(
            {
                "metadata.company": to_object_id(company_id, "company id"),
                "role": "student",
                "isArchived": {"$ne": True},
            },
            {
                "firstName": 1, "lastName": 1, "userName": 1, "email": 1,
                "program": 1, "avatar": 1, "latestLocation": 1, "metadata": 1,
            },
        )
        return serialize_docs(students)

    # ------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------

    def dashboard(self, user_id: str, role: str) -> dict:
        """Role-specific counters for the dashboard cards."""
        user = self.collection.find_one({"_id": to_object_id(user_id)})
        if not user or user.get("role") != role:
            raise HTTPException(status_code=404, detail="User not found")

        announcements = get_collection(COLLECTIONS["announcements"])
        active_students = {"role": "student", "isArchived": {"$ne": True}}

        if role == "student":
            program_filter = {"targetProgram": {"$in": ["all", user.get("program")]}}
            return {
                "userRole": role,
                "totalAnnouncements": announcements.count_documents(program_filter),
                "totalTasks": get_collection(COLLECTIONS["tasks"]).count_documents({"assignedTo": user["_id"]}),
                "totalDocuments": get_collection(COLLECTIONS["documents"]).count_documents(
                    {"student": user["_id"], "isArchived": {"$ne": True}}
                ),
            }

        if role == "coordinator":
            handled = dict(active_students)
            if user.get("program"):
                handled["program"] = user["program"]
            else:
                handled["metadata.coordinator"] = user["_id"]
            companies = {
                s["metadata"]["company"]
                for s in self.collection.find(handled, {"metadata.company": 1})
                if (s.get("metadata") or {}).get("company")
            }
            return {
                "userRole": role,
                "totalAnnouncements": announcements.count_documents({"createdBy": user["_id"]}),
                "totalStudentsHandled": self.collection.count_documents(handled),
                "bsitStudents": self.collection.count_documents({**handled, "program": "bsit"})
                if handled.get("program") in (None, "bsit") else 0,
                "bsbaStudents": self.collection.count_documents({**handled, "program": "bsba"})
                if handled.get("program") in (None, "bsba") else 0,
                "companiesWithStudents": len(companies),
            }

        return {
            "userRole": role,
            "totalStudents": self.collection.count_documents(active_students),
            "bsitStudents": self.collection.count_documents({**active_students, "program": "bsit"}),
            "bsbaStudents": self.collection.count_documents({**active_students, "program": "bsba"}),
            "totalCoordinators": self.collection.count_documents({"role": "coordinator", "isArchived": {"$ne": True}}),
            "totalCompanies": get_collection(COLLECTIONS["companies"]).count_documents({}),
        }

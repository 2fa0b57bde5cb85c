"""
Company Service - host companies and their geofenced safe zones.
"""

from typing import Any, Dict, List

from fastapi import HTTPException

from ojt_monitoring.core.logging_config import logger
from ojt_monitoring.db.mongodb import COLLECTIONS, get_collection
from ojt_monitoring.services.mongo_service import (
    BaseService,
    build_search_query,
    serialize_doc,
    serialize_docs,
    utcnow,
)


class CompanyService(BaseService):
    collection_key = "companies"
    not_found_message = "Company not found"

    def _ensure_unique_contact(self, contact_person: str, exclude_id=None) -> None:
        existing = self.collection.find_one({"contactPerson": contact_person})
        if existing and existing["_id"] != exclude_id:
            raise HTTPException(status_code=400, detail="A company with this contact person already exists")

    def create(self, data: dict) -> dict:
        self._ensure_unique_contact(data["contactPerson"])
        if data.get("contactEmail"):
            data["contactEmail"] = data["contactEmail"].lower()
        return serialize_doc(self.insert(data))

    def get(self, company_id: str) -> dict:
        return serialize_doc(self.get_or_404(company_id))

    def list(self) -> List[dict]:
        return serialize_docs(self.collection.find().sort("name", 1))

    def update(self, company_id: str, fields: dict) -> dict:
        company = self.get_or_404(company_id)
        if fields.get("contactPerson"):
            self._ensure_unique_contact(fields["contactPerson"], exclude_id=company["_id"])

        unset = {}
        # An explicit null removes the safe zone (disables geofencing)
        if "safeZone" in fields and fields["safeZone"] is None:
            fields.pop("safeZone")
            unset["safeZone"] = ""

        fields["updatedAt"] = utcnow()
        update: Dict[str, Any] = {"$set": fields}
        if unset:
            update["$unset"] = unset
        self.collection.update_one({"_id": company["_id"]}, update)
        return serialize_doc(self.get_raw(company["_id"]))

    def delete_company(self, company_id: str) -> None:
        """Delete a company and release the students placed there."""
        company = self.get_or_404(company_id)
        users = get_collection(COLLECTIONS["users"])
        released = users.update_many(
            {"metadata.company": company["_id"]},
            {
                "$unset": {"metadata.company": "", "metadata.coordinator": "", "metadata.deploymentDate": ""},
                "$set": {"updatedAt": utcnow()},
            },
        )
        self.collection.delete_one({"_id": company["_id"]})
        logger.info(f"Company {company['_id']} deleted; {released.modified_count} student(s) unassigned")

    def search(self, criteria: Dict[str, Any]) -> List[dict]:
        query = build_search_query(criteria, exact_fields=("contactEmail",))
        companies = list(self.collection.find(query).sort("name", 1))
        if not companies:
            raise HTTPException(status_code=404, detail="No companies found")
        return serialize_docs(companies)


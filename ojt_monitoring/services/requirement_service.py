"""
Requirement Service - documents each program asks students to submit.
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from ojt_monitoring.services.mongo_service import BaseService, build_search_query, serialize_doc, serialize_docs


class RequirementService(BaseService):
    collection_key = "requirements"
    not_found_message = "Requirement not found"

    def create(self, data: dict) -> dict:
        return serialize_doc(self.insert({"name": data["name"], "program": data["program"]}))

    def get(self, requirement_id: str) -> dict:
        return serialize_doc(self.get_or_404(requirement_id))

    def list(self, program: Optional[str] = None) -> List[dict]:
        query = {"program": program} if program else {}
        return serialize_docs(self.collection.find(query).sort("name", 1))

    def update(self, requirement_id: str, fields: dict) -> dict:
        return serialize_doc(self.update_fields(requirement_id, fields))

    def search(self, criteria: Dict[str, Any]) -> List[dict]:
        docs = list(self.collection.find(build_search_query(criteria, exact_fields=("program",))))
        if not docs:
            raise HTTPException(status_code=404, detail="No requirements found")
        return serialize_docs(docs)

"""
Task Service - coordinator tasks and per-student submissions.
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from ojt_monitoring.services.mongo_service import (
    BaseService,
    build_search_query,
    populate_users,
    serialize_doc,
    serialize_docs,
    to_object_id,
    utcnow,
)


class TaskService(BaseService):
    collection_key = "tasks"
    not_found_message = "Task not found"

    def _populate(self, tasks: List[dict]) -> List[dict]:
        populate_users(tasks, "createdBy", "assignedTo")
        for task in tasks:
            populate_users(task.get("submissions", []), "student")
        return tasks

    def create(self, actor: dict, data: dict, attachment_urls: List[str]) -> dict:
        task = {
            "title": data["title"],
            "description": data["description"],
            "dueDate": data.get("dueDate"),
            "createdBy": to_object_id(actor["id"]),
            "assignedTo": [to_object_id(s, "student id") for s in data.get("assignedTo", [])],
            "status": "pending",
            "submissionProofUrl": attachment_urls,
            "submissions": [],
        }
        return serialize_doc(self.insert(task))

    def get(self, task_id: str) -> dict:
        return serialize_doc(self._populate([self.get_or_404(task_id)])[0])

    def list(self, actor: dict) -> List[dict]:
        query: Dict[str, Any] = {}
        if actor["role"] == "student":
            query["assignedTo"] = to_object_id(actor["id"])
        tasks = list(self.collection.find(query).sort("createdAt", -1))
        return serialize_docs(self._populate(tasks))

    def list_for_student(self, student_id: str) -> List[dict]:
        tasks = list(self.collection.find({"assignedTo": to_object_id(student_id, "student id")}).sort("createdAt", -1))
        return serialize_docs(self._populate(tasks))

    def update(self, actor: dict, task_id: str, fields: dict) -> dict:
        task = self.get_or_404(task_id)
        self._ensure_owner(actor, task)
        if "assignedTo" in fields:
            fields["assignedTo"] = [to_object_id(s, "student id") for s in fields["assignedTo"] or []]
        return serialize_doc(self.update_fields(task["_id"], fields))

    def delete_task(self, actor: dict, task_id: str) -> None:
        task = self.get_or_404(task_id)
        self._ensure_owner(actor, task)
        self.collection.delete_one({"_id": task["_id"]})

    def _ensure_owner(self, actor: dict, task: dict) -> None:
        if actor["role"] == "admin" or str(task.get("createdBy")) == actor["id"]:
            return
        raise HTTPException(status_code=403, detail="Only the task creator can modify this task")

    def search(self, criteria: Dict[str, Any]) -> List[dict]:
        query = build_search_query(criteria, exact_fields=("status",), id_fields=("_id", "createdBy", "assignedTo"))
        tasks = list(self.collection.find(query).sort("createdAt", -1))
        if not tasks:
            raise HTTPException(status_code=404, detail="No tasks found")
        return serialize_docs(self._populate(tasks))

    def add_files(self, actor: dict, task_id: str, urls: List[str]) -> dict:
        """
        Students add files to their own submission entry (created on first
        upload). Anyone else attaches files to the task itself.
        """
        task = self.get_or_404(task_id)
        now = utcnow()

        if actor["role"] == "student":
            student_id = to_object_id(actor["id"])
            if student_id not in task.get("assignedTo", []):
                raise HTTPException(status_code=403, detail="This task is not assigned to you")

            result = self.collection.update_one(
                {"_id": task["_id"], "submissions.student": student_id},
                {
                    "$push": {"submissions.$.files": {"$each": urls}},
                    "$set": {"submissions.$.submittedAt": now, "updatedAt": now},
                },
            )
            if result.matched_count == 0:
                self.collection.update_one(
                    {"_id": task["_id"]},
                    {
                        "$push": {"submissions": {"student": student_id, "files": urls, "submittedAt": now}},
                        "$set": {"updatedAt": now},
                    },
                )
        else:
            self.collection.update_one(
                {"_id": task["_id"]},
                {"$push": {"submissionProofUrl": {"$each": urls}}, "$set": {"updatedAt": now}},
            )

        return self.get(task["_id"])

    def remove_files(self, actor: dict, task_id: str, urls: List[str], student_id: Optional[str] = None) -> dict:
        task = self.get_or_404(task_id)
        now = utcnow()

        # students only ever touch their own submission
        if actor["role"] == "student":
            student_id = actor["id"]

        if student_id:
            self.collection.update_one(
                {"_id": task["_id"], "submissions.student": to_object_id(student_id, "student id")},
                {"$pullAll": {"submissions.$.files": urls}, "$set": {"updatedAt": now}},
            )
        else:
            self.collection.update_one(
                {"_id": task["_id"]},
                {"$pullAll": {"submissionProofUrl": urls}, "$set": {"updatedAt": now}},
            )

        return self.get(task["_id"])

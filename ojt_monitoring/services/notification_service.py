"""
Notification Service - builds the notification bell feed on demand.

Nothing is stored: the feed is derived from unread direct messages, recently
reviewed documents and recently created tasks.
"""

from datetime import timedelta
from typing import List

from ojt_monitoring.db.mongodb import COLLECTIONS, get_collection
from ojt_monitoring.services.mongo_service import fetch_users_by_ids, serialize_docs, to_object_id, utcnow

MESSAGE_LIMIT = 10
DOCUMENT_LIMIT = 10
TASK_LIMIT = 5
DOCUMENT_WINDOW = timedelta(days=7)
TASK_WINDOW = timedelta(days=3)


def _name(user: dict) -> str:
    return f"{user.get('firstName', '')} {user.get('lastName', '')}".strip() or "Someone"


class NotificationService:

    def __init__(self):
        self.messages = get_collection(COLLECTIONS["messages"])
        self.documents = get_collection(COLLECTIONS["documents"])
        self.tasks = get_collection(COLLECTIONS["tasks"])

    def for_user(self, actor: dict) -> List[dict]:
        user_oid = to_object_id(actor["id"])
        now = utcnow()
        notifications = self._unread_messages(user_oid)

        if actor["role"] == "student":
            notifications += self._document_updates(user_oid, now - DOCUMENT_WINDOW)
            task_query = {"assignedTo": user_oid}
        else:
            task_query = {"createdBy": user_oid}
        task_query["createdAt"] = {"$gte": now - TASK_WINDOW}
        notifications += self._new_tasks(task_query)

        notifications.sort(key=lambda n: n["createdAt"], reverse=True)
        return serialize_docs(notifications)

    def _unread_messages(self, user_oid) -> List[dict]:
        messages = list(
            self.messages.find({"receiver": user_oid, "isRead": False})
            .sort("sentAt", -1)
            .limit(MESSAGE_LIMIT)
        )
        senders = fetch_users_by_ids(m["sender"] for m in messages)
        return [
            {
                "_id": m["_id"],
                "type": "message",
                "title": f"New message from {_name(senders.get(m['sender'], {}))}",
                "message": m.get("content") or "Sent an image",
                "createdAt": m["sentAt"],
                "isRead": False,
                "link": "/messages",
            }
            for m in messages
        ]

    def _document_updates(self, user_oid, since) -> List[dict]:
        documents = (
            self.documents.find({
                "student": user_oid,
                "status": {"$in": ["approved", "rejected"]},
                "statusUpdatedAt": {"$gte": since},
            })
            .sort("statusUpdatedAt", -1)
            .limit(DOCUMENT_LIMIT)
        )
        return [
            {
                "_id": d["_id"],
                "type": "document",
                "title": f"Document {d['status']}",
                "message": f"Your document \"{d.get('documentName', '')}\" was {d['status']}"
                           + (f": {d['remarks']}" if d.get("remarks") else ""),
                "createdAt": d["statusUpdatedAt"],
                "isRead": False,
                "link": "/documents",
            }
            for d in documents
        ]

    def _new_tasks(self, query: dict) -> List[dict]:
        tasks = self.tasks.find(query).sort("createdAt", -1).limit(TASK_LIMIT)
        return [
            {
                "_id": t["_id"],
                "type": "task",
                "title": "New task",
                "message": t.get("title", ""),
                "createdAt": t["createdAt"],
                "isRead": False,
                "link": "/tasks",
            }
            for t in tasks
        ]

"""
Conversation Service - group chats and program group membership.

Direct chats have no conversation document: a direct message simply targets
a user. Group chats are conversation documents whose id doubles as the
Socket.IO room name.
"""

from typing import List, Optional

from bson import ObjectId
from fastapi import HTTPException

from ojt_monitoring.core.logging_config import logger
from ojt_monitoring.db.mongodb import COLLECTIONS, get_collection
from ojt_monitoring.services import realtime_service
from ojt_monitoring.services.mongo_service import (
    BaseService,
    populate_users,
    serialize_doc,
    serialize_docs,
    to_object_id,
    utcnow,
)


def program_group_name(program: str) -> str:
    return f"{program.upper()} Group Chat"


class ConversationService(BaseService):
    collection_key = "conversations"
    not_found_message = "Conversation not found"

    def create_group(self, creator: dict, data: dict) -> dict:
        """
        Create a group conversation. The creator is always a participant and an admin.
        """
        creator_id = to_object_id(creator["id"], "user id")
        participants = [to_object_id(p, "participant id") for p in data.get("participants", [])]
        admins = [to_object_id(a, "admin id") for a in data.get("admins", [])]

        for members in (participants, admins):
            if creator_id not in members:
                members.append(creator_id)

        doc = {
            "name": data["name"],
            "type": "group",
            "participants": list(dict.fromkeys(participants)),
            "admins": list(dict.fromkeys(admins)),
            "program": data.get("program"),
        }
        return serialize_doc(self.insert(doc))

    def list_for_user(self, user_id: str) -> List[dict]:
        """Conversations the user belongs to, most recently active first."""
        docs = list(
            self.collection.find({"participants": to_object_id(user_id)}).sort("updatedAt", -1)
        )
        populate_users(docs, "participants")

        last_ids = [d["lastMessage"] for d in docs if isinstance(d.get("lastMessage"), ObjectId)]
        if last_ids:
            messages = get_collection(COLLECTIONS["messages"])
            by_id = {m["_id"]: m for m in messages.find({"_id": {"$in": last_ids}})}
            for doc in docs:
                doc["lastMessage"] = by_id.get(doc.get("lastMessage"), doc.get("lastMessage"))

        return serialize_docs(docs)

    async def add_member(self, conversation_id: str, user_id: str, actor: dict) -> dict:
        conversation = self.get_or_404(conversation_id)
        if conversation.get("type") != "group":
            raise HTTPException(status_code=400, detail="Members can only be added to group conversations")

        actor_id = to_object_id(actor["id"])
        if actor["role"] not in ("admin", "coordinator") and actor_id not in conversation.get("admins", []):
            raise HTTPException(status_code=403, detail="Only group admins can add members")

        member_id = to_object_id(user_id, "user id")
        if not get_collection(COLLECTIONS["users"]).count_documents({"_id": member_id}, limit=1):
            raise HTTPException(status_code=404, detail="User not found")

        self.collection.update_one(
            {"_id": conversation["_id"]},
            {"$addToSet": {"participants": member_id}, "$set": {"updatedAt": utcnow()}},
        )
        await realtime_service.add_user_to_room(str(member_id), str(conversation["_id"]))
        return serialize_doc(self.get_raw(conversation["_id"]))

    def is_participant(self, conversation: dict, user_id: str) -> bool:
        return to_object_id(user_id) in conversation.get("participants", [])

    # ------------------------------------------------------------
    # Program group chats
    # ------------------------------------------------------------

    def get_program_group(self, program: str) -> Optional[dict]:
        return self.collection.find_one({"type": "group", "program": program})

    def create_program_group(self, program: str, admin_id: ObjectId) -> dict:
        """Create the program group with a welcome message from its first admin."""
        name = program_group_name(program)
        conversation = self.insert({
            "name": name,
            "type": "group",
            "participants": [admin_id],
            "admins": [admin_id],
            "program": program,
        })

        now = utcnow()
        welcome = {
            "sender": admin_id,
            "receiver": conversation["_id"],
            "receiverModel": "Conversation",
            "content": f"Welcome to the {name}!",
            "isRead": False,
            "sentAt": now,
            "createdAt": now,
            "updatedAt": now,
        }
        result = get_collection(COLLECTIONS["messages"]).insert_one(welcome)
        self.collection.update_one({"_id": conversation["_id"]}, {"$set": {"lastMessage": result.inserted_id}})

        logger.info(f"Created program group chat '{name}'")
        return conversation

    async def join_program_group(self, user: dict) -> Optional[dict]:
        """
        Add a user to their program's group chat, creating it when missing.

        Failures are logged and swallowed so they never block account changes.
        """
        program = user.get("program")
        if not program or user.get("role") not in ("student", "coordinator"):
            return None

        try:
            group = self.get_program_group(program)
            if not group:
                group = self.create_program_group(program, user["_id"])
            else:
                self.collection.update_one(
                    {"_id": group["_id"]},
                    {"$addToSet": {"participants": user["_id"]}, "$set": {"updatedAt": utcnow()}},
                )
            await realtime_service.add_user_to_room(str(user["_id"]), str(group["_id"]))
            return group
        except Exception as e:
            logger.error(f"Failed to add user {user.get('_id')} to {program} group chat: {e}")
            return None

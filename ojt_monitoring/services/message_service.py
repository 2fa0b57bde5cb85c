"""
Message Service - direct and group chat with real-time delivery.

Every write is persisted first and then broadcast over Socket.IO:

    newMessage / messageSent         - on send (receiver room / sender room)
    messageViewed / messageSeen      - on single fetch
    messageUpdated / messageDeleted  - on edit / delete (both rooms)
    messageRead                      - to the sender when a message is read
    conversationRead(+ByPeer)        - when a whole chat is marked read
    allMessagesRead                  - when every direct message is marked read
    messagesFetched / messageSearched

A direct message has receiverModel "User" and targets the peer's room; a
group message has receiverModel "Conversation" and targets the group's room.
"""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import HTTPException

from ojt_monitoring.core.logging_config import logger
from ojt_monitoring.db.mongodb import COLLECTIONS, get_collection
from ojt_monitoring.services import realtime_service
from ojt_monitoring.services.conversation_service import ConversationService
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

USER_MODEL = "User"
CONVERSATION_MODEL = "Conversation"


class MessageService(BaseService):
    collection_key = "messages"
    not_found_message = "Message not found"

    def __init__(self):
        super().__init__()
        self.conversations = get_collection(COLLECTIONS["conversations"])
        self.users = get_collection(COLLECTIONS["users"])

    def _conversation_ids_for(self, user_oid: ObjectId) -> List[ObjectId]:
        return [c["_id"] for c in self.conversations.find({"participants": user_oid}, {"_id": 1})]

    def _visibility_filter(self, user_oid: ObjectId) -> Dict[str, Any]:
        return {"$or": [
            {"sender": user_oid},
            {"receiver": user_oid},
            {"receiver": {"$in": self._conversation_ids_for(user_oid)}, "receiverModel": CONVERSATION_MODEL},
        ]}

    def _ensure_visible(self, message: dict, user_oid: ObjectId) -> None:
        if message["sender"] == user_oid or message["receiver"] == user_oid:
            return
        if message.get("receiverModel") == CONVERSATION_MODEL and self.conversations.count_documents(
            {"_id": message["receiver"], "participants": user_oid}, limit=1
        ):
            return
        raise HTTPException(status_code=403, detail="You do not have access to this message")

    def _populate(self, messages: List[dict]) -> List[dict]:
        return populate_users(messages, "sender", "receiver")

    # ------------------------------------------------------------
    # Send
    # ------------------------------------------------------------

    async def send(self, actor: dict, data: dict) -> dict:
        sender_oid = to_object_id(actor["id"])
        receiver_oid = to_object_id(data["receiver"], "receiver id")

        conversation = self.conversations.find_one({"_id": receiver_oid})
        receiver_model = data.get("receiverModel") or (CONVERSATION_MODEL if conversation else USER_MODEL)

        receiver_user = None
        if receiver_model == CONVERSATION_MODEL:
            if not conversation:
                raise HTTPException(status_code=404, detail="Conversation not found")
            if sender_oid not in conversation.get("participants", []):
                raise HTTPException(status_code=403, detail="You are not a member of this conversation")
        else:
            receiver_user = self.users.find_one({"_id": receiver_oid})
            if not receiver_user:
                raise HTTPException(status_code=404, detail="Receiver not found")

        now = utcnow()
        message = {
            "sender": sender_oid,
            "receiver": receiver_oid,
            "receiverModel": receiver_model,
            "isRead": False,
            "sentAt": now,
        }
        if data.get("content"):
            message["content"] = data["content"]
        if data.get("image"):
            message["image"] = data["image"]
        self.insert(message)

        if conversation:
            self.conversations.update_one(
                {"_id": conversation["_id"]},
                {"$set": {"lastMessage": message["_id"], "updatedAt": now}},
            )

        populated = self._populate([dict(message)])[0]
        await realtime_service.emit("newMessage", populated, [receiver_oid])
        await realtime_service.emit("messageSent", populated, [sender_oid])

        await self._notify_by_email(message, receiver_user, conversation)
        return serialize_doc(populated)

    async def _notify_by_email(self, message: dict, receiver_user: Optional[dict], conversation: Optional[dict]) -> None:
        """Coordinators' messages to their students are also emailed."""
        sender = self.users.find_one({"_id": message["sender"]})
        if not sender or sender.get("role") != "coordinator":
            return

        email_service = get_email_service()
        if receiver_user is not None:
            if receiver_user.get("role") == "student" and receiver_user.get("program") == sender.get("program"):
                await email_service.send_message_notification(sender, receiver_user, message)
            return

        others = [p for p in conversation.get("participants", []) if p != sender["_id"]]
        recipients = [
            u["email"] for u in self.users.find(
                {"_id": {"$in": others}, "role": "student", "isArchived": {"$ne": True}}, {"email": 1}
            )
        ]
        await email_service.send_group_message_notification(sender, conversation, message, recipients)

    # ------------------------------------------------------------
    # Read
    # ------------------------------------------------------------

    async def list_for_user(self, actor: dict) -> List[dict]:
        user_oid = to_object_id(actor["id"])
        messages = list(self.collection.find(self._visibility_filter(user_oid)).sort("sentAt", 1))
        messages = self._populate(messages)
        await realtime_service.emit("messagesFetched", messages, [user_oid])
        return serialize_docs(messages)

    async def get(self, actor: dict, message_id: str) -> dict:
        user_oid = to_object_id(actor["id"])
        message = self.get_or_404(message_id)
        self._ensure_visible(message, user_oid)

        sender_oid, receiver_oid = message["sender"], message["receiver"]
        populated = self._populate([message])[0]

        await realtime_service.emit("messageViewed", populated, [user_oid])
        if receiver_oid == user_oid:
            await realtime_service.emit(
                "messageSeen", {"messageId": message["_id"], "viewerId": user_oid}, [sender_oid]
            )
        return serialize_doc(populated)

    async def search(self, actor: dict, criteria: Dict[str, Any]) -> dict:
        user_oid = to_object_id(actor["id"])
        query = build_search_query(
            criteria, exact_fields=("receiverModel", "isRead"), id_fields=("_id", "sender", "receiver")
        )
        message = self.collection.find_one({"$and": [query, self._visibility_filter(user_oid)]})
        if not message:
            raise HTTPException(status_code=404, detail="No messages found")
        populated = self._populate([message])[0]
        await realtime_service.emit("messageSearched", populated, [user_oid])
        return serialize_doc(populated)

    # ------------------------------------------------------------
    # Edit / delete (sender only)
    # ------------------------------------------------------------

    def _own_message(self, actor: dict, message_id: str) -> dict:
        message = self.get_or_404(message_id)
        if str(message["sender"]) != actor["id"]:
            raise HTTPException(status_code=403, detail="You can only modify your own messages")
        return message

    async def update(self, actor: dict, message_id: str, content: str) -> dict:
        message = self._own_message(actor, message_id)
        updated = self.update_fields(message["_id"], {"content": content, "isEdited": True})
        populated = self._populate([updated])[0]
        await realtime_service.emit("messageUpdated", populated, [message["receiver"], message["sender"]])
        return serialize_doc(populated)

    async def delete_message(self, actor: dict, message_id: str) -> None:
        message = self._own_message(actor, message_id)
        self.collection.delete_one({"_id": message["_id"]})
        payload = {"messageId": message["_id"], "receiver": message["receiver"], "sender": message["sender"]}
        await realtime_service.emit("messageDeleted", payload, [message["receiver"], message["sender"]])

    # ------------------------------------------------------------
    # Read receipts
    # ------------------------------------------------------------

    async def mark_as_read(self, actor: dict, message_id: str) -> dict:
        user_oid = to_object_id(actor["id"])
        message = self.get_or_404(message_id)

        if message.get("receiverModel", USER_MODEL) == USER_MODEL:
            if message["receiver"] != user_oid:
                raise HTTPException(status_code=403, detail="Only the receiver can mark this message as read")
        else:
            self._ensure_visible(message, user_oid)

        updated = self.update_fields(message["_id"], {"isRead": True})
        await realtime_service.emit(
            "messageRead", {"messageId": message["_id"], "readBy": user_oid}, [message["sender"]]
        )
        return serialize_doc(updated)

    async def mark_conversation_as_read(self, actor: dict, target_id: str, chat_type: str) -> dict:
        """
        Mark a whole chat read. For groups `target_id` is the conversation;
        for direct chats it is the peer's user id.
        """
        user_oid = to_object_id(actor["id"])
        target_oid = to_object_id(target_id, "conversation id")

        if chat_type == "group":
            conversations = ConversationService()
            if not conversations.is_participant(conversations.get_or_404(target_oid), actor["id"]):
                raise HTTPException(status_code=403, detail="You are not a member of this conversation")
            query = {
                "receiver": target_oid,
                "receiverModel": CONVERSATION_MODEL,
                "sender": {"$ne": user_oid},
                "isRead": False,
            }
        else:
            query = {"sender": target_oid, "receiver": user_oid, "isRead": False}

        result = self.collection.update_many(query, {"$set": {"isRead": True, "updatedAt": utcnow()}})
        payload = {"conversationId": target_oid, "type": chat_type, "modifiedCount": result.modified_count}

        await realtime_service.emit("conversationRead", payload, [user_oid])
        if chat_type == "direct":
            await realtime_service.emit(
                "conversationReadByPeer", {"conversationId": user_oid, "readBy": user_oid}, [target_oid]
            )
        return serialize_doc(payload)

    async def mark_all_as_read(self, actor: dict) -> dict:
        user_oid = to_object_id(actor["id"])
        result = self.collection.update_many(
            {"receiver": user_oid, "isRead": False},
            {"$set": {"isRead": True, "updatedAt": utcnow()}},
        )
        logger.info(f"Marked {result.modified_count} message(s) read for user {user_oid}")
        payload = {"userId": user_oid, "modifiedCount": result.modified_count}
        await realtime_service.emit("allMessagesRead", payload, [user_oid])
        return serialize_doc(payload)

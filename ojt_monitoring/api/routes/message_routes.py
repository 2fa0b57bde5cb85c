"""
Message Routes (every write is also pushed over Socket.IO)

POST   /message                         - Send a direct or group message
POST   /message/upload                  - Upload a chat image
GET    /message                         - Caller's messages
POST   /message/search                  - Find a message
PATCH  /message/read-all                - Mark all direct messages read
PATCH  /message/conversation/{id}/read  - Mark a chat read ({type: direct|group})
PATCH  /message/{id}/read               - Mark one message read
GET    /message/{id}                    - Get message
PATCH  /message/{id}                    - Edit own message
DELETE /message/{id}                    - Delete own message
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, UploadFile

from ojt_monitoring.core.auth import get_current_user
from ojt_monitoring.schemas.schemas import ConversationReadRequest, MessageCreate, MessageResponse, MessageUpdate
from ojt_monitoring.services.message_service import MessageService
from ojt_monitoring.services.storage_service import get_storage_service
from ojt_monitoring.utils.file_upload import read_image

router = APIRouter(prefix="/message", tags=["Messages"])


@router.post("", status_code=201)
async def send_message(data: MessageCreate, user: dict = Depends(get_current_user)):
    """receiverModel is detected from the receiver id when omitted."""
    return await MessageService().send(user, data.to_document())


@router.post("/upload")
async def upload_image(file: UploadFile = File(...), user: dict = Depends(get_current_user)):
    image = await read_image(file)
    url = await get_storage_service().upload_file(image, "message-images")
    return {"imageUrl": url}


@router.get("")
async def list_messages(user: dict = Depends(get_current_user)):
    return await MessageService().list_for_user(user)


@router.post("/search")
async def search_messages(criteria: Dict[str, Any] = Body(...), user: dict = Depends(get_current_user)):
    return await MessageService().search(user, criteria)


@router.patch("/read-all")
async def mark_all_read(user: dict = Depends(get_current_user)):
    return await MessageService().mark_all_as_read(user)


@router.patch("/conversation/{target_id}/read")
async def mark_conversation_read(
    target_id: str,
    data: Optional[ConversationReadRequest] = None,
    user: dict = Depends(get_current_user),
):
    chat_type = data.type if data else "direct"
    return await MessageService().mark_conversation_as_read(user, target_id, chat_type)


@router.patch("/{message_id}/read")
async def mark_read(message_id: str, user: dict = Depends(get_current_user)):
    return await MessageService().mark_as_read(user, message_id)


@router.get("/{message_id}")
async def get_message(message_id: str, user: dict = Depends(get_current_user)):
    return await MessageService().get(user, message_id)


@router.patch("/{message_id}")
async def update_message(message_id: str, data: MessageUpdate, user: dict = Depends(get_current_user)):
    return await MessageService().update(user, message_id, data.content)


@router.delete("/{message_id}", response_model=MessageResponse)
async def delete_message(message_id: str, user: dict = Depends(get_current_user)):
    await MessageService().delete_message(user, message_id)
    return MessageResponse(message="Message deleted successfully")

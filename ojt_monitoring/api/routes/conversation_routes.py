"""
Conversation Routes

POST /conversation/group         - Create a group chat
GET  /conversation               - Caller's conversations, most recent first
POST /conversation/{id}/members  - Add a member to a group chat
"""

from fastapi import APIRouter, Depends

from ojt_monitoring.core.auth import get_current_user
from ojt_monitoring.schemas.schemas import AddMemberRequest, GroupConversationCreate
from ojt_monitoring.services.conversation_service import ConversationService

router = APIRouter(prefix="/conversation", tags=["Conversations"])


@router.post("/group", status_code=201)
async def create_group(data: GroupConversationCreate, user: dict = Depends(get_current_user)):
    return ConversationService().create_group(user, data.model_dump())


@router.get("")
async def list_conversations(user: dict = Depends(get_current_user)):
    return ConversationService().list_for_user(user["id"])


@router.post("/{conversation_id}/members")
async def add_member(conversation_id: str, data: AddMemberRequest, user: dict = Depends(get_current_user)):
    return await ConversationService().add_member(conversation_id, data.user_id, user)

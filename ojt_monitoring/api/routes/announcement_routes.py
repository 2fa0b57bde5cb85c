"""
Announcement Routes

POST   /announcement         - Create announcement (emails target students)
GET    /announcement         - Announcements for a program (?program=)
POST   /announcement/search  - Search announcements
GET    /announcement/{id}    - Get announcement
PATCH  /announcement/{id}    - Update announcement (author/admin)
DELETE /announcement/{id}    - Delete announcement (author/admin)
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from ojt_monitoring.core.auth import get_current_staff, get_current_user
from ojt_monitoring.schemas.schemas import (
    AnnouncementCreate,
    AnnouncementUpdate,
    MessageResponse,
    TargetProgram,
)
from ojt_monitoring.services.announcement_service import AnnouncementService

router = APIRouter(prefix="/announcement", tags=["Announcements"])


@router.post("", status_code=201)
async def create_announcement(data: AnnouncementCreate, actor: dict = Depends(get_current_staff)):
    """targetProgram defaults to the coordinator's program, or `all` for admins."""
    return await AnnouncementService().create(actor, data.to_document())


@router.get("")
async def list_announcements(
    program: Optional[TargetProgram] = Query(None),
    user: dict = Depends(get_current_user),
):
    return AnnouncementService().list(user, program.value if program else None)


@router.post("/search")
async def search_announcements(criteria: Dict[str, Any] = Body(...), user: dict = Depends(get_current_user)):
    return AnnouncementService().search(criteria)


@router.get("/{announcement_id}")
async def get_announcement(announcement_id: str, user: dict = Depends(get_current_user)):
    return AnnouncementService().get(announcement_id)


@router.patch("/{announcement_id}")
async def update_announcement(
    announcement_id: str, data: AnnouncementUpdate, actor: dict = Depends(get_current_staff)
):
    return AnnouncementService().update(actor, announcement_id, data.to_document())


@router.delete("/{announcement_id}", response_model=MessageResponse)
async def delete_announcement(announcement_id: str, actor: dict = Depends(get_current_staff)):
    AnnouncementService().delete_announcement(actor, announcement_id)
    return MessageResponse(message="Announcement deleted successfully")

"""
Program Requirement Routes

POST   /requirements         - Create requirement (admin/coordinator)
GET    /requirements         - List requirements (?program=)
PATCH  /requirements         - Update requirement ({_id, ...})
POST   /requirements/search  - Search requirements
GET    /requirements/{id}    - Get requirement
DELETE /requirements/{id}    - Delete requirement
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from ojt_monitoring.core.auth import get_current_staff, get_current_user
from ojt_monitoring.schemas.schemas import MessageResponse, Program, RequirementCreate, RequirementUpdate
from ojt_monitoring.services.requirement_service import RequirementService

router = APIRouter(prefix="/requirements", tags=["Requirements"])


@router.post("", status_code=201)
async def create_requirement(data: RequirementCreate, actor: dict = Depends(get_current_staff)):
    return RequirementService().create(data.to_document())


@router.get("")
async def list_requirements(program: Optional[Program] = Query(None), user: dict = Depends(get_current_user)):
    return RequirementService().list(program.value if program else None)


@router.patch("")
async def update_requirement(data: RequirementUpdate, actor: dict = Depends(get_current_staff)):
    return RequirementService().update(data.id, data.to_document(exclude={"id"}))


@router.post("/search")
async def search_requirements(criteria: Dict[str, Any] = Body(...), user: dict = Depends(get_current_user)):
    return RequirementService().search(criteria)


@router.get("/{requirement_id}")
async def get_requirement(requirement_id: str, user: dict = Depends(get_current_user)):
    return RequirementService().get(requirement_id)


@router.delete("/{requirement_id}", response_model=MessageResponse)
async def delete_requirement(requirement_id: str, actor: dict = Depends(get_current_staff)):
    RequirementService().delete(requirement_id)
    return MessageResponse(message="Requirement deleted successfully")

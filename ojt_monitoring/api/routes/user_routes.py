"""
User Routes

POST   /user                     - Create user (admin/coordinator)
GET    /user                     - List active users
PATCH  /user                     - Update user ({_id, ...})
POST   /user/search              - Search users
POST   /user/assign-company      - Place a student at a company
POST   /user/unassign-company    - Remove a student's placement
PATCH  /user/deployment-status   - Update placement status
GET    /user/dashboard           - Role-specific dashboard counters
GET    /user/notifications       - Notification feed
POST   /user/location            - Report live location
POST   /user/upload/{id}         - Upload avatar
GET    /user/{id}                - Get user
DELETE /user/{id}                - Archive user
DELETE /user/{id}/permanent      - Permanently delete user
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Query, UploadFile

from ojt_monitoring.core.auth import get_current_staff, get_current_user
from ojt_monitoring.schemas.schemas import (
    AssignCompanyRequest,
    DeploymentStatusRequest,
    LocationUpdate,
    MessageResponse,
    Program,
    UnassignCompanyRequest,
    UserCreate,
    UserRole,
    UserUpdate,
)
from ojt_monitoring.services.notification_service import NotificationService
from ojt_monitoring.services.storage_service import get_storage_service
from ojt_monitoring.services.user_service import UserService
from ojt_monitoring.utils.file_upload import read_image

router = APIRouter(prefix="/user", tags=["Users"])


@router.post("", status_code=201)
async def create_user(data: UserCreate, actor: dict = Depends(get_current_staff)):
    """Create an account. Coordinators can only create students of their program."""
    return await UserService().create_user(actor, data.to_document())


@router.get("")
async def list_users(
    role: Optional[UserRole] = Query(None),
    program: Optional[Program] = Query(None),
    actor: dict = Depends(get_current_user),
):
    return UserService().list_users(
        actor,
        role=role.value if role else None,
        program=program.value if program else None,
    )


@router.patch("")
async def update_user(data: UserUpdate, actor: dict = Depends(get_current_user)):
    return await UserService().update_user(actor, data.id, data.to_document(exclude={"id"}))


@router.post("/search")
async def search_users(criteria: Dict[str, Any] = Body(...), user: dict = Depends(get_current_user)):
    return UserService().search(criteria)


@router.post("/assign-company")
async def assign_company(data: AssignCompanyRequest, actor: dict = Depends(get_current_staff)):
    user = UserService().assign_company(
        actor,
        data.user_id,
        data.company_id,
        data.coordinator_id,
        deployment_date=data.deployment_date,
        status=data.status,
    )
    return {"message": "Student assigned to company successfully", "user": user}


@router.post("/unassign-company")
async def unassign_company(data: UnassignCompanyRequest, actor: dict = Depends(get_current_staff)):
    user = UserService().unassign_company(actor, data.user_id)
    return {"message": "Student unassigned from company successfully", "user": user}


@router.patch("/deployment-status")
async def update_deployment_status(data: DeploymentStatusRequest, actor: dict = Depends(get_current_staff)):
    user = UserService().update_deployment_status(actor, data.user_id, data.status)
    return {"message": "Deployment status updated successfully", "user": user}


@router.get("/dashboard")
async def dashboard(
    user_id: Optional[str] = Query(None, alias="userId"),
    user_role: Optional[UserRole] = Query(None, alias="userRole"),
    user: dict = Depends(get_current_user),
):
    """Counters for the caller (admins may ask for another user)."""
    if user["role"] != "admin" or not user_id:
        user_id, role = user["id"], user["role"]
    else:
        role = user_role.value if user_role else user["role"]
    return UserService().dashboard(user_id, role)


@router.get("/notifications")
async def notifications(user: dict = Depends(get_current_user)):
    return NotificationService().for_user(user)


@router.post("/location")
async def update_location(data: LocationUpdate, user: dict = Depends(get_current_user)):
    location = UserService().update_location(user["id"], data.lat, data.lng)
    return {"message": "Location updated", "latestLocation": location}


@router.post("/upload/{user_id}")
async def upload_avatar(user_id: str, file: UploadFile = File(...), actor: dict = Depends(get_current_user)):
    image = await read_image(file)
    url = await get_storage_service().upload_file(image, "user-avatars")
    return UserService().set_avatar(actor, user_id, url)


@router.get("/{user_id}")
async def get_user(user_id: str, user: dict = Depends(get_current_user)):
    return UserService().get_user(user_id)


@router.delete("/{user_id}")
async def archive_user(user_id: str, actor: dict = Depends(get_current_user)):
    user = UserService().archive_user(actor, user_id)
    return {"message": "User archived successfully", "user": user}


@router.delete("/{user_id}/permanent", response_model=MessageResponse)
async def delete_user_permanently(user_id: str, actor: dict = Depends(get_current_user)):
    UserService().permanent_delete(actor, user_id)
    return MessageResponse(message="User permanently deleted")

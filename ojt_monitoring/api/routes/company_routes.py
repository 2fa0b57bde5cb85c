"""
Company Routes

POST   /company                - Create company (admin/coordinator)
GET    /company                - List companies
PATCH  /company                - Update company ({_id, ...})
POST   /company/search         - Search companies
GET    /company/{id}           - Get company (public, used by the time logger)
GET    /company/{id}/students  - Assigned students with live location
DELETE /company/{id}           - Delete company and release its students
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ojt_monitoring.core.auth import get_current_staff, get_current_user
from ojt_monitoring.schemas.schemas import CompanyCreate, CompanyUpdate, MessageResponse
from ojt_monitoring.services.company_service import CompanyService
from ojt_monitoring.services.user_service import UserService

router = APIRouter(prefix="/company", tags=["Companies"])


@router.post("", status_code=201)
async def create_company(data: CompanyCreate, actor: dict = Depends(get_current_staff)):
    return CompanyService().create(data.to_document())


@router.get("")
async def list_companies(user: dict = Depends(get_current_user)):
    return CompanyService().list()


@router.patch("")
async def update_company(data: CompanyUpdate, actor: dict = Depends(get_current_staff)):
    return CompanyService().update(data.id, data.to_document(exclude={"id"}))


@router.post("/search")
async def search_companies(criteria: Dict[str, Any] = Body(...), user: dict = Depends(get_current_user)):
    return CompanyService().search(criteria)


@router.get("/{company_id}")
async def get_company(company_id: str):
    return CompanyService().get(company_id)


@router.get("/{company_id}/students")
async def company_students(company_id: str, actor: dict = Depends(get_current_staff)):
    """Live tracking: students placed at the company and their latest location."""
    CompanyService().get_or_404(company_id)
    return UserService().students_of_company(company_id)


@router.delete("/{company_id}", response_model=MessageResponse)
async def delete_company(company_id: str, actor: dict = Depends(get_current_staff)):
    CompanyService().delete_company(company_id)
    return MessageResponse(message="Company deleted successfully")

"""
Archive Routes (admin/coordinator)

GET    /archive/users                 - Archived users
GET    /archive/documents             - Archived documents
PATCH  /archive/restore/user/{id}     - Restore a user
PATCH  /archive/restore/document/{id} - Restore a document
DELETE /archive/user/{id}             - Permanently delete an archived user
DELETE /archive/document/{id}         - Permanently delete an archived document
GET    /archive/export                - Download archive_export.json
POST   /archive/import                - Import an exported archive
"""

import json

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import Response

from ojt_monitoring.core.auth import get_current_staff
from ojt_monitoring.schemas.schemas import ArchiveImportRequest, MessageResponse
from ojt_monitoring.services.archive_service import ArchiveService

router = APIRouter(prefix="/archive", tags=["Archive"])


@router.get("/users")
async def archived_users(actor: dict = Depends(get_current_staff)):
    return ArchiveService().archived_users(actor)


@router.get("/documents")
async def archived_documents(actor: dict = Depends(get_current_staff)):
    return ArchiveService().archived_documents(actor)


@router.patch("/restore/user/{user_id}")
async def restore_user(user_id: str, actor: dict = Depends(get_current_staff)):
    user = ArchiveService().restore_user(actor, user_id)
    return {"message": "User restored successfully", "user": user}


@router.patch("/restore/document/{document_id}")
async def restore_document(document_id: str, actor: dict = Depends(get_current_staff)):
    document = ArchiveService().restore_document(actor, document_id)
    return {"message": "Document restored successfully", "document": document}


@router.delete("/user/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: str, actor: dict = Depends(get_current_staff)):
    ArchiveService().delete_user(actor, user_id)
    return MessageResponse(message="User permanently deleted")


@router.delete("/document/{document_id}", response_model=MessageResponse)
async def delete_document(document_id: str, actor: dict = Depends(get_current_staff)):
    await ArchiveService().delete_document(actor, document_id)
    return MessageResponse(message="Document permanently deleted")


@router.get("/export")
async def export_archive(actor: dict = Depends(get_current_staff)):
    """Archived users and documents as a downloadable JSON file."""
    data = jsonable_encoder(ArchiveService().export_data(actor))
    return Response(
        content=json.dumps(data, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="archive_export.json"'},
    )


@router.post("/import")
async def import_archive(data: ArchiveImportRequest, actor: dict = Depends(get_current_staff)):
    result = ArchiveService().import_data(actor, data.users, data.documents)
    return {"message": "Import completed", **result}

"""
Document Routes

POST   /document                   - Upload a document (multipart, up to 10 files)
GET    /document                   - List active documents
PATCH  /document                   - Update document ({_id, ...})
POST   /document/search            - Search documents
GET    /document/student/{id}      - A student's documents
POST   /document/add-files/{id}    - Attach more files
POST   /document/remove-files/{id} - Detach files
PATCH  /document/approve/{id}      - Coordinator approval
PATCH  /document/disapprove/{id}   - Coordinator rejection (remarks required)
GET    /document/{id}              - Get document
DELETE /document/{id}              - Archive document
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile

from ojt_monitoring.core.auth import get_current_coordinator, get_current_user
from ojt_monitoring.schemas.schemas import DocumentReview, DocumentUpdate, RemoveDocumentFilesRequest
from ojt_monitoring.services.document_service import DocumentService
from ojt_monitoring.services.storage_service import get_storage_service
from ojt_monitoring.utils.file_upload import read_uploads

router = APIRouter(prefix="/document", tags=["Documents"])

UPLOAD_FOLDER = "documents"


async def _store_files(files: Optional[List[UploadFile]]) -> List[str]:
    validated = await read_uploads(files)
    storage = get_storage_service()
    return [await storage.upload_file(f, UPLOAD_FOLDER) for f in validated]


@router.post("", status_code=201)
async def create_document(
    document_name: str = Form(..., alias="documentName"),
    student: Optional[str] = Form(None),
    remarks: Optional[str] = Form(None),
    files: List[UploadFile] = File(...),
    user: dict = Depends(get_current_user),
):
    """Upload files for a requirement; the record starts as pending."""
    urls = await _store_files(files)
    return DocumentService().create(user, student, document_name, urls, remarks)


@router.get("")
async def list_documents(user: dict = Depends(get_current_user)):
    return DocumentService().list(user)


@router.patch("")
async def update_document(data: DocumentUpdate, user: dict = Depends(get_current_user)):
    return await DocumentService().update(user, data.id, data.to_document(exclude={"id"}))


@router.post("/search")
async def search_documents(criteria: Dict[str, Any] = Body(...), user: dict = Depends(get_current_user)):
    return DocumentService().search(criteria)


@router.get("/student/{student_id}")
async def student_documents(student_id: str, user: dict = Depends(get_current_user)):
    return DocumentService().list_for_student(user, student_id)


@router.post("/add-files/{document_id}")
async def add_files(document_id: str, files: List[UploadFile] = File(...), user: dict = Depends(get_current_user)):
    service = DocumentService()
    service.get_or_404(document_id)
    urls = await _store_files(files)
    return service.add_files(user, document_id, urls)


@router.post("/remove-files/{document_id}")
async def remove_files(document_id: str, data: RemoveDocumentFilesRequest, user: dict = Depends(get_current_user)):
    return await DocumentService().remove_files(user, document_id, data.documents)


@router.patch("/approve/{document_id}")
async def approve_document(
    document_id: str,
    data: Optional[DocumentReview] = None,
    coordinator: dict = Depends(get_current_coordinator),
):
    document = await DocumentService().approve(coordinator, document_id, data.remarks if data else None)
    return {"message": "Document approved successfully", "document": document}


@router.patch("/disapprove/{document_id}")
async def disapprove_document(
    document_id: str,
    data: Optional[DocumentReview] = None,
    coordinator: dict = Depends(get_current_coordinator),
):
    document = await DocumentService().disapprove(coordinator, document_id, data.remarks if data else None)
    return {"message": "Document disapproved", "document": document}


@router.get("/{document_id}")
async def get_document(document_id: str, user: dict = Depends(get_current_user)):
    return DocumentService().get(user, document_id)


@router.delete("/{document_id}")
async def archive_document(document_id: str, user: dict = Depends(get_current_user)):
    document = DocumentService().archive(user, document_id)
    return {"message": "Document archived successfully", "document": document}

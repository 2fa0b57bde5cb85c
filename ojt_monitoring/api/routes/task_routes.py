"""
Task Routes

POST   /task                    - Create task (multipart, optional attachments)
GET    /task                    - List tasks (students: assigned to them)
PATCH  /task                    - Update task ({_id, ...})
POST   /task/search             - Search tasks
GET    /task/student/{id}       - Tasks assigned to a student
POST   /task/add-files/{id}     - Submit files (students) or attach files (others)
POST   /task/remove-files/{id}  - Remove submitted/attached files
GET    /task/{id}               - Get task
DELETE /task/{id}               - Delete task
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, UploadFile

from ojt_monitoring.core.auth import get_current_staff, get_current_user
from ojt_monitoring.schemas.schemas import MessageResponse, RemoveTaskFilesRequest, TaskUpdate
from ojt_monitoring.services.storage_service import get_storage_service
from ojt_monitoring.services.task_service import TaskService
from ojt_monitoring.utils.file_upload import read_uploads

router = APIRouter(prefix="/task", tags=["Tasks"])

UPLOAD_FOLDER = "task-documents"


async def _store_files(files: Optional[List[UploadFile]], required: bool) -> List[str]:
    validated = await read_uploads(files, required=required)
    storage = get_storage_service()
    return [await storage.upload_file(f, UPLOAD_FOLDER) for f in validated]


@router.post("", status_code=201)
async def create_task(
    title: str = Form(""),
    description: str = Form(""),
    due_date: Optional[datetime] = Form(None, alias="dueDate"),
    assigned_to: List[str] = Form([], alias="assignedTo[]"),
    assigned_to_plain: List[str] = Form([], alias="assignedTo"),
    files: Optional[List[UploadFile]] = File(None),
    actor: dict = Depends(get_current_staff),
):
    """Create a task; accepts `assignedTo[]` (repeated) or `assignedTo`."""
    if not title.strip() or not description.strip():
        raise HTTPException(status_code=400, detail="Title and description are required")

    urls = await _store_files(files, required=False)
    data = {
        "title": title.strip(),
        "description": description.strip(),
        "dueDate": due_date,
        "assignedTo": list(dict.fromkeys(assigned_to + assigned_to_plain)),
    }
    return TaskService().create(actor, data, urls)


@router.get("")
async def list_tasks(user: dict = Depends(get_current_user)):
    return TaskService().list(user)


@router.patch("")
async def update_task(data: TaskUpdate, actor: dict = Depends(get_current_user)):
    return TaskService().update(actor, data.id, data.to_document(exclude={"id"}))


@router.post("/search")
async def search_tasks(criteria: Dict[str, Any] = Body(...), user: dict = Depends(get_current_user)):
    return TaskService().search(criteria)


@router.get("/student/{student_id}")
async def student_tasks(student_id: str, user: dict = Depends(get_current_user)):
    return TaskService().list_for_student(student_id)


@router.post("/add-files/{task_id}")
async def add_files(task_id: str, files: List[UploadFile] = File(...), user: dict = Depends(get_current_user)):
    service = TaskService()
    service.get_or_404(task_id)
    urls = await _store_files(files, required=True)
    return service.add_files(user, task_id, urls)


@router.post("/remove-files/{task_id}")
async def remove_files(task_id: str, data: RemoveTaskFilesRequest, user: dict = Depends(get_current_user)):
    return TaskService().remove_files(user, task_id, data.files, data.student_id)


@router.get("/{task_id}")
async def get_task(task_id: str, user: dict = Depends(get_current_user)):
    return TaskService().get(task_id)


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(task_id: str, actor: dict = Depends(get_current_user)):
    TaskService().delete_task(actor, task_id)
    return MessageResponse(message="Task deleted successfully")

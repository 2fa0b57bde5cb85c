"""
Daily Time Record Routes

POST /dtr/time-in     - Time in (geofenced against the company safe zone)
POST /dtr/time-out    - Time out
GET  /dtr/my-records  - Own records, newest first
GET  /dtr/user/{id}   - A student's records (admin/coordinator)
"""

from fastapi import APIRouter, Depends

from ojt_monitoring.core.auth import get_current_staff, get_current_user
from ojt_monitoring.schemas.schemas import TimeRecordRequest
from ojt_monitoring.services.dtr_service import DTRService

router = APIRouter(prefix="/dtr", tags=["Daily Time Records"])


@router.post("/time-in")
async def time_in(data: TimeRecordRequest, user: dict = Depends(get_current_user)):
    """
    Record today's time in.

    Body: {"coordinates": [lng, lat], "remarks": "..."}; coordinates are
    required when the assigned company has a safe zone.
    """
    dtr = DTRService().time_in(user["id"], data.coordinates, data.remarks)
    return {"message": "Time In successful", "dtr": dtr}


@router.post("/time-out")
async def time_out(data: TimeRecordRequest, user: dict = Depends(get_current_user)):
    dtr = DTRService().time_out(user["id"], data.coordinates, data.remarks)
    return {"message": "Time Out successful", "dtr": dtr}


@router.get("/my-records")
async def my_records(user: dict = Depends(get_current_user)):
    return DTRService().records_for(user["id"])


@router.get("/user/{student_id}")
async def student_records(student_id: str, actor: dict = Depends(get_current_staff)):
    return DTRService().records_for_student(actor, student_id)

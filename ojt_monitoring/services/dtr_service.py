"""
Daily Time Record Service - geofenced time-in / time-out.

A student may time in once per local day, at the company they are assigned
to. When the company defines a safe zone polygon, time-in coordinates must
fall inside it. Times are stored as naive UTC; "today" and lateness are
judged in the configured DTR timezone.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

from fastapi import HTTPException

from ojt_monitoring.core.auth import ensure_can_manage
from ojt_monitoring.core.config import get_settings
from ojt_monitoring.core.logging_config import logger
from ojt_monitoring.db.mongodb import COLLECTIONS, get_collection
from ojt_monitoring.schemas.schemas import DTRStatus
from ojt_monitoring.services.mongo_service import (
    BaseService,
    serialize_doc,
    serialize_docs,
    to_object_id,
    utcnow,
)
from ojt_monitoring.utils.geometry import geo_point, has_safe_zone, is_point_in_polygon


def local_time(moment_utc: datetime) -> datetime:
    tz = ZoneInfo(get_settings().dtr_timezone)
    return moment_utc.replace(tzinfo=timezone.utc).astimezone(tz)


def start_of_local_day(moment_utc: datetime) -> datetime:
    """Local midnight of the given instant, as naive UTC."""
    midnight = local_time(moment_utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)


def is_late(moment_utc: datetime) -> bool:
    settings = get_settings()
    local = local_time(moment_utc)
    cutoff = local.replace(
        hour=settings.dtr_start_hour, minute=settings.dtr_start_minute, second=0, microsecond=0
    ) + timedelta(minutes=settings.dtr_grace_minutes)
    return local > cutoff


def hours_between(start: datetime, end: datetime) -> float:
    return round(max((end - start).total_seconds(), 0) / 3600, 2)


class DTRService(BaseService):
    collection_key = "dtr"
    not_found_message = "Time record not found"

    def time_in(self, user_id: str, coordinates: Optional[Sequence[float]], remarks: Optional[str]) -> dict:
        users = get_collection(COLLECTIONS["users"])
        user = users.find_one({"_id": to_object_id(user_id)})
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        company_id = (user.get("metadata") or {}).get("company")
        if not company_id:
            raise HTTPException(status_code=400, detail="You are not assigned to any company.")

        company = get_collection(COLLECTIONS["companies"]).find_one({"_id": company_id})
        if not company:
            raise HTTPException(status_code=404, detail="Company not found")

        now = utcnow()
        existing = self.collection.find_one({"user": user["_id"], "date": {"$gte": start_of_local_day(now)}})
        if existing and not existing.get("timeOut"):
            raise HTTPException(status_code=400, detail="You have already timed in and not timed out yet.")
        if existing:
            raise HTTPException(status_code=400, detail="You have already completed your duty for today.")

        safe_zone = company.get("safeZone")
        if has_safe_zone(safe_zone):
            if not coordinates:
                raise HTTPException(status_code=400, detail="Location is required for Time In.")
            if not is_point_in_polygon(coordinates, safe_zone["coordinates"]):
                logger.warning(f"Time-in rejected outside safe zone: user={user['_id']} point={list(coordinates)}")
                raise HTTPException(
                    status_code=403,
                    detail="You are outside the designated Safe Zone. Please move to the company premises.",
                )

        record = {
            "user": user["_id"],
            "company": company["_id"],
            "date": now,
            "timeIn": now,
            "status": (DTRStatus.late if is_late(now) else DTRStatus.present).value,
        }
        location = geo_point(coordinates)
        if location:
            record["timeInLocation"] = location
        if remarks:
            record["remarks"] = remarks

        return serialize_doc(self.insert(record))

    def time_out(self, user_id: str, coordinates: Optional[Sequence[float]], remarks: Optional[str]) -> dict:
        now = utcnow()
        record = self.collection.find_one({
            "user": to_object_id(user_id),
            "date": {"$gte": start_of_local_day(now)},
            "timeOut": {"$exists": False},
        })
        if not record:
            raise HTTPException(status_code=404, detail="No active Time In record found for today.")

        hours = hours_between(record["timeIn"], now)
        fields = {"timeOut": now, "hoursRendered": hours}
        location = geo_point(coordinates)
        if location:
            fields["timeOutLocation"] = location
        if remarks:
            fields["remarks"] = f"{record['remarks']}\n{remarks}" if record.get("remarks") else remarks
        if record.get("status") == DTRStatus.present.value and hours > get_settings().dtr_regular_hours:
            fields["status"] = DTRStatus.overtime.value

        return serialize_doc(self.update_fields(record["_id"], fields))

    def records_for(self, user_id: str) -> List[dict]:
        return serialize_docs(self.collection.find({"user": to_object_id(user_id)}).sort("date", -1))

    def records_for_student(self, actor: dict, student_id: str) -> List[dict]:
        student = get_collection(COLLECTIONS["users"]).find_one({"_id": to_object_id(student_id)})
        if not student:
            raise HTTPException(status_code=404, detail="User not found")
        ensure_can_manage(actor, student)
        return self.records_for(student_id)

"""
Daily time record tests. The clock is pinned; the DTR timezone is Asia/Manila (UTC+8).
"""
from datetime import datetime
from unittest.mock import patch

import pytest

from ojt_monitoring.services.dtr_service import hours_between, is_late, start_of_local_day

from tests.conftest import INSIDE, OUTSIDE

# 08:05 and 08:30 in Manila
ON_TIME = datetime(2026, 10, 19, 0, 5)
LATE = datetime(2026, 10, 19, 0, 30)
# 17:30 in Manila
EVENING = datetime(2026, 10, 19, 9, 30)
# 12:00 in Manila
NOON = datetime(2026, 10, 19, 4, 0)


def at(moment):
    return patch("ojt_monitoring.services.dtr_service.utcnow", return_value=moment)


class TestClockHelpers:

    def test_start_of_local_day(self):
        assert start_of_local_day(ON_TIME) == datetime(2026, 10, 18, 16, 0)

    def test_grace_period(self):
        assert is_late(ON_TIME) is False
        assert is_late(LATE) is True

    def test_hours_between(self):
        assert hours_between(ON_TIME, EVENING) == 9.42
        assert hours_between(EVENING, ON_TIME) == 0


class TestTimeIn:

    def test_time_in_inside_safe_zone(self, client, placed_student, auth):
        with at(ON_TIME):
            response = client.post("/api/dtr/time-in", json={"coordinates": INSIDE}, headers=auth(placed_student))

        assert response.status_code == 200
        dtr = response.json()["dtr"]
        assert dtr["status"] == "present"
        assert dtr["timeInLocation"] == {"type": "Point", "coordinates": INSIDE}

    def test_late_time_in(self, client, placed_student, auth):
        with at(LATE):
            response = client.post("/api/dtr/time-in", json={"coordinates": INSIDE}, headers=auth(placed_student))

        assert response.json()["dtr"]["status"] == "late"

    def test_outside_safe_zone(self, client, placed_student, auth, mongo):
        with at(ON_TIME):
            response = client.post("/api/dtr/time-in", json={"coordinates": OUTSIDE}, headers=auth(placed_student))

        assert response.status_code == 403
        assert "outside the designated Safe Zone" in response.json()["message"]
        assert mongo["dailytimerecords"].count_documents({}) == 0

    def test_location_required_with_safe_zone(self, client, placed_student, auth):
        with at(ON_TIME):
            response = client.post("/api/dtr/time-in", json={}, headers=auth(placed_student))

        assert response.status_code == 400
        assert response.json()["message"] == "Location is required for Time In."

    def test_no_safe_zone_skips_geofence(self, client, placed_student, company, auth, mongo):
        mongo["companies"].update_one({"_id": company["_id"]}, {"$unset": {"safeZone": ""}})
        with at(ON_TIME):
            response = client.post("/api/dtr/time-in", json={}, headers=auth(placed_student))

        assert response.status_code == 200

    def test_unassigned_student(self, client, student, auth):
        with at(ON_TIME):
            response = client.post("/api/dtr/time-in", json={"coordinates": INSIDE}, headers=auth(student))

        assert response.status_code == 400
        assert response.json()["message"] == "You are not assigned to any company."

    def test_null_metadata_counts_as_unassigned(self, client, student, auth, mongo):
        mongo["users"].update_one({"_id": student["_id"]}, {"$set": {"metadata": None}})
        with at(ON_TIME):
            response = client.post("/api/dtr/time-in", json={"coordinates": INSIDE}, headers=auth(student))

        assert response.status_code == 400
        assert response.json()["message"] == "You are not assigned to any company."

    def test_one_time_in_per_day(self, client, placed_student, auth):
        headers = auth(placed_student)
        with at(ON_TIME):
            client.post("/api/dtr/time-in", json={"coordinates": INSIDE}, headers=headers)
        with at(NOON):
            open_record = client.post("/api/dtr/time-in", json={"coordinates": INSIDE}, headers=headers)
            client.post("/api/dtr/time-out", json={}, headers=headers)
        with at(EVENING):
            finished = client.post("/api/dtr/time-in", json={"coordinates": INSIDE}, headers=headers)

        assert open_record.json()["message"] == "You have already timed in and not timed out yet."
        assert finished.json()["message"] == "You have already completed your duty for today."

    def test_invalid_coordinates(self, client, placed_student, auth):
        response = client.post("/api/dtr/time-in", json={"coordinates": [200, 15]}, headers=auth(placed_student))

        assert response.status_code == 400
        assert response.json()["message"] == "Coordinates out of range"


class TestTimeOut:

    def test_time_out_records_hours_and_overtime(self, client, placed_student, auth):
        headers = auth(placed_student)
        with at(ON_TIME):
            client.post("/api/dtr/time-in", json={"coordinates": INSIDE, "remarks": "Arrived"}, headers=headers)
        with at(EVENING):
            response = client.post("/api/dtr/time-out", json={"remarks": "Done"}, headers=headers)

        assert response.status_code == 200
        dtr = response.json()["dtr"]
        assert dtr["hoursRendered"] == 9.42
        assert dtr["status"] == "overtime"
        assert dtr["remarks"] == "Arrived\nDone"

    def test_late_stays_late(self, client, placed_student, auth):
        headers = auth(placed_student)
        with at(LATE):
            client.post("/api/dtr/time-in", json={"coordinates": INSIDE}, headers=headers)
        with at(EVENING):
            response = client.post("/api/dtr/time-out", json={}, headers=headers)

        assert response.json()["dtr"]["status"] == "late"

    def test_time_out_without_time_in(self, client, placed_student, auth):
        with at(EVENING):
            response = client.post("/api/dtr/time-out", json={}, headers=auth(placed_student))

        assert response.status_code == 404
        assert response.json()["message"] == "No active Time In record found for today."


class TestRecords:

    @pytest.fixture
    def record(self, client, placed_student, auth):
        with at(ON_TIME):
            client.post("/api/dtr/time-in", json={"coordinates": INSIDE}, headers=auth(placed_student))

    def test_my_records(self, client, placed_student, record, auth):
        response = client.get("/api/dtr/my-records", headers=auth(placed_student))

        assert len(response.json()) == 1

    def test_coordinator_reads_student_records(self, client, coordinator, placed_student, record, auth):
        response = client.get(f"/api/dtr/user/{placed_student['_id']}", headers=auth(coordinator))

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_students_cannot_read_others(self, client, placed_student, make_user, record, auth):
        other = make_user("student")
        response = client.get(f"/api/dtr/user/{placed_student['_id']}", headers=auth(other))

        assert response.status_code == 403

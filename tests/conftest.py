"""
OJT Monitoring System - Test Configuration and Fixtures

MongoDB is replaced by mongomock; Socket.IO emits, SMTP and object storage
are replaced by mocks so tests never leave the process.
"""
import os
from unittest.mock import AsyncMock

import mongomock
import pytest
from fastapi.testclient import TestClient

# Set testing environment
os.environ["MONGODB_DB"] = "ojt-monitoring-test"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-testing"
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASSWORD"] = ""
os.environ["STORAGE_PUBLIC_URL"] = "https://files.test"
os.environ["LOG_LEVEL"] = "WARNING"

from ojt_monitoring.core.auth import create_access_token, token_payload
from ojt_monitoring.db import mongodb
from ojt_monitoring.main import app
from ojt_monitoring.services import realtime_service
from ojt_monitoring.services.auth_service import otp_store
from ojt_monitoring.services.email_service import EmailService
from ojt_monitoring.services.storage_service import StorageService
from ojt_monitoring.services.user_service import UserService

DEFAULT_PASSWORD = "password123"

# Square around (120.0, 15.0) in [lng, lat]
SAFE_ZONE = {
    "type": "Polygon",
    "coordinates": [[[119.99, 14.99], [120.01, 14.99], [120.01, 15.01], [119.99, 15.01], [119.99, 14.99]]],
}
INSIDE = [120.0, 15.0]
OUTSIDE = [121.0, 16.0]


@pytest.fixture(autouse=True)
def mongo(monkeypatch):
    """Fresh in-memory database for every test."""
    client = mongomock.MongoClient()
    monkeypatch.setattr(mongodb, "_client", client)
    monkeypatch.setattr(mongodb, "_db", client["ojt-monitoring-test"])
    return mongodb._db


@pytest.fixture(autouse=True)
def socket_emit(monkeypatch):
    emit = AsyncMock()
    monkeypatch.setattr(realtime_service.sio, "emit", emit)
    return emit


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    send = AsyncMock(return_value=True)
    monkeypatch.setattr(EmailService, "send_email", send)
    return send


@pytest.fixture(autouse=True)
def uploads(monkeypatch):
    """Uploads resolve to a predictable URL built from folder and filename."""
    async def fake_upload(self, file, folder):
        return f"https://files.test/ojt-assets/{folder}/{file.filename}"

    monkeypatch.setattr(StorageService, "upload_file", fake_upload)


@pytest.fixture(autouse=True)
def deleted_files(monkeypatch):
    delete = AsyncMock(return_value=True)
    monkeypatch.setattr(StorageService, "delete_file", delete)
    return delete


@pytest.fixture(autouse=True)
def reset_otp_store():
    otp_store.clear()
    yield
    otp_store.clear()


@pytest.fixture
def client() -> TestClient:
    """Test client; startup hooks (index creation) are not run."""
    return TestClient(app)


@pytest.fixture
def make_user():
    """Factory storing a user straight through the service layer."""
    counter = {"n": 0}

    def _make(role="student", program="bsit", **fields):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "firstName": fields.pop("firstName", f"{role.title()}{n}"),
            "lastName": fields.pop("lastName", "Tester"),
            "email": fields.pop("email", f"{role}{n}@example.com"),
            "userName": fields.pop("userName", f"{role}{n}"),
            "password": fields.pop("password", DEFAULT_PASSWORD),
            "role": role,
        }
        if program:
            data["program"] = program
        data.update(fields)
        return UserService().insert_user(data)

    return _make


def _auth_header(user: dict) -> dict:
    token = create_access_token(token_payload(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(make_user):
    return make_user("admin", program=None)


@pytest.fixture
def coordinator(make_user):
    return make_user("coordinator", program="bsit")


@pytest.fixture
def student(make_user):
    return make_user("student", program="bsit")


@pytest.fixture
def company(mongo):
    doc = {
        "name": "Acme Corp",
        "address": "1 Main St",
        "contactPerson": "Jane Doe",
        "contactEmail": "jane@acme.example.com",
        "contactPhone": "09170000000",
        "safeZone": SAFE_ZONE,
    }
    doc["_id"] = mongo["companies"].insert_one(doc).inserted_id
    return doc


@pytest.fixture
def placed_student(mongo, student, company, coordinator):
    mongo["users"].update_one(
        {"_id": student["_id"]},
        {"$set": {"metadata": {
            "company": company["_id"],
            "coordinator": coordinator["_id"],
            "status": "deployed",
        }}},
    )
    return mongo["users"].find_one({"_id": student["_id"]})


@pytest.fixture
def auth():
    """auth(user) -> Authorization header with a fresh access token."""
    return _auth_header

"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Fields are snake_case in Python and camelCase on the wire (and in MongoDB).
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase (wire) or snake_case (Python) field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    def to_document(self, exclude: Optional[set] = None) -> Dict[str, Any]:
        """Fields the client actually sent, keyed the way MongoDB stores them."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude=exclude, mode="python")


def _required_text(value: Optional[str], label: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(f"{label} is required")
    return value.strip()


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    admin = "admin"
    coordinator = "coordinator"
    student = "student"


class Program(str, Enum):
    bsit = "bsit"
    bsba = "bsba"


class TargetProgram(str, Enum):
    bsit = "bsit"
    bsba = "bsba"
    all = "all"


class DeploymentStatus(str, Enum):
    scheduled = "scheduled"
    deployed = "deployed"
    completed = "completed"


class DocumentStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class TaskStatus(str, Enum):
    pending = "pending"
    completed = "completed"


class DTRStatus(str, Enum):
    present = "present"
    absent = "absent"
    late = "late"
    overtime = "overtime"


class ConversationType(str, Enum):
    group = "group"
    direct = "direct"


class ReceiverModel(str, Enum):
    user = "User"
    conversation = "Conversation"


# ============================================================
# COMMON
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str
    statusCode: int


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(CamelModel):
    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    email: EmailStr
    user_name: str
    password: str
    program: Optional[Program] = None
    role: UserRole = "student"

    @field_validator("first_name", "last_name", "user_name")
    @classmethod
    def not_blank(cls, value: str, info) -> str:
        return _required_text(value, to_camel(info.field_name))

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return value


class LoginRequest(CamelModel):
    user_name: str
    password: str
    role: Optional[UserRole] = None


class RefreshRequest(CamelModel):
    refresh_token: str


class AuthResponse(BaseModel):
    status: str = "success"
    message: str
    data: Dict[str, Any]


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_length(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("New password must be at least 6 characters long")
        return value


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class VerifyResetCodeRequest(CamelModel):
    email: EmailStr
    code: str


class ResetPasswordRequest(CamelModel):
    email: EmailStr
    code: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_length(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("New password must be at least 6 characters long")
        return value


class ChangeEmailRequest(CamelModel):
    new_email: EmailStr


class ChangeEmailVerifyRequest(CamelModel):
    code: str


# ============================================================
# USER SCHEMAS
# ============================================================

class UserCreate(CamelModel):
    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    email: EmailStr
    user_name: Optional[str] = None
    password: str
    role: UserRole = "student"
    program: Optional[Program] = None
    avatar: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def not_blank(cls, value: str, info) -> str:
        return _required_text(value, to_camel(info.field_name))

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return value


class UserUpdate(CamelModel):
    id: str = Field(..., alias="_id")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    email: Optional[EmailStr] = None
    user_name: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    program: Optional[Program] = None
    avatar: Optional[str] = None

    @field_validator("password")
    @classmethod
    def password_length(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return value


class AssignCompanyRequest(CamelModel):
    user_id: Optional[str] = None
    company_id: Optional[str] = None
    coordinator_id: Optional[str] = None
    deployment_date: Optional[datetime] = None
    status: DeploymentStatus = "scheduled"

    @model_validator(mode="after")
    def ids_present(self):
        if not (self.user_id and self.company_id and self.coordinator_id):
            raise ValueError("userId, companyId and coordinatorId are required")
        return self


class UnassignCompanyRequest(CamelModel):
    user_id: str


class DeploymentStatusRequest(CamelModel):
    user_id: str
    status: str

    @field_validator("status")
    @classmethod
    def valid_status(cls, value: str) -> str:
        allowed = [s.value for s in DeploymentStatus]
        if value not in allowed:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(allowed)}")
        return value


class LocationUpdate(CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


# ============================================================
# COMPANY SCHEMAS
# ============================================================

class GeoPolygon(BaseModel):
    """GeoJSON Polygon; positions are [lng, lat]."""

    type: Literal["Polygon"] = "Polygon"
    coordinates: List[List[List[float]]]

    @model_validator(mode="before")
    @classmethod
    def default_type(cls, data: Any) -> Any:
        # Mark type as set so exclude_unset dumps keep it
        if isinstance(data, dict) and "type" not in data:
            data = {**data, "type": "Polygon"}
        return data

    @field_validator("coordinates")
    @classmethod
    def valid_rings(cls, rings: List[List[List[float]]]) -> List[List[List[float]]]:
        if not rings:
            raise ValueError("Safe zone polygon needs at least one ring")
        closed = []
        for ring in rings:
            for position in ring:
                if len(position) != 2:
                    raise ValueError("Safe zone positions must be [lng, lat]")
                lng, lat = position
                if not (-180 <= lng <= 180 and -90 <= lat <= 90):
                    raise ValueError("Safe zone position out of range")
            if ring and ring[0] != ring[-1]:
                ring = ring + [ring[0]]
            if len({tuple(p) for p in ring}) < 3:
                raise ValueError("Safe zone polygon needs at least 3 distinct points")
            closed.append(ring)
        return closed


class CompanyCreate(CamelModel):
    name: str
    address: str
    description: Optional[str] = None
    contact_person: str
    contact_email: EmailStr
    contact_phone: str
    safe_zone: Optional[GeoPolygon] = None
    safe_zone_label: Optional[str] = None

    @field_validator("name", "address", "contact_person", "contact_phone")
    @classmethod
    def not_blank(cls, value: str, info) -> str:
        return _required_text(value, to_camel(info.field_name))


class CompanyUpdate(CamelModel):
    id: str = Field(..., alias="_id")
    name: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    safe_zone: Optional[GeoPolygon] = None
    safe_zone_label: Optional[str] = None


# ============================================================
# DAILY TIME RECORD SCHEMAS
# ============================================================

class TimeRecordRequest(CamelModel):
    coordinates: Optional[List[float]] = None  # [lng, lat]
    remarks: Optional[str] = None

    @field_validator("coordinates")
    @classmethod
    def valid_point(cls, value: Optional[List[float]]) -> Optional[List[float]]:
        if value is None:
            return value
        if len(value) != 2:
            raise ValueError("Coordinates must be [lng, lat]")
        lng, lat = value
        if not (-180 <= lng <= 180 and -90 <= lat <= 90):
            raise ValueError("Coordinates out of range")
        return value


# ============================================================
# DOCUMENT SCHEMAS
# ============================================================

class DocumentUpdate(CamelModel):
    id: str = Field(..., alias="_id")
    document_name: Optional[str] = None
    status: Optional[DocumentStatus] = None
    remarks: Optional[str] = None
    documents: Optional[List[str]] = None


class DocumentReview(CamelModel):
    remarks: Optional[str] = None


class RemoveDocumentFilesRequest(CamelModel):
    documents: List[str]


# ============================================================
# TASK SCHEMAS
# ============================================================

class TaskUpdate(CamelModel):
    id: str = Field(..., alias="_id")
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    status: Optional[TaskStatus] = None
    assigned_to: Optional[List[str]] = None


class RemoveTaskFilesRequest(CamelModel):
    files: List[str]
    student_id: Optional[str] = None


# ============================================================
# ANNOUNCEMENT SCHEMAS
# ============================================================

class AnnouncementCreate(CamelModel):
    title: str
    content: str
    target_program: Optional[TargetProgram] = None

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, value: str, info) -> str:
        return _required_text(value, info.field_name)


class AnnouncementUpdate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    target_program: Optional[TargetProgram] = None


# ============================================================
# REQUIREMENT SCHEMAS
# ============================================================

class RequirementCreate(CamelModel):
    name: str
    program: Program

    @field_validator("name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _required_text(value, "name")


class RequirementUpdate(CamelModel):
    id: str = Field(..., alias="_id")
    name: Optional[str] = None
    program: Optional[Program] = None


# ============================================================
# CONVERSATION / MESSAGE SCHEMAS
# ============================================================

class GroupConversationCreate(CamelModel):
    name: Optional[str] = Field(None, validate_default=True)
    participants: List[str] = []
    admins: List[str] = []
    program: Optional[Program] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, value: Optional[str]) -> str:
        return _required_text(value, "Group name")


class AddMemberRequest(CamelModel):
    user_id: str


class MessageCreate(CamelModel):
    receiver: str
    content: Optional[str] = None
    image: Optional[str] = None
    receiver_model: Optional[ReceiverModel] = None

    @model_validator(mode="after")
    def content_or_image(self):
        if not (self.content and self.content.strip()) and not self.image:
            raise ValueError("Message content or image is required")
        return self


class MessageUpdate(CamelModel):
    content: str

    @field_validator("content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _required_text(value, "content")


class ConversationReadRequest(CamelModel):
    type: ConversationType = "direct"


# ============================================================
# ARCHIVE SCHEMAS
# ============================================================

class ArchiveImportRequest(CamelModel):
    users: List[Dict[str, Any]] = []
    documents: List[Dict[str, Any]] = []

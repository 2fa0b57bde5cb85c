"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- Access/refresh JWT creation and verification
- FastAPI dependencies for protected routes and role checks
"""

from datetime import datetime, timedelta
from typing import Optional

from bson import ObjectId
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from ojt_monitoring.core.config import get_settings
from ojt_monitoring.db.mongodb import COLLECTIONS, get_collection

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor (auto_error off so missing tokens get our 401 shape)
bearer_scheme = HTTPBearer(auto_error=False)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash. Malformed hashes never verify."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def looks_like_password_hash(value: str) -> bool:
    return pwd_context.identify(value) is not None if value else False


def token_payload(user: dict) -> dict:
    """Claims carried by both token types."""
    user_id = str(user["_id"])
    return {
        "sub": user_id,
        "id": user_id,
        "email": user.get("email"),
        "firstName": user.get("firstName"),
        "lastName": user.get("lastName"),
        "role": user.get("role"),
        "program": user.get("program"),
    }


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire, "type": ACCESS_TOKEN})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT refresh token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_refresh_expire_minutes))
    to_encode.update({"exp": expire, "type": REFRESH_TOKEN})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_token_pair(user: dict) -> dict:
    payload = token_payload(user)
    return {
        "accessToken": create_access_token(payload),
        "refreshToken": create_refresh_token(payload),
    }


def decode_token(token: str, expected_type: str = ACCESS_TOKEN) -> Optional[dict]:
    """Decode and verify JWT token. Returns None when invalid or of the wrong type."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("type", ACCESS_TOKEN) != expected_type:
        return None
    return payload


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Returns the token claims refreshed from the database (role and program
    may have changed since the token was issued).

    Usage:
        @router.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub") or payload.get("id")
    if not user_id or not ObjectId.is_valid(user_id):
        raise credentials_exception

    # Verify user exists and is active
    user = get_collection(COLLECTIONS["users"]).find_one(
        {"_id": ObjectId(user_id)},
        {"email": 1, "firstName": 1, "lastName": 1, "role": 1, "program": 1, "isArchived": 1},
    )
    if not user or user.get("isArchived"):
        raise credentials_exception

    return token_payload(user)


def require_roles(*roles: str):
    """Dependency factory - allow only the given roles."""

    async def checker(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in roles:
            raise HTTPException(status_code=403, detail="You do not have permission to perform this action")
        return user

    return checker


get_current_admin = require_roles("admin")
get_current_coordinator = require_roles("coordinator")
get_current_staff = require_roles("admin", "coordinator")


def ensure_can_manage(actor: dict, target: dict) -> None:
    """
    Program isolation: admins manage anyone, users manage themselves,
    coordinators manage students of their own program.
    """
    if actor["role"] == "admin" or actor["id"] == str(target["_id"]):
        return
    if (
        actor["role"] == "coordinator"
        and target.get("role") == "student"
        and actor.get("program")
        and target.get("program") == actor.get("program")
    ):
        return
    raise HTTPException(status_code=403, detail="You can only manage students of your own program")

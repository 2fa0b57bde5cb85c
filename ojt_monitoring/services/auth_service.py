"""
Auth Service - registration, login, token refresh and one-time codes.

One-time codes (password reset, email change) live in process memory with a
short expiry. They do not survive restarts and are not shared between workers.
"""

import secrets
import time
from typing import Dict, Optional, Tuple

from fastapi import HTTPException

from ojt_monitoring.core.auth import (
    REFRESH_TOKEN,
    create_token_pair,
    decode_token,
    hash_password,
    verify_password,
)
from ojt_monitoring.core.config import get_settings
from ojt_monitoring.core.logging_config import logger
from ojt_monitoring.services.conversation_service import ConversationService
from ojt_monitoring.services.email_service import get_email_service
from ojt_monitoring.services.mongo_service import USER_PUBLIC_PROJECTION, serialize_doc, to_object_id
from ojt_monitoring.services.user_service import UserService

MAX_OTP_ATTEMPTS = 5


class OTPStore:
    """In-memory one-time codes keyed by purpose (email or email_change_{id})."""

    def __init__(self, max_attempts: int = MAX_OTP_ATTEMPTS):
        self.max_attempts = max_attempts
        self._codes: Dict[str, Tuple[str, float, Optional[str]]] = {}
        self._attempts: Dict[str, int] = {}

    @staticmethod
    def generate_code() -> str:
        return f"{secrets.randbelow(900000) + 100000}"

    def purge_expired(self) -> None:
        now = time.time()
        for key in [k for k, entry in self._codes.items() if entry[1] < now]:
            self.consume(key)

    def issue(self, key: str, ttl_seconds: int, payload: Optional[str] = None) -> str:
        self.purge_expired()
        code = self.generate_code()
        self._codes[key] = (code, time.time() + ttl_seconds, payload)
        self._attempts.pop(key, None)
        return code

    def check(self, key: str, code: str, label: str = "Reset code") -> Optional[str]:
        """
        Verify a code without consuming it. Returns the stored payload.
        A code is discarded after max_attempts wrong guesses.

        Raises:
            HTTPException 400 when expired/unknown or wrong
        """
        entry = self._codes.get(key)
        if not entry or entry[1] < time.time():
            self.consume(key)
            raise HTTPException(status_code=400, detail=f"{label} has expired or is invalid")
        if not secrets.compare_digest(entry[0], str(code).strip()):
            self._attempts[key] = self._attempts.get(key, 0) + 1
            if self._attempts[key] >= self.max_attempts:
                logger.warning(f"One-time code for {key} discarded after {self.max_attempts} failed attempts")
                self.consume(key)
            raise HTTPException(status_code=400, detail=f"Invalid {label.lower()}")
        return entry[2]

    def consume(self, key: str) -> None:
        self._codes.pop(key, None)
        self._attempts.pop(key, None)

    def clear(self) -> None:
        self._codes.clear()
        self._attempts.clear()


otp_store = OTPStore()


def email_change_key(user_id: str) -> str:
    return f"email_change_{user_id}"


class AuthService:

    def __init__(self):
        self.users = UserService()
        self.otp_ttl = get_settings().otp_expire_minutes * 60

    def _auth_payload(self, user: dict) -> dict:
        public = {k: v for k, v in user.items() if k != "password"}
        return {"user": serialize_doc(public), **create_token_pair(user)}

    async def register(self, data: dict) -> dict:
        user = self.users.insert_user(data)
        logger.info(f"Registered {user['role']} account {user['_id']}")
        await ConversationService().join_program_group(user)
        return self._auth_payload(user)

    def login(self, user_name: str, password: str) -> dict:
        user = self.users.get_active_by_username(user_name)
        if not user or not verify_password(password, user.get("password")):
            raise HTTPException(status_code=401, detail="Invalid userName or password")
        return self._auth_payload(user)

    def refresh(self, refresh_token: str) -> dict:
        payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN)
        if not payload:
            raise HTTPException(status_code=401, detail="Invalid or expired refresh token")
        user = self.users.collection.find_one({"_id": to_object_id(payload.get("sub"))})
        if not user or user.get("isArchived"):
            raise HTTPException(status_code=401, detail="User not found")
        return self._auth_payload(user)

    def get_profile(self, user_id: str) -> dict:
        user = self.users.collection.find_one({"_id": to_object_id(user_id)}, USER_PUBLIC_PROJECTION)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return serialize_doc(user)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = self.users.get_or_404(user_id)
        if not verify_password(current_password, user.get("password")):
            raise HTTPException(status_code=400, detail="Current password is incorrect")
        self.users.update_fields(user["_id"], {"password": hash_password(new_password)})

    # ------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------

    async def forgot_password(self, email: str) -> None:
        user = self.users.get_active_by_email(email)
        if not user:
            raise HTTPException(status_code=404, detail="No account found with this email")
        code = otp_store.issue(email.lower(), self.otp_ttl)
        await get_email_service().send_password_reset_code(user, code)
        logger.info(f"Password reset code issued for user {user['_id']}")

    def verify_reset_code(self, email: str, code: str) -> None:
        otp_store.check(email.lower(), code)

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        key = email.lower()
        otp_store.check(key, code)
        user = self.users.get_active_by_email(email)
        if not user:
            raise HTTPException(status_code=404, detail="No account found with this email")
        self.users.update_fields(user["_id"], {"password": hash_password(new_password)})
        otp_store.consume(key)
        logger.info(f"Password reset completed for user {user['_id']}")

    # ------------------------------------------------------------
    # Email change (admins)
    # ------------------------------------------------------------

    async def request_email_change(self, user_id: str, new_email: str) -> None:
        user = self.users.get_or_404(user_id)
        new_email = new_email.lower()
        if new_email == user.get("email"):
            raise HTTPException(status_code=400, detail="New email must be different from the current email")
        if self.users.get_active_by_email(new_email):
            raise HTTPException(status_code=400, detail="Email is already in use")

        code = otp_store.issue(email_change_key(user_id), self.otp_ttl, payload=new_email)
        await get_email_service().send_email_change_code(user, new_email, code)

    def verify_email_change(self, user_id: str, code: str) -> dict:
        key = email_change_key(user_id)
        new_email = otp_store.check(key, code, label="Verification code")
        if self.users.get_active_by_email(new_email):
            raise HTTPException(status_code=400, detail="Email is already in use")
        self.users.update_fields(user_id, {"email": new_email})
        otp_store.consume(key)
        return self.get_profile(user_id)

"""
Authentication Routes

POST /auth/register               - Register and receive tokens
POST /auth/login                  - Login with userName/password
POST /auth/refresh                - Exchange a refresh token
GET  /auth/profile/{id}           - User profile
POST /auth/change-password        - Change own password
POST /auth/logout                 - Logout (stateless)
POST /auth/forgot-password        - Email a reset code
POST /auth/verify-reset-code      - Check a reset code
POST /auth/reset-password         - Set a new password with a reset code
POST /auth/initiate-password-reset - Email a reset code to the logged-in user
POST /auth/change-email-request   - Admin: send a code to the new email
POST /auth/change-email-verify    - Admin: confirm the new email
"""

from fastapi import APIRouter, Depends

from ojt_monitoring.core.auth import get_current_admin, get_current_user
from ojt_monitoring.schemas.schemas import (
    AuthResponse,
    ChangeEmailRequest,
    ChangeEmailVerifyRequest,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyResetCodeRequest,
)
from ojt_monitoring.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(request: RegisterRequest):
    """
    Register a new account.

    Students and coordinators with a program join that program's group chat.
    """
    data = request.to_document()
    data.setdefault("role", request.role)
    data = await AuthService().register(data)
    return AuthResponse(message="User registered successfully", data=data)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest):
    """
    Login and receive access + refresh tokens.

    Include token in requests: Authorization: Bearer <token>
    """
    data = AuthService().login(request.user_name, request.password)
    return AuthResponse(message="Login successful", data=data)


@router.post("/refresh", response_model=AuthResponse)
async def refresh(request: RefreshRequest):
    data = AuthService().refresh(request.refresh_token)
    return AuthResponse(message="Token refreshed successfully", data=data)


@router.get("/profile/{user_id}")
async def get_profile(user_id: str, user: dict = Depends(get_current_user)):
    return AuthService().get_profile(user_id)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(request: ChangePasswordRequest, user: dict = Depends(get_current_user)):
    AuthService().change_password(user["id"], request.current_password, request.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/logout", response_model=MessageResponse)
async def logout(user: dict = Depends(get_current_user)):
    """Tokens are stateless; the client discards them."""
    return MessageResponse(message="Logged out successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(request: ForgotPasswordRequest):
    await AuthService().forgot_password(request.email)
    return MessageResponse(message="Password reset code sent to your email")


@router.post("/verify-reset-code", response_model=MessageResponse)
async def verify_reset_code(request: VerifyResetCodeRequest):
    AuthService().verify_reset_code(request.email, request.code)
    return MessageResponse(message="Reset code verified")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(request: ResetPasswordRequest):
    AuthService().reset_password(request.email, request.code, request.new_password)
    return MessageResponse(message="Password has been reset successfully")


@router.post("/initiate-password-reset", response_model=MessageResponse)
async def initiate_password_reset(user: dict = Depends(get_current_user)):
    await AuthService().forgot_password(user["email"])
    return MessageResponse(message="Password reset code sent to your email")


@router.post("/change-email-request", response_model=MessageResponse)
async def change_email_request(request: ChangeEmailRequest, admin: dict = Depends(get_current_admin)):
    await AuthService().request_email_change(admin["id"], request.new_email)
    return MessageResponse(message="Verification code sent to the new email")


@router.post("/change-email-verify")
async def change_email_verify(request: ChangeEmailVerifyRequest, admin: dict = Depends(get_current_admin)):
    user = AuthService().verify_email_change(admin["id"], request.code)
    return {"message": "Email updated successfully", "user": user}

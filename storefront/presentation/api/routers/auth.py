"""Account endpoints: registration, login, password reset and profile."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from ....application.services.auth_service import AuthService
from ....core.dependencies import get_auth_service
from ....domain.models import ProfilePatch, User
from ....services.token_service import TokenClaim
from ...api.dependencies import require_admin, require_sign_in
from ...api.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    # a duplicate email is reported by the error handler as a 200 with success=false
    user = auth_service.register(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
        address=payload.address,
        answer=payload.answer,
    )
    return {
        "success": True,
        "message": "User Register Successfully",
        "user": UserResponse.model_validate(user),
    }


@router.post("/login")
def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    result = auth_service.login(payload.email, payload.password)
    return {
        "success": True,
        "message": "login successfully",
        "user": UserResponse.model_validate(result.user),
        "token": result.token,
    }


@router.post("/forgot-password")
def forgot_password(
    payload: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    auth_service.forgot_password(payload.email, payload.answer, payload.new_password)
    return {"success": True, "message": "Password Reset Successfully"}


@router.put("/profile")
def update_profile(
    payload: ProfileUpdateRequest,
    claim: TokenClaim = Depends(require_sign_in),
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    patch = ProfilePatch(
        name=payload.name,
        password=payload.password,
        phone=payload.phone,
        address=payload.address,
    )
    user = auth_service.update_profile(claim.user_id, patch)
    return {
        "success": True,
        "message": "Profile Updated Successfully",
        "updatedUser": UserResponse.model_validate(user),
    }


@router.get("/user-auth")
def user_auth(_: TokenClaim = Depends(require_sign_in)) -> Dict[str, bool]:
    return {"ok": True}


@router.get("/admin-auth")
def admin_auth(_: User = Depends(require_admin)) -> Dict[str, bool]:
    return {"ok": True}


@router.get("/users")
def list_users(
    _: User = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
) -> List[UserResponse]:
    return [UserResponse.model_validate(user) for user in auth_service.list_users()]

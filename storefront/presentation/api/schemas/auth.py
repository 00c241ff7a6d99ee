"""Pydantic schemas for account endpoints.

Request fields are optional on purpose: the service reports the first missing
field by name instead of a generic 422.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from ....domain.models import UserRole


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    answer: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None
    answer: Optional[str] = None
    new_password: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    """Only supplied fields are changed. Email and role are not editable."""

    name: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class UserResponse(BaseModel):
    """Public view of an account: no password hash, no security answer."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: str
    address: str
    role: UserRole

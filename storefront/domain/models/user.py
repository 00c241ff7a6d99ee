"""User domain model for storefront customers and administrators."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


@dataclass(slots=True)
class User:
    """
    Registered storefront account.

    Attributes:
        id: Opaque unique identifier
        name: Display name
        email: Login identity (unique, lower-cased)
        password_hash: bcrypt hash of the password
        phone: Contact phone number
        address: Shipping address
        answer: Security-question answer, used only for password resets
        role: Access role, ``customer`` unless promoted by an administrator
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    id: str
    name: str
    email: str
    password_hash: str
    phone: str
    address: str
    answer: str
    role: UserRole
    created_at: datetime
    updated_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    def public_view(self) -> Dict[str, Any]:
        """Fields safe to hand out to clients: no password hash, no answer."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "role": self.role.value,
        }


@dataclass(slots=True, frozen=True)
class ProfilePatch:
    """Partial profile update. ``None`` means "leave unchanged"."""

    name: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    def apply(self, user: User, password_hash: Optional[str] = None) -> User:
        """Return a copy of ``user`` with the supplied fields merged in.

        The caller hashes ``password`` and passes the result as ``password_hash``.
        """
        changes: Dict[str, Any] = {}
        if self.name:
            changes["name"] = self.name
        if self.phone:
            changes["phone"] = self.phone
        if self.address:
            changes["address"] = self.address
        if password_hash:
            changes["password_hash"] = password_hash
        return replace(user, **changes)

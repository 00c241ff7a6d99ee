from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ...domain.errors import (
    DuplicateUser,
    InvalidCredentials,
    NoMatch,
    NotFound,
    Unauthorized,
    UserNotFound,
    ValidationFailed,
    WrongPassword,
)
from ...domain.models import ProfilePatch, User, UserRole
from ...domain.ports.persistence import UserRepository
from ...services.password_hasher import PasswordHasher
from ...services.token_service import TokenClaim, TokenService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(slots=True)
class LoginResult:
    user: Dict[str, Any]
    token: str


def _clean(value: Optional[str]) -> str:
    return value.strip() if value else ""


def _normalise_email(email: Optional[str]) -> str:
    return _clean(email).lower()


class AuthService:
    """Registration, login, password reset and role checks for storefront accounts."""

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenService,
    ) -> None:
        self._users = users
        self._hasher = hasher
        self._tokens = tokens

    # ------------------------------------------------------------------
    def ensure_default_admin(self, email: Optional[str], password: Optional[str]) -> Optional[User]:
        if not email or not password:
            return None
        email_clean = _normalise_email(email)
        existing = self._users.get_user_by_email(email_clean)
        if existing:
            if not existing.is_admin:
                logger.info("Promoting %s to administrator", email_clean)
                self._users.set_user_role(existing.id, UserRole.ADMIN)
                return self._users.get_user_by_id(existing.id)
            return existing
        logger.info("Creating default administrator account for %s", email_clean)
        return self._users.create_user(
            name="Administrator",
            email=email_clean,
            password_hash=self._hasher.hash(password),
            phone="-",
            address="-",
            answer="-",
            role=UserRole.ADMIN,
        )

    def register(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        phone: Optional[str],
        address: Optional[str],
        answer: Optional[str],
    ) -> User:
        """
        Register a new customer.

        Returns:
            The stored user, password hash included

        Raises:
            ValidationFailed: First missing field, in the order name, email,
                password, phone, address, answer
            DuplicateUser: If the email is already registered
        """
        required = (
            ("name", name, "Name is Required"),
            ("email", email, "Email is Required"),
            ("password", password, "Password is Required"),
            ("phone", phone, "Phone no is Required"),
            ("address", address, "Address is Required"),
            ("answer", answer, "Answer is Required"),
        )
        for field, value, message in required:
            if not _clean(value):
                raise ValidationFailed(message, field=field)

        email_clean = _normalise_email(email)
        if self._users.get_user_by_email(email_clean):
            raise DuplicateUser()

        user = self._users.create_user(
            name=_clean(name),
            email=email_clean,
            password_hash=self._hasher.hash(password),
            phone=_clean(phone),
            address=_clean(address),
            answer=_clean(answer),
        )
        logger.info("User %s registered", user.id)
        return user

    def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        if not _clean(email) or not password:
            raise InvalidCredentials()
        user = self._users.get_user_by_email(_normalise_email(email))
        if not user:
            self._hasher.verify(password, self._hasher.dummy_hash)
            logger.warning("Login attempt for unknown email")
            raise UserNotFound()
        if not self._hasher.verify(password, user.password_hash):
            logger.warning("Login attempt with wrong password for user %s", user.id)
            raise WrongPassword()
        return LoginResult(user=user.public_view(), token=self._tokens.issue(user.id))

    def forgot_password(
        self,
        email: Optional[str],
        answer: Optional[str],
        new_password: Optional[str],
    ) -> None:
        if not _clean(email):
            raise ValidationFailed("Email is required", field="email")
        if not _clean(answer):
            raise ValidationFailed("Answer is required", field="answer")
        if not new_password:
            raise ValidationFailed("New Password is required", field="new_password")
        user = self._users.get_user_by_email_and_answer(_normalise_email(email), _clean(answer))
        if not user:
            raise NoMatch()
        self._users.update_user_password(user.id, self._hasher.hash(new_password))
        logger.info("Password reset for user %s", user.id)

    def update_profile(self, user_id: str, patch: ProfilePatch) -> User:
        user = self._users.get_user_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        password_hash = None
        if patch.password:
            if len(patch.password) < MIN_PASSWORD_LENGTH:
                raise ValidationFailed(
                    "Password is required and 6 character long", field="password"
                )
            password_hash = self._hasher.hash(patch.password)
        return self._users.save_user_profile(patch.apply(user, password_hash=password_hash))

    def list_users(self) -> List[User]:
        return self._users.list_users()

    # Gate ---------------------------------------------------------------
    def authenticate(self, token: Optional[str]) -> TokenClaim:
        return self._tokens.verify(token)

    def require_role(self, user_id: str, role: UserRole) -> User:
        """Re-read the account on every call so role changes apply to live tokens."""
        user = self._users.get_user_by_id(user_id)
        if not user or user.role is not role:
            raise Unauthorized()
        return user

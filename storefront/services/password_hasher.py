"""One-way password hashing backed by bcrypt."""

import logging

import bcrypt

from ..domain.errors import ValidationFailed

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Hash and compare passwords with a configurable bcrypt cost."""

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds
        # compared against on unknown-email logins; must share the real cost
        self._dummy_hash = bcrypt.hashpw(
            b"storefront-dummy", bcrypt.gensalt(rounds=rounds)
        ).decode("utf-8")

    @property
    def dummy_hash(self) -> str:
        return self._dummy_hash

    def hash(self, password: str) -> str:
        """
        Hash a plain text password.

        Raises:
            ValidationFailed: If the password exceeds bcrypt's input limit
        """
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValidationFailed("Password is too long", field="password")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("Rejected password comparison against malformed input")
            return False

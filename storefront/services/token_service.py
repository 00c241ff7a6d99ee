from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from ..domain.errors import Unauthenticated

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TokenClaim:
    """Identity carried by a verified bearer token."""

    user_id: str
    expires_at: datetime


class TokenService:
    """Issues and verifies signed, time-limited bearer tokens."""

    def __init__(
        self,
        secret_key: str,
        token_exp_days: int = 7,
        algorithm: str = "HS256",
    ) -> None:
        if not secret_key:
            raise RuntimeError("JWT_SECRET is not configured.")
        if secret_key == "change-me":
            logger.warning("JWT_SECRET uses the default value. Configure a real secret in production.")
        self._secret_key = secret_key
        self._lifetime = timedelta(days=token_exp_days)
        self._algorithm = algorithm

    def issue(self, user_id: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(tz=timezone.utc)
        payload = {"sub": user_id, "iat": issued_at, "exp": issued_at + self._lifetime}
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> TokenClaim:
        if not token:
            raise Unauthenticated()
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            raise Unauthenticated() from exc
        user_id = payload.get("sub")
        expires = payload.get("exp")
        if not isinstance(user_id, str) or not user_id or expires is None:
            raise Unauthenticated()
        return TokenClaim(
            user_id=user_id,
            expires_at=datetime.fromtimestamp(int(expires), tz=timezone.utc),
        )

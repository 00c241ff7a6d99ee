from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.auth_service import AuthService
from ...core.dependencies import get_auth_service
from ...domain.errors import Unauthenticated
from ...domain.models import User, UserRole
from ...services.token_service import TokenClaim

_bearer_scheme = HTTPBearer(auto_error=False)


def require_sign_in(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenClaim:
    """Verify the bearer token and expose its identity on ``request.state``."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated()
    claim = auth_service.authenticate(credentials.credentials)
    request.state.identity = claim
    return claim


def require_admin(
    claim: TokenClaim = Depends(require_sign_in),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    return auth_service.require_role(claim.user_id, UserRole.ADMIN)

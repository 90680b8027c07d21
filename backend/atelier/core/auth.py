"""Authentication module exposing FastAPI dependencies.

Public interface:
    ``require_auth``  -- returns the acting user's AuthContext or raises 401.
    ``require_admin`` -- returns AuthContext, raises 403 unless role is admin.

The resolved AuthContext is the "current actor" that services receive on
every mutating call: it becomes the owner of uploaded media and the user
recorded in the audit log.

When ``settings.auth_enabled`` is False all dependencies return an anonymous
admin context so the development workflow is unbroken.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .token_factory import decode_token
from ..exceptions import AuthenticationError, ForbiddenError

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)

ADMIN_ROLES = frozenset({"admin"})


@dataclass(frozen=True)
class AuthContext:
    """Resolved identity of the caller."""

    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


ANONYMOUS = AuthContext(user_id="anonymous", role="admin")


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthContext:
    """Require a valid JWT and return the caller's AuthContext.

    When ``AUTH_ENABLED=false`` returns the anonymous admin context.
    """
    if not settings.auth_enabled:
        return ANONYMOUS

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return AuthContext(user_id=payload.sub, role=payload.role)


def require_admin(
    auth: AuthContext = Depends(require_auth),
) -> AuthContext:
    """Require the authenticated user to be an admin. Raises 403 otherwise."""
    if not auth.is_admin:
        logger.warning("Admin access denied", extra={"user_id": auth.user_id, "role": auth.role})
        raise ForbiddenError("Admin access required")
    return auth

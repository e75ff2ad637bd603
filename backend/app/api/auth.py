"""Admin Auth — shared bearer secret check for the override endpoint.

Invariants:
    - Runs before the request body is read: a rejected caller never reaches the engine
    - Empty ADMIN_TOKEN rejects everyone (no "empty bearer" match)
    - Token compared in constant time

Design Decisions:
    - HTTPBearer(auto_error=False): missing/garbled headers become our UnauthorizedError
      (uniform error envelope) instead of FastAPI's 403
"""

import secrets

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config import Settings, get_settings
from app.core.errors import ErrorContext, UnauthorizedError

http_bearer = HTTPBearer(auto_error=False)


def require_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    settings: Settings = Depends(get_settings),
) -> None:
    """Raise UnauthorizedError unless the caller presents ADMIN_TOKEN."""
    expected = settings.admin_token
    presented = credentials.credentials if credentials else ""
    if not expected or not secrets.compare_digest(
        presented.encode(), expected.encode(),
    ):
        raise UnauthorizedError(
            ErrorContext(operation="admin_set", path=request.url.path),
        )

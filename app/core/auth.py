# app/core/auth.py
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from app.core.errors import UnauthorizedError
from app.core.security import decode_access_token
from app.database import get_session
from app.models.user import Admin

# HTTP Bearer scheme:
# - auto_error=False => a missing Authorization header does not raise the
#   default 403; require_admin answers with our own 401 body instead.
bearer_scheme = HTTPBearer(auto_error=False)


def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Admin:
    """
    Resolve the admin behind a Bearer token.

    Flow:
      1. No Authorization header => 401.
      2. Decode JWT (signature + exp) => extract 'sub' and 'role'.
      3. Load the Admin row by id; missing => 401.

    Returns:
        The authenticated Admin.

    Raises:
        UnauthorizedError(401): on any failure above.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Access token required")

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")

    if payload.get("role") != "admin" or not sub:
        raise UnauthorizedError("Invalid token")

    try:
        admin_id = int(sub)
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid sub in token")

    admin = session.get(Admin, admin_id)
    if admin is None:
        raise UnauthorizedError("Admin no longer exists")

    return admin

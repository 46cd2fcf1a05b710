# app/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.core.config import get_settings
from app.core.errors import UnauthorizedError

settings = get_settings()

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(admin_id: int, username: str) -> tuple[str, int]:
    """
    Issue a signed admin access token.

    Claims:
      - sub: admin id (string, as JWT requires)
      - username
      - role: "admin"
      - exp: now + ADMIN_TOKEN_EXPIRE_MINUTES

    Returns:
        (token, expires_in_seconds)
    """
    expires_in = settings.ADMIN_TOKEN_EXPIRE_MINUTES * 60
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(admin_id),
        "username": username,
        "role": "admin",
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    token = jwt.encode(
        claims,
        settings.ADMIN_JWT_SECRET,
        algorithm=settings.ADMIN_JWT_ALG,
    )
    return token, expires_in


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an admin access token.

    Verification:
      - signature (ADMIN_JWT_ALG using ADMIN_JWT_SECRET)
      - expiration time (exp)

    Raises:
        UnauthorizedError: if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.ADMIN_JWT_SECRET,
            algorithms=[settings.ADMIN_JWT_ALG],
        )
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")

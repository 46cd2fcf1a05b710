# app/services/admin_service.py
import logging

from sqlmodel import Session

from app.core.errors import UnauthorizedError
from app.core.security import create_access_token, verify_password
from app.repositories.user_repo import AdminRepository
from app.schemas.admin import AdminLogin, AdminToken

logger = logging.getLogger(__name__)


class AdminAuthService:
    """
    Username/password login for the back-office.
    """

    def __init__(self, repo: AdminRepository):
        self.repo = repo

    def login(self, session: Session, payload: AdminLogin) -> AdminToken:
        """
        Check credentials and issue a bearer token.

        Raises:
            UnauthorizedError: unknown username or wrong password (same message).
        """
        admin = self.repo.get_by_username(session, payload.username)
        if admin is None or not verify_password(payload.password, admin.password_hash):
            logger.info("Failed admin login for %r", payload.username)
            raise UnauthorizedError("Invalid credentials")

        token, expires_in = create_access_token(admin.id, admin.username)
        logger.info("Admin %s logged in", admin.username)
        return AdminToken(access_token=token, expires_in=expires_in)

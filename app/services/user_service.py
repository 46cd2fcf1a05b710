# app/services/user_service.py
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.user import User
from app.repositories.user_repo import UserRepository
from app.schemas.user import TelegramUser


class UserService:
    """
    Business logic for storefront customers.

    Responsibilities:
      - resolve the customer of an order/review (explicit id or Telegram upsert)
      - admin listing
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def upsert_telegram_user(
        self,
        session: Session,
        telegram_user: TelegramUser,
        phone: str | None = None,
    ) -> User:
        """
        Find the user by telegram_id and refresh its contact fields, or
        create it. Flushes only; the caller commits.

        On update, the phone is only overwritten when a new one is given.
        """
        user = self.repo.get_by_telegram_id(session, telegram_user.telegram_id)

        if user is None:
            user = User(
                telegram_id=telegram_user.telegram_id,
                telegram_username=telegram_user.telegram_username,
                first_name=telegram_user.telegram_first_name,
                last_name=telegram_user.telegram_last_name,
                phone=phone,
            )
        else:
            user.telegram_username = telegram_user.telegram_username
            user.first_name = telegram_user.telegram_first_name
            user.last_name = telegram_user.telegram_last_name
            if phone:
                user.phone = phone
            user.updated_at = datetime.now(timezone.utc)

        return self.repo.add(session, user)

    def resolve_customer(
        self,
        session: Session,
        user_id: int | None,
        telegram_user: TelegramUser | None,
        phone: str | None = None,
    ) -> User:
        """
        Pick the customer for an order or review.

          - explicit user_id wins (must exist)
          - otherwise upsert by telegram_user.telegram_id

        Raises:
            ValidationError: neither identity given.
            NotFoundError: user_id does not exist.
        """
        if user_id is not None:
            user = self.repo.get_by_id(session, user_id)
            if user is None:
                raise NotFoundError("User not found")
            return user

        if telegram_user is None:
            raise ValidationError(
                "user_id or telegram_user.telegram_id is required",
                field="user_id",
            )

        return self.upsert_telegram_user(session, telegram_user, phone=phone)

    def save_telegram_user(
        self,
        session: Session,
        telegram_user: TelegramUser,
        phone: str | None = None,
    ) -> User:
        """Public POST /users/telegram: upsert and commit.

        A concurrent first insert of the same telegram_id loses on the
        unique key; the second pass finds that row and updates it.
        """
        try:
            user = self.upsert_telegram_user(session, telegram_user, phone=phone)
            session.commit()
        except IntegrityError:
            session.rollback()
            user = self.upsert_telegram_user(session, telegram_user, phone=phone)
            session.commit()
        session.refresh(user)
        return user

    # ----- Admin operations -----

    def list_users(self, session: Session, skip: int, limit: int) -> list[User]:
        """List users with pagination (admin only)."""
        return self.repo.list(session, skip=skip, limit=limit)

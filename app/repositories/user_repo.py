# app/repositories/user_repo.py
from sqlmodel import Session, select

from app.models.user import Admin, User


class UserRepository:
    """
    Data access layer for User.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic

    NOTE:
      - Writes only flush; customers are upserted inside the order and
        review transactions, so the service decides when to commit.
    """

    # ----- Basic CRUD -----

    def get_by_id(self, session: Session, user_id: int) -> User | None:
        """Return a User by primary key, or None if not found."""
        return session.get(User, user_id)

    def get_by_telegram_id(self, session: Session, telegram_id: str) -> User | None:
        """Return a User by unique telegram_id, or None if not found."""
        stmt = select(User).where(User.telegram_id == telegram_id)
        return session.exec(stmt).first()

    def list(self, session: Session, skip: int = 0, limit: int = 50) -> list[User]:
        """
        Paginated user listing, newest first.

        Args:
            skip: offset rows (for paging)
            limit: max number of rows returned
        """
        stmt = select(User).order_by(User.created_at.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def add(self, session: Session, user: User) -> User:
        """Insert or update a User without committing; id is populated."""
        session.add(user)
        session.flush()
        session.refresh(user)
        return user


class AdminRepository:
    def get_by_username(self, session: Session, username: str) -> Admin | None:
        stmt = select(Admin).where(Admin.username == username)
        return session.exec(stmt).first()

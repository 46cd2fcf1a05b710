# app/repositories/review_repo.py
from sqlmodel import Session, select

from app.models.product import Product
from app.models.review import Review
from app.models.user import User


class ReviewRepository:
    """
    Data access layer for reviews. Reads join the product name and the
    reviewer's Telegram handle.
    """

    def get_by_id(self, session: Session, review_id: int) -> Review | None:
        return session.get(Review, review_id)

    def list_with_refs(
        self,
        session: Session,
        only_approved: bool,
        skip: int = 0,
        limit: int = 50,
    ) -> list[tuple[Review, str | None, User | None]]:
        stmt = (
            select(Review, Product.name, User)
            .join(Product, Product.id == Review.product_id, isouter=True)
            .join(User, User.id == Review.user_id, isouter=True)
        )
        if only_approved:
            stmt = stmt.where(Review.is_approved == True)  # noqa: E712
        stmt = stmt.order_by(Review.created_at.desc(), Review.id.desc()).offset(skip).limit(limit)
        return [(r, name, u) for r, name, u in session.exec(stmt).all()]

    def add(self, session: Session, review: Review) -> Review:
        session.add(review)
        session.flush()
        session.refresh(review)
        return review

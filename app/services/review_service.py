# app/services/review_service.py
import logging
import math
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.errors import NotFoundError
from app.models.review import Review
from app.models.user import User
from app.repositories.product_repo import ProductRepository
from app.repositories.review_repo import ReviewRepository
from app.schemas.review import ReviewCreate, ReviewModeration, ReviewRead
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def _clamp_rating(rating: float) -> int:
    """Clamp into MIN_RATING..MAX_RATING, then round half up (4.5 -> 5)."""
    return math.floor(max(MIN_RATING, min(MAX_RATING, rating)) + 0.5)


class ReviewService:
    """
    Customer reviews with admin moderation.

    New reviews are hidden until an admin approves them.
    """

    def __init__(
        self,
        repo: ReviewRepository,
        product_repo: ProductRepository,
        user_service: UserService,
    ):
        self.repo = repo
        self.product_repo = product_repo
        self.user_service = user_service

    @staticmethod
    def _to_read(review: Review, product_name: str | None, user: User | None) -> ReviewRead:
        return ReviewRead(
            id=review.id,
            user_id=review.user_id,
            product_id=review.product_id,
            product_name=product_name,
            telegram_username=user.telegram_username if user else None,
            first_name=user.first_name if user else None,
            rating=review.rating,
            review_text=review.review_text,
            is_approved=review.is_approved,
            created_at=review.created_at,
        )

    def create_review(self, session: Session, payload: ReviewCreate) -> ReviewRead:
        """
        Store a review for moderation.

        - customer resolved like orders (user_id or Telegram upsert)
        - product is optional but must exist when given
        - rating is clamped into 1..5
        """
        try:
            user = self.user_service.resolve_customer(
                session, payload.user_id, payload.telegram_user
            )

            product_name = None
            if payload.product_id is not None:
                product = self.product_repo.get_by_id(session, payload.product_id)
                if product is None:
                    raise NotFoundError("Product not found")
                product_name = product.name

            review = self.repo.add(
                session,
                Review(
                    user_id=user.id,
                    product_id=payload.product_id,
                    rating=_clamp_rating(payload.rating),
                    review_text=payload.review_text,
                    is_approved=False,
                ),
            )
            session.commit()
        except Exception:
            session.rollback()
            raise

        session.refresh(review)
        logger.info("Review %s submitted by user %s", review.id, review.user_id)
        return self._to_read(review, product_name, user)

    def list_public_reviews(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[ReviewRead]:
        rows = self.repo.list_with_refs(session, only_approved=True, skip=skip, limit=limit)
        return [self._to_read(r, name, u) for r, name, u in rows]

    # ----- Admin operations -----

    def list_all_reviews(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[ReviewRead]:
        rows = self.repo.list_with_refs(session, only_approved=False, skip=skip, limit=limit)
        return [self._to_read(r, name, u) for r, name, u in rows]

    def set_approval(
        self,
        session: Session,
        review_id: int,
        payload: ReviewModeration,
    ) -> ReviewRead:
        """Approve or hide a review."""
        review = self.repo.get_by_id(session, review_id)
        if review is None:
            raise NotFoundError("Review not found")

        review.is_approved = payload.is_approved
        review.updated_at = datetime.now(timezone.utc)
        self.repo.add(session, review)
        session.commit()
        session.refresh(review)

        product = (
            self.product_repo.get_by_id(session, review.product_id)
            if review.product_id
            else None
        )
        user = self.user_service.repo.get_by_id(session, review.user_id)
        return self._to_read(review, product.name if product else None, user)

# app/routers/reviews.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.database import get_session
from app.repositories.product_repo import ProductRepository
from app.repositories.review_repo import ReviewRepository
from app.repositories.user_repo import UserRepository
from app.schemas.review import ReviewCreate, ReviewRead
from app.services.review_service import ReviewService
from app.services.user_service import UserService

router = APIRouter(prefix="/reviews", tags=["Reviews"])

service = ReviewService(
    ReviewRepository(),
    ProductRepository(),
    UserService(UserRepository()),
)


@router.get("", response_model=list[ReviewRead])
def list_reviews(
    session: Session = Depends(get_session),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """
    Approved reviews, newest first.
    """
    return service.list_public_reviews(session, skip=skip, limit=limit)


@router.post(
    "",
    response_model=ReviewRead,
    status_code=status.HTTP_201_CREATED,
)
def create_review(
    payload: ReviewCreate,
    session: Session = Depends(get_session),
):
    """
    Submit a review. It stays hidden until an admin approves it.
    """
    return service.create_review(session, payload)

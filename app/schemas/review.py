# app/schemas/review.py
import math
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.user import TelegramUser


class ReviewCreate(SQLModel):
    """
    Payload for POST /reviews.

    - rating may be fractional; the service rounds it half up and clamps
      it into 1..5 instead of rejecting it
    - is_approved is never taken from the client
    """

    telegram_user: TelegramUser | None = None
    user_id: int | None = None
    product_id: str | None = Field(default=None, max_length=64)
    rating: float
    review_text: str | None = Field(default=None, max_length=2000)

    @field_validator("rating")
    @classmethod
    def finite_rating(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("rating must be a number")
        return v

    @field_validator("review_text")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class ReviewRead(SQLModel):
    id: int
    user_id: int
    product_id: str | None = None
    product_name: str | None = None
    telegram_username: str | None = None
    first_name: str | None = None
    rating: int
    review_text: str | None = None
    is_approved: bool
    created_at: datetime


class ReviewModeration(SQLModel):
    """
    Admin payload: approve (True) or hide (False) a review.
    """

    model_config = ConfigDict(extra="forbid")

    is_approved: bool

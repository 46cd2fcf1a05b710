# app/models/user.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Storefront customer.

    Identity:
      - telegram_id: id from the Telegram Mini App payload (unique)

    Rows are created on the first order or review and updated on later
    orders (upsert by telegram_id). Customers never log in here.
    """

    __tablename__ = "users"

    id: int | None = Field(
        default=None,
        primary_key=True,
    )

    telegram_id: str = Field(
        max_length=64,
        unique=True,
        index=True,
        description="Telegram user id",
    )

    telegram_username: str | None = Field(default=None, max_length=64)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)

    phone: str | None = Field(
        default=None,
        max_length=20,
        description="Last phone number used at checkout",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class Admin(SQLModel, table=True):
    """
    Back-office account. Only the password hash is stored.
    """

    __tablename__ = "admins"

    id: int | None = Field(default=None, primary_key=True)

    username: str = Field(
        max_length=50,
        unique=True,
        index=True,
    )

    password_hash: str

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

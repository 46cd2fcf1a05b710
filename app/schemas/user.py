# app/schemas/user.py
from datetime import datetime

from pydantic import field_validator
from sqlmodel import SQLModel, Field


class TelegramUser(SQLModel):
    """
    Identity payload from the Telegram Mini App (initDataUnsafe.user).

    telegram_id is accepted as a number or a string and stored as string.
    """

    telegram_id: str = Field(min_length=1, max_length=64)
    telegram_username: str | None = Field(default=None, max_length=64)
    telegram_first_name: str | None = Field(default=None, max_length=100)
    telegram_last_name: str | None = Field(default=None, max_length=100)

    @field_validator("telegram_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        if isinstance(v, bool):
            raise ValueError("telegram_id must be a number or string")
        if isinstance(v, int):
            return str(v)
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("telegram_username")
    @classmethod
    def normalize_username(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip().lstrip("@")
        return v or None

    @field_validator("telegram_first_name", "telegram_last_name")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class TelegramUserUpsert(TelegramUser):
    """Payload for POST /users/telegram."""

    phone: str | None = Field(default=None, max_length=20)


class UserRead(SQLModel):
    """Response schema returned to clients."""

    id: int
    telegram_id: str
    telegram_username: str | None
    first_name: str | None
    last_name: str | None
    phone: str | None
    created_at: datetime
    updated_at: datetime

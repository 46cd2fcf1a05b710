# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres connection string, or sqlite:// for local runs)
      - ADMIN_JWT_SECRET (signing secret for admin access tokens)

    Optional:
      - ADMIN_USERNAME / ADMIN_PASSWORD (bootstrap admin created on startup)
      - TELEGRAM_BOT_TOKEN + TELEGRAM_GROUP_CHAT_ID or TELEGRAM_ADMIN_CHAT_ID
        (order notifications are skipped when missing)
    """

    PROJECT_NAME: str = "Paradise Vape Shop API"
    API_PREFIX: str = "/api"

    # Database
    DATABASE_URL: str
    DB_REQUIRE_SSL: bool = True
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5

    # Admin JWT
    ADMIN_JWT_SECRET: str
    ADMIN_JWT_ALG: str = "HS256"
    ADMIN_TOKEN_EXPIRE_MINUTES: int = 720

    ADMIN_USERNAME: str | None = None
    ADMIN_PASSWORD: str | None = None

    # Telegram notifications
    TELEGRAM_API_URL: str = "https://api.telegram.org"
    TELEGRAM_BOT_TOKEN: str | None = None
    TELEGRAM_GROUP_CHAT_ID: str | None = None
    TELEGRAM_ADMIN_CHAT_ID: str | None = None
    TELEGRAM_TIMEOUT_SECONDS: float = 10.0

    CURRENCY: str = "BYN"

    # Decoded size limit for uploaded product images
    MAX_IMAGE_BYTES: int = 2 * 1024 * 1024

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def telegram_chat_id(self) -> str | None:
        """Group chat wins over the admin's private chat."""
        return self.TELEGRAM_GROUP_CHAT_ID or self.TELEGRAM_ADMIN_CHAT_ID


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()

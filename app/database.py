# app/database.py
import logging

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session, select

from app.core.config import get_settings
from app.core.security import hash_password
from app.models.product import Category, DEFAULT_CATEGORIES
from app.models.user import Admin

settings = get_settings()
logger = logging.getLogger(__name__)

# ---------------------------------------------------------
# Postgres (Neon / Supabase pooler) in production, SQLite locally.
#
# - sslmode=require    : enforce SSL when running in the cloud
# - pool_pre_ping=True : validate connections before using them
# - pool_size / max_overflow come from settings; managed poolers
#   cap the number of clients per project.
# ---------------------------------------------------------


def normalize_database_url(url: str, require_ssl: bool = True) -> str:
    """
    Fix URL formats handed out by hosting providers.

    - postgres://  -> postgresql://
    - append sslmode=require for Postgres if not already present
    """
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    if require_ssl and url.startswith("postgresql") and "sslmode=" not in url:
        url = url + ("&" if "?" in url else "?") + "sslmode=require"

    return url


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite ignores FOREIGN KEY / ON DELETE unless asked per connection."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str) -> Engine:
    url = normalize_database_url(url, require_ssl=settings.DB_REQUIRE_SSL)

    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
        )
        enable_sqlite_foreign_keys(sqlite_engine)
        return sqlite_engine

    return create_engine(
        url,
        echo=False,  # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
    )


engine = build_engine(settings.DATABASE_URL)


def seed_reference_data(session: Session) -> None:
    """
    Insert static categories and the bootstrap admin if missing.

    Safe to run on every startup.
    """
    existing = set(session.exec(select(Category.slug)).all())
    for row in DEFAULT_CATEGORIES:
        if row["slug"] not in existing:
            session.add(Category(**row))

    if settings.ADMIN_USERNAME and settings.ADMIN_PASSWORD:
        admin = session.exec(
            select(Admin).where(Admin.username == settings.ADMIN_USERNAME)
        ).first()
        if admin is None:
            session.add(
                Admin(
                    username=settings.ADMIN_USERNAME,
                    password_hash=hash_password(settings.ADMIN_PASSWORD),
                )
            )
            logger.info("Bootstrap admin '%s' created", settings.ADMIN_USERNAME)

    session.commit()


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist,
    then seed reference data.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        seed_reference_data(session)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session

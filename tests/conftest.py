# tests/conftest.py
import os

# Settings are read once at import time; point them at throwaway values first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_JWT_SECRET"] = "test-secret"
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["TELEGRAM_GROUP_CHAT_ID"] = ""
os.environ["TELEGRAM_ADMIN_CHAT_ID"] = ""
os.environ["ADMIN_USERNAME"] = ""
os.environ["ADMIN_PASSWORD"] = ""

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine, select  # noqa: E402

from app.core.security import create_access_token, hash_password  # noqa: E402
from app.database import enable_sqlite_foreign_keys, get_session, seed_reference_data  # noqa: E402
from app.main import app  # noqa: E402
from app.models.product import Category, CategorySlug, Product, ProductFlavor  # noqa: E402
from app.models.user import Admin  # noqa: E402

ADMIN_PASSWORD = "s3cret-pass"


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        seed_reference_data(session)
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def category_id(session: Session):
    def _category_id(slug: CategorySlug) -> int:
        return session.exec(select(Category).where(Category.slug == slug.value)).one().id

    return _category_id


@pytest.fixture
def make_product(session: Session, category_id):
    """
    Insert a product and return its id.

    `flavors` ({name: stock}) makes it a liquid whose stock is the flavor sum.
    """

    def _make_product(
        name: str = "Pod cartridge",
        price: str = "10.00",
        stock: int = 10,
        flavors: dict[str, int] | None = None,
        is_active: bool = True,
    ) -> str:
        slug = CategorySlug.LIQUIDS if flavors is not None else CategorySlug.CONSUMABLES
        product = Product(
            name=name,
            price=Decimal(price),
            category_id=category_id(slug),
            stock=sum(flavors.values()) if flavors is not None else stock,
            is_active=is_active,
        )
        session.add(product)
        session.flush()
        for flavor_name, flavor_stock in (flavors or {}).items():
            session.add(
                ProductFlavor(
                    product_id=product.id,
                    flavor_name=flavor_name,
                    stock=flavor_stock,
                )
            )
        session.commit()
        return product.id

    return _make_product


@pytest.fixture
def admin(session: Session) -> Admin:
    admin = Admin(username="owner", password_hash=hash_password(ADMIN_PASSWORD))
    session.add(admin)
    session.commit()
    session.refresh(admin)
    return admin


@pytest.fixture
def admin_headers(admin: Admin) -> dict[str, str]:
    token, _ = create_access_token(admin.id, admin.username)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def telegram_user() -> dict:
    return {
        "telegram_id": 123456789,
        "telegram_username": "vaper",
        "telegram_first_name": "Alex",
    }

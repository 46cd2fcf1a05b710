# app/models/product.py
import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class CategorySlug(str, enum.Enum):
    """
    Known category slugs.

    Only `liquids` products carry flavor variants; their aggregate stock is
    the sum of the flavor stocks.
    """

    LIQUIDS = "liquids"
    CONSUMABLES = "consumables"


# Seed data inserted on startup (idempotent, keyed by slug)
DEFAULT_CATEGORIES: list[dict[str, str]] = [
    {
        "name": "Liquids",
        "slug": CategorySlug.LIQUIDS.value,
        "description": "E-liquids with flavor variants",
    },
    {
        "name": "Consumables",
        "slug": CategorySlug.CONSUMABLES.value,
        "description": "Pods, coils and other consumables",
    },
]


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(max_length=100)

    slug: str = Field(
        max_length=50,
        unique=True,
        index=True,
    )

    description: str | None = None

    @property
    def has_flavors(self) -> bool:
        return self.slug == CategorySlug.LIQUIDS.value


class Product(SQLModel, table=True):
    """
    Catalog entry.

    Invariants:
      - stock >= 0
      - is_active flips to False when stock reaches 0; only an admin
        update turns it back on
      - for liquids, stock == sum(ProductFlavor.stock)
    """

    __tablename__ = "products"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        max_length=64,
    )

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name",
    )

    price: Decimal = Field(
        default=Decimal("0"),
        max_digits=10,
        decimal_places=2,
        ge=0,
        description="Unit price",
    )

    category_id: int | None = Field(
        default=None,
        foreign_key="categories.id",
        index=True,
    )

    description: str | None = None

    image_url: str | None = Field(
        default=None,
        description="External URL or the stable URL of the stored image",
    )

    stock: int = Field(
        default=0,
        ge=0,
        description="Units in stock (sum of flavors for liquids)",
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product is visible on the storefront",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class ProductFlavor(SQLModel, table=True):
    """
    Flavor variant of a liquid, with its own stock counter.
    """

    __tablename__ = "product_flavors"
    __table_args__ = (
        UniqueConstraint("product_id", "flavor_name", name="uq_product_flavor"),
    )

    id: int | None = Field(default=None, primary_key=True)

    product_id: str = Field(
        foreign_key="products.id",
        ondelete="CASCADE",
        index=True,
    )

    flavor_name: str = Field(max_length=100)

    stock: int = Field(default=0, ge=0)


class ProductImage(SQLModel, table=True):
    """
    Uploaded product image, one per product.

    Served as raw bytes from /products/{id}/image.
    """

    __tablename__ = "product_images"

    product_id: str = Field(
        foreign_key="products.id",
        ondelete="CASCADE",
        primary_key=True,
    )

    data: bytes

    mime_type: str = Field(max_length=50)

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

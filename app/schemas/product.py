# app/schemas/product.py
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class FlavorIn(SQLModel):
    """
    One flavor row in an admin product payload.
    """

    model_config = ConfigDict(extra="forbid")

    flavor_name: str = Field(min_length=1, max_length=100)
    stock: int = Field(default=0, ge=0)

    @field_validator("flavor_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("flavor_name cannot be empty")
        return v


class FlavorRead(SQLModel):
    flavor_name: str
    stock: int


def _unique_flavors(v: list[FlavorIn] | None) -> list[FlavorIn] | None:
    if v is None:
        return v
    seen: set[str] = set()
    for flavor in v:
        key = flavor.flavor_name.lower()
        if key in seen:
            raise ValueError(f"duplicate flavor: {flavor.flavor_name}")
        seen.add(key)
    return v


class ProductCreate(SQLModel):
    """
    Admin payload for creating a product.

    - flavors: only for liquids; stock is then the sum of flavor stocks
    - image_url: http(s) URL, or a data URI that gets stored server-side
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: float = Field(ge=0, le=10000)
    category_id: int
    stock: int = Field(default=0, ge=0)
    is_active: bool = True
    image_url: str | None = None
    flavors: list[FlavorIn] | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("flavors")
    @classmethod
    def unique_flavors(cls, v: list[FlavorIn] | None) -> list[FlavorIn] | None:
        return _unique_flavors(v)


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional; `flavors`, when present, replaces the whole list.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: float | None = Field(default=None, ge=0, le=10000)
    category_id: int | None = None
    stock: int | None = Field(default=None, ge=0)
    is_active: bool | None = None
    image_url: str | None = None
    flavors: list[FlavorIn] | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("flavors")
    @classmethod
    def unique_flavors(cls, v: list[FlavorIn] | None) -> list[FlavorIn] | None:
        return _unique_flavors(v)


class ProductRead(SQLModel):
    """
    Product representation for clients.

    image_url is a data URI when the image is stored in the database,
    otherwise the stored URL (or None).
    """

    id: str
    name: str
    description: str | None = None
    price: float
    category_id: int | None = None
    category_name: str | None = None
    category_slug: str | None = None
    image_url: str | None = None
    stock: int
    is_active: bool
    flavors: list[FlavorRead] = []
    created_at: datetime
    updated_at: datetime


class CategoryRead(SQLModel):
    id: int
    name: str
    slug: str
    description: str | None = None

# app/schemas/order.py
import math
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.user import TelegramUser

MAX_ORDER_ITEMS = 50
MAX_ITEM_QUANTITY = 100
MAX_ITEM_PRICE = 10000
MAX_ORDER_TOTAL = 100000


class OrderItemCreate(SQLModel):
    """
    One cart line sent by the storefront.

    Extra keys (display name, image, ...) are ignored.
    """

    product_id: str = Field(min_length=1, max_length=64)
    quantity: int = Field(ge=1, le=MAX_ITEM_QUANTITY)
    price: float = Field(ge=0, le=MAX_ITEM_PRICE)
    flavor_name: str | None = Field(default=None, max_length=100)

    @field_validator("product_id", mode="before")
    @classmethod
    def coerce_product_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("price")
    @classmethod
    def finite_price(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("price must be a finite number")
        return v

    @field_validator("flavor_name")
    @classmethod
    def normalize_flavor(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderCreate(SQLModel):
    """
    Payload for POST /orders.

    Customer is given either as `user_id` or as a Telegram identity
    (`telegram_user`), which is upserted into users.

    total_amount is optional; when absent (or not finite) the backend
    computes sum(price * quantity).
    """

    items: list[OrderItemCreate]
    telegram_user: TelegramUser | None = None
    user_id: int | None = None
    delivery_address: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=20)
    notes: str | None = Field(default=None, max_length=1000)
    total_amount: float | None = None

    @field_validator("items")
    @classmethod
    def items_bounds(cls, v: list[OrderItemCreate]) -> list[OrderItemCreate]:
        if not v:
            raise ValueError("order must contain at least one item")
        if len(v) > MAX_ORDER_ITEMS:
            raise ValueError(f"too many items in order (max {MAX_ORDER_ITEMS})")
        return v

    @field_validator("delivery_address", "phone", "notes")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @field_validator("total_amount")
    @classmethod
    def total_bounds(cls, v: float | None) -> float | None:
        if v is None or not math.isfinite(v):
            return None
        if v < 0 or v > MAX_ORDER_TOTAL:
            raise ValueError(f"total_amount must be between 0 and {MAX_ORDER_TOTAL}")
        return v


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: int
    user_id: int
    status: str
    total_amount: float
    delivery_address: str | None = None
    phone: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: int
    product_id: str | None
    product_name: str | None = None
    flavor_name: str | None = None
    quantity: int
    unit_price: float
    line_total: float


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items and the customer handle.
    """

    telegram_id: str | None = None
    telegram_username: str | None = None
    customer_name: str | None = None
    items: list[OrderItemRead]


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status (free text).
    """

    model_config = ConfigDict(extra="forbid")

    status: str = Field(min_length=1, max_length=50)

    @field_validator("status")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("status cannot be empty")
        return v


class OrderNoticeLine(SQLModel):
    name: str
    flavor_name: str | None = None
    quantity: int
    unit_price: float


class OrderNotice(SQLModel):
    """
    Everything the notifier needs, gathered after commit.
    """

    order_id: int
    created_at: datetime
    total_amount: float
    customer: str | None = None
    phone: str | None = None
    delivery_address: str | None = None
    notes: str | None = None
    lines: list[OrderNoticeLine]

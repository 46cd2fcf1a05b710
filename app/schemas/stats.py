# app/schemas/stats.py
from pydantic import ConfigDict
from sqlmodel import SQLModel


class StatsTotals(SQLModel):
    """
    Headline numbers for the rolling window.
    """
    model_config = ConfigDict(extra="forbid")

    total_orders: int
    total_customers: int
    total_revenue: float
    avg_order_value: float


class CategorySales(SQLModel):
    model_config = ConfigDict(extra="forbid")

    category_name: str
    orders_count: int
    revenue: float


class TopProduct(SQLModel):
    """
    Aggregated stats for top-selling products.
    """
    model_config = ConfigDict(extra="forbid")

    product_id: str
    name: str
    times_sold: int
    total_quantity: int
    revenue: float


class LowStockProduct(SQLModel):
    model_config = ConfigDict(extra="forbid")

    product_id: str
    name: str
    stock: int
    category_name: str | None = None


class LowStockFlavor(SQLModel):
    model_config = ConfigDict(extra="forbid")

    product_id: str
    product_name: str
    flavor_name: str
    stock: int


class AdminDashboardStats(SQLModel):
    """
    Full payload for admin dashboard.
    """
    model_config = ConfigDict(extra="forbid")

    period_days: int
    totals: StatsTotals
    by_category: list[CategorySales]
    top_products: list[TopProduct]
    low_stock: list[LowStockProduct]
    low_stock_flavors: list[LowStockFlavor]

# app/repositories/stats_repo.py
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.order import Order, OrderItem
from app.models.product import Category, Product, ProductFlavor

# Orders in these statuses never count as sales.
CANCELLED_STATUSES = ("cancelled", "canceled")


class StatsRepository:
    """
    Read-only aggregated queries for admin dashboard.

    Every sales query is bounded by `since` (Order.created_at >= since) and
    skips cancelled orders. Low-stock lists are current state and include
    sold-out (deactivated) products.
    """

    def _sales_window(self, since: datetime):
        return (
            Order.created_at >= since,
            func.lower(Order.status).notin_(CANCELLED_STATUSES),
        )

    def totals(self, session: Session, since: datetime) -> tuple:
        """
        (order_count, distinct_customers, revenue, avg_order_value)
        """
        stmt = select(
            func.count(func.distinct(Order.id)),
            func.count(func.distinct(Order.user_id)),
            func.coalesce(func.sum(Order.total_amount), 0),
            func.coalesce(func.avg(Order.total_amount), 0),
        ).where(*self._sales_window(since))
        return tuple(session.exec(stmt).one())

    def sales_by_category(self, session: Session, since: datetime) -> list[tuple]:
        revenue = func.coalesce(func.sum(OrderItem.quantity * OrderItem.unit_price), 0)
        stmt = (
            select(
                Category.name,
                func.count(func.distinct(Order.id)).label("orders_count"),
                revenue.label("revenue"),
            )
            .select_from(Order)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .join(Product, Product.id == OrderItem.product_id)
            .join(Category, Category.id == Product.category_id)
            .where(*self._sales_window(since))
            .group_by(Category.id, Category.name)
            .order_by(revenue.desc())
        )
        return list(session.exec(stmt).all())

    def top_products(
        self,
        session: Session,
        since: datetime,
        limit: int = 10,
    ) -> list[tuple]:
        """
        Top products by revenue inside the window.
        """
        qty_sum = func.coalesce(func.sum(OrderItem.quantity), 0)
        revenue_sum = func.coalesce(
            func.sum(OrderItem.quantity * OrderItem.unit_price),
            0,
        )

        stmt = (
            select(
                Product.id,
                Product.name,
                func.count(OrderItem.id).label("times_sold"),
                qty_sum.label("total_quantity"),
                revenue_sum.label("revenue"),
            )
            .select_from(OrderItem)
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(*self._sales_window(since))
            .group_by(Product.id, Product.name)
            .order_by(revenue_sum.desc())
            .limit(limit)
        )

        return list(session.exec(stmt).all())

    def low_stock_products(
        self,
        session: Session,
        threshold: int = 10,
        limit: int = 10,
    ) -> list[tuple]:
        stmt = (
            select(Product.id, Product.name, Product.stock, Category.name)
            .join(Category, Category.id == Product.category_id, isouter=True)
            .where(Product.stock <= threshold)
            .order_by(Product.stock.asc(), Product.name)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def low_stock_flavors(
        self,
        session: Session,
        threshold: int = 5,
        limit: int = 10,
    ) -> list[tuple]:
        stmt = (
            select(Product.id, Product.name, ProductFlavor.flavor_name, ProductFlavor.stock)
            .select_from(ProductFlavor)
            .join(Product, Product.id == ProductFlavor.product_id)
            .where(ProductFlavor.stock <= threshold)
            .order_by(ProductFlavor.stock.asc(), Product.name, ProductFlavor.flavor_name)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

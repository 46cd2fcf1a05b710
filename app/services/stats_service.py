# app/services/stats_service.py
from datetime import datetime, timedelta, timezone

from sqlmodel import Session

from app.repositories.stats_repo import StatsRepository
from app.schemas.stats import (
    AdminDashboardStats,
    CategorySales,
    LowStockFlavor,
    LowStockProduct,
    StatsTotals,
    TopProduct,
)

PERIOD_DAYS = 30
LOW_STOCK_THRESHOLD = 10
LOW_FLAVOR_STOCK_THRESHOLD = 5


class StatsService:
    """
    Orchestrates aggregated admin dashboard statistics.
    """

    def __init__(self, repo: StatsRepository):
        self.repo = repo

    def get_admin_dashboard_stats(
        self,
        session: Session,
        period_days: int = PERIOD_DAYS,
        top_n_products: int = 10,
        low_stock_rows: int = 10,
    ) -> AdminDashboardStats:
        since = datetime.now(timezone.utc) - timedelta(days=period_days)

        order_count, customers, revenue, avg_value = self.repo.totals(session, since)
        totals = StatsTotals(
            total_orders=int(order_count or 0),
            total_customers=int(customers or 0),
            total_revenue=round(float(revenue or 0.0), 2),
            avg_order_value=round(float(avg_value or 0.0), 2),
        )

        by_category = [
            CategorySales(
                category_name=name,
                orders_count=int(orders_count or 0),
                revenue=float(cat_revenue or 0.0),
            )
            for name, orders_count, cat_revenue in self.repo.sales_by_category(session, since)
        ]

        top_products = [
            TopProduct(
                product_id=product_id,
                name=name,
                times_sold=int(times_sold or 0),
                total_quantity=int(total_quantity or 0),
                revenue=float(product_revenue or 0.0),
            )
            for product_id, name, times_sold, total_quantity, product_revenue in self.repo.top_products(
                session, since, limit=top_n_products
            )
        ]

        low_stock = [
            LowStockProduct(
                product_id=product_id,
                name=name,
                stock=int(stock),
                category_name=category_name,
            )
            for product_id, name, stock, category_name in self.repo.low_stock_products(
                session, threshold=LOW_STOCK_THRESHOLD, limit=low_stock_rows
            )
        ]

        low_stock_flavors = [
            LowStockFlavor(
                product_id=product_id,
                product_name=product_name,
                flavor_name=flavor_name,
                stock=int(stock),
            )
            for product_id, product_name, flavor_name, stock in self.repo.low_stock_flavors(
                session, threshold=LOW_FLAVOR_STOCK_THRESHOLD, limit=low_stock_rows
            )
        ]

        return AdminDashboardStats(
            period_days=period_days,
            totals=totals,
            by_category=by_category,
            top_products=top_products,
            low_stock=low_stock,
            low_stock_flavors=low_stock_flavors,
        )

# app/repositories/stock_repo.py
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import case, delete, func, update
from sqlmodel import Session, select

from app.models.product import Product, ProductFlavor
from app.schemas.product import FlavorIn


class StockLedger:
    """
    Stock counters for products and flavor variants.

    Decrements are single conditional UPDATE statements
    (`... WHERE stock >= :qty`), so two concurrent orders for the last
    unit cannot both succeed: the loser sees zero affected rows.

    NOTE:
      - No commits here; callers own the transaction.
    """

    def decrement_product(self, session: Session, product_id: str, quantity: int) -> bool:
        """
        Take `quantity` units off a product without flavors.

        is_active is switched off in the same statement when stock hits 0.

        Returns:
            False if the product is missing or has less than `quantity`.
        """
        remaining = Product.stock - quantity
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(
                stock=remaining,
                is_active=case((remaining <= 0, False), else_=Product.is_active),
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        result = session.exec(stmt)  # type: ignore[call-overload]
        return result.rowcount > 0

    def decrement_flavor(
        self,
        session: Session,
        product_id: str,
        flavor_name: str,
        quantity: int,
    ) -> bool:
        """
        Take `quantity` units off one flavor.

        The caller must resync the product afterwards.

        Returns:
            False if the flavor is missing or has less than `quantity`.
        """
        stmt = (
            update(ProductFlavor)
            .where(
                ProductFlavor.product_id == product_id,
                ProductFlavor.flavor_name == flavor_name,
                ProductFlavor.stock >= quantity,
            )
            .values(stock=ProductFlavor.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        result = session.exec(stmt)  # type: ignore[call-overload]
        return result.rowcount > 0

    def flavor_total(self, session: Session, product_id: str) -> int:
        stmt = select(func.coalesce(func.sum(ProductFlavor.stock), 0)).where(
            ProductFlavor.product_id == product_id
        )
        return int(session.exec(stmt).one() or 0)

    def resync_product(self, session: Session, product_id: str) -> int:
        """
        Set product stock to the sum of its flavors; deactivate at 0.

        Returns:
            The new aggregate stock.
        """
        total = self.flavor_total(session, product_id)

        values: dict = {"stock": total, "updated_at": datetime.now(timezone.utc)}
        if total <= 0:
            values["is_active"] = False

        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        session.exec(stmt)  # type: ignore[call-overload]

        # Keep an already-loaded Product in step with the row.
        session.get(Product, product_id, populate_existing=True)

        return total

    def list_flavors(self, session: Session, product_id: str) -> list[ProductFlavor]:
        stmt = (
            select(ProductFlavor)
            .where(ProductFlavor.product_id == product_id)
            .order_by(ProductFlavor.flavor_name)
        )
        return list(session.exec(stmt).all())

    def replace_flavors(
        self,
        session: Session,
        product_id: str,
        flavors: Iterable[FlavorIn],
    ) -> list[ProductFlavor]:
        """
        Admin edit semantics: drop every flavor row and insert the new set.
        """
        # Default synchronize_session also evicts loaded rows from the session
        session.exec(  # type: ignore[call-overload]
            delete(ProductFlavor).where(ProductFlavor.product_id == product_id)
        )
        rows = [
            ProductFlavor(
                product_id=product_id,
                flavor_name=f.flavor_name,
                stock=f.stock,
            )
            for f in flavors
        ]
        session.add_all(rows)
        session.flush()
        return rows

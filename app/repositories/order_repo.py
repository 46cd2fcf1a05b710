# app/repositories/order_repo.py
from collections import defaultdict

from sqlmodel import Session, select

from app.models.order import Order, OrderItem
from app.models.product import Product
from app.models.user import User


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - No commits here; order creation is a multi-step transaction.
        The service is responsible for calling session.commit().
    """

    # ---- Orders ----

    def list_for_user(
        self,
        session: Session,
        user_id: int,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def list_all_with_users(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[tuple[Order, User | None]]:
        stmt = (
            select(Order, User)
            .join(User, User.id == Order.user_id, isouter=True)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return [(o, u) for o, u in session.exec(stmt).all()]

    def get_by_id(self, session: Session, order_id: int) -> Order | None:
        return session.get(Order, order_id)

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()  # Assign PK
        session.refresh(order)
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.flush()
        session.refresh(order)
        return order

    # ---- Order items ----

    def add_item(self, session: Session, item: OrderItem) -> OrderItem:
        session.add(item)
        session.flush()
        return item

    def items_with_names(
        self,
        session: Session,
        order_ids: list[int],
    ) -> dict[int, list[tuple[OrderItem, str | None]]]:
        """
        Items of several orders, each paired with the current product name.
        """
        grouped: dict[int, list[tuple[OrderItem, str | None]]] = defaultdict(list)
        if not order_ids:
            return grouped
        stmt = (
            select(OrderItem, Product.name)
            .join(Product, Product.id == OrderItem.product_id, isouter=True)
            .where(OrderItem.order_id.in_(order_ids))
            .order_by(OrderItem.order_id, OrderItem.id)
        )
        for item, name in session.exec(stmt).all():
            grouped[item.order_id].append((item, name))
        return grouped

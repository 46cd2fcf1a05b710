# app/services/order_service.py
import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from app.core.errors import (
    AppError,
    InsufficientStockError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from app.models.order import Order, OrderItem
from app.models.user import User
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.stock_repo import StockLedger
from app.schemas.order import (
    OrderCreate,
    OrderItemRead,
    OrderNotice,
    OrderNoticeLine,
    OrderStatusUpdate,
    OrderWithItemsRead,
)
from app.services.notification_service import OrderNotifier
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# One retry covers a lost race on the first insert of a Telegram user.
PLACE_ORDER_ATTEMPTS = 2

Scheduler = Callable[..., Any]


def _money(value: float | Decimal) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def customer_handle(user: User | None) -> str | None:
    """@username, else first name, else None."""
    if user is None:
        return None
    if user.telegram_username:
        return f"@{user.telegram_username}"
    return user.first_name


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Create an order from the storefront cart in one transaction
        (customer upsert, order + items, stock decrements)
      - Hand the committed order to the notifier
      - Order history for a Telegram user
      - Admin listing and free-text status updates
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        stock_ledger: StockLedger,
        user_service: UserService,
        notifier: OrderNotifier,
    ):
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.stock_ledger = stock_ledger
        self.user_service = user_service
        self.notifier = notifier

    # -------- User-facing operations --------

    def create_order(
        self,
        session: Session,
        payload: OrderCreate,
        schedule: Scheduler | None = None,
    ) -> Order:
        """
        Turn a cart into an Order.

        Steps:
          1. Payload already validated by OrderCreate.
          2. Resolve the customer (user_id or Telegram upsert).
          3. total_amount = supplied value, else sum(price * quantity).
          4. Insert Order (status='pending').
          5. For each item:
             - product must exist
             - insert OrderItem with the cart price
             - flavor item: conditional flavor decrement, then resync the
               product aggregate
             - plain item: conditional product decrement
          6. Commit. Any failure rolls the whole order back; a unique-key
             conflict on the customer insert is retried once.
          7. Schedule the Telegram notification (never fails the request).

        Raises:
            ValidationError, NotFoundError, InsufficientStockError,
            InternalError (database failure).
        """
        for attempt in range(1, PLACE_ORDER_ATTEMPTS + 1):
            try:
                order, user = self._place_order(session, payload)
                break
            except AppError as exc:
                session.rollback()
                logger.info("Order rejected: %s", exc.message)
                raise
            except IntegrityError:
                # Another request inserted the same Telegram user first;
                # the retry finds that row and updates it.
                session.rollback()
                if attempt == PLACE_ORDER_ATTEMPTS:
                    logger.exception("Order transaction failed")
                    raise InternalError()
                logger.info("Customer insert conflicted, retrying order")
            except SQLAlchemyError:
                session.rollback()
                logger.exception("Order transaction failed")
                raise InternalError()
            except Exception:
                session.rollback()
                raise

        session.refresh(order)
        logger.info("Order %s created for user %s", order.id, order.user_id)

        # 7) Notification
        try:
            notice = self._build_notice(session, order, payload, user)
            if schedule is None:
                self.notifier.notify_order_created(notice)
            else:
                schedule(self.notifier.notify_order_created, notice)
        except Exception:
            logger.exception("Failed to schedule notification for order %s", order.id)

        return order

    def list_orders_for_telegram_user(
        self,
        session: Session,
        telegram_id: str,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderWithItemsRead]:
        """
        Order history of a Telegram user, newest first, with items.

        - 404 if no user has this telegram_id.
        """
        user = self.user_service.repo.get_by_telegram_id(session, telegram_id)
        if user is None:
            raise NotFoundError("User not found")

        orders = self.order_repo.list_for_user(session, user.id, skip, limit)
        items = self.order_repo.items_with_names(session, [o.id for o in orders])
        return [self._build_order_with_items_dto(o, items.get(o.id, []), user) for o in orders]

    # -------- Admin operations --------

    def list_all_orders(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderWithItemsRead]:
        """
        List all orders with customer handle and items (admin only).
        """
        rows = self.order_repo.list_all_with_users(session, skip, limit)
        items = self.order_repo.items_with_names(session, [o.id for o, _ in rows])
        return [
            self._build_order_with_items_dto(o, items.get(o.id, []), u)
            for o, u in rows
        ]

    def get_order_admin(
        self,
        session: Session,
        order_id: int,
    ) -> OrderWithItemsRead:
        """
        Get any order with items (admin only).
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFoundError("Order not found")

        items = self.order_repo.items_with_names(session, [order.id])
        user = self.user_service.repo.get_by_id(session, order.user_id)
        return self._build_order_with_items_dto(order, items.get(order.id, []), user)

    def update_status(
        self,
        session: Session,
        order_id: int,
        payload: OrderStatusUpdate,
    ) -> Order:
        """
        Admin-only status update. Status is free text; no transition rules.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFoundError("Order not found")

        order.status = payload.status
        order.updated_at = datetime.now(timezone.utc)
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)
        logger.info("Order %s status set to %r", order.id, order.status)
        return order

    # -------- Helpers --------

    def _place_order(self, session: Session, payload: OrderCreate) -> tuple[Order, User]:
        """Steps 2-6 of create_order. Raises on failure; the caller rolls back."""
        # 2) Customer
        user = self.user_service.resolve_customer(
            session,
            payload.user_id,
            payload.telegram_user,
            phone=payload.phone,
        )

        # 3) Total
        if payload.total_amount is not None:
            total_amount = _money(payload.total_amount)
        else:
            total_amount = sum(
                (_money(it.price) * it.quantity for it in payload.items),
                Decimal("0"),
            ).quantize(CENT)

        # 4) Order row
        order = self.order_repo.create_order(
            session,
            Order(
                user_id=user.id,
                total_amount=total_amount,
                status="pending",
                delivery_address=payload.delivery_address,
                phone=payload.phone,
                notes=payload.notes,
            ),
        )

        # 5) Items + stock
        for idx, it in enumerate(payload.items):
            product = self.product_repo.get_by_id(session, it.product_id)
            if product is None:
                raise NotFoundError(f"Product {it.product_id} not found")

            self.order_repo.add_item(
                session,
                OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    flavor_name=it.flavor_name,
                    quantity=it.quantity,
                    unit_price=_money(it.price),
                ),
            )

            if it.flavor_name:
                if not self.stock_ledger.decrement_flavor(
                    session, product.id, it.flavor_name, it.quantity
                ):
                    raise InsufficientStockError(product.id, it.flavor_name)
                self.stock_ledger.resync_product(session, product.id)
                continue

            category = (
                self.product_repo.get_category(session, product.category_id)
                if product.category_id is not None
                else None
            )
            if category is not None and category.has_flavors:
                raise ValidationError(
                    "Flavor is required for this product",
                    field=f"items.{idx}.flavor_name",
                )

            if not self.stock_ledger.decrement_product(session, product.id, it.quantity):
                raise InsufficientStockError(product.id)

        # 6) Commit
        session.commit()

        return order, user

    def _build_notice(
        self,
        session: Session,
        order: Order,
        payload: OrderCreate,
        user: User,
    ) -> OrderNotice:
        names = self.product_repo.names_by_id(
            session, list({it.product_id for it in payload.items})
        )
        return OrderNotice(
            order_id=order.id,
            created_at=order.created_at,
            total_amount=float(order.total_amount),
            customer=customer_handle(user),
            phone=order.phone,
            delivery_address=order.delivery_address,
            notes=order.notes,
            lines=[
                OrderNoticeLine(
                    name=names.get(it.product_id, it.product_id),
                    flavor_name=it.flavor_name,
                    quantity=it.quantity,
                    unit_price=float(_money(it.price)),
                )
                for it in payload.items
            ],
        )

    def _build_order_with_items_dto(
        self,
        order: Order,
        items: list[tuple[OrderItem, str | None]],
        user: User | None,
    ) -> OrderWithItemsRead:
        """
        Compose OrderWithItemsRead from ORM models.
        """
        item_dtos = [
            OrderItemRead(
                id=it.id,
                product_id=it.product_id,
                product_name=name,
                flavor_name=it.flavor_name,
                quantity=it.quantity,
                unit_price=float(it.unit_price),
                line_total=float(it.unit_price * it.quantity),
            )
            for it, name in items
        ]

        return OrderWithItemsRead(
            id=order.id,
            user_id=order.user_id,
            status=order.status,
            total_amount=float(order.total_amount),
            delivery_address=order.delivery_address,
            phone=order.phone,
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
            telegram_id=user.telegram_id if user else None,
            telegram_username=user.telegram_username if user else None,
            customer_name=customer_handle(user),
            items=item_dtos,
        )

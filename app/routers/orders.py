# app/routers/orders.py
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlmodel import Session

from app.database import get_session
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.stock_repo import StockLedger
from app.repositories.user_repo import UserRepository
from app.schemas.order import OrderCreate, OrderRead, OrderWithItemsRead
from app.services.notification_service import OrderNotifier
from app.services.order_service import OrderService
from app.services.user_service import UserService

router = APIRouter(prefix="/orders", tags=["Orders"])

service = OrderService(
    OrderRepository(),
    ProductRepository(),
    StockLedger(),
    UserService(UserRepository()),
    OrderNotifier(),
)


@router.post(
    "",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
)
def create_order(
    payload: OrderCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    """
    Place an order from the storefront cart.

    - Customer is `user_id` or the Telegram identity (upserted).
    - Stock is taken atomically; the whole order fails on any shortage.
    - The shop chat is notified after the response is sent.
    """
    return service.create_order(session, payload, schedule=background_tasks.add_task)


@router.get(
    "/user/{telegram_id}",
    response_model=list[OrderWithItemsRead],
)
def list_telegram_user_orders(
    telegram_id: str,
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
):
    """
    Order history (with items) of a Telegram user, newest first.
    """
    return service.list_orders_for_telegram_user(session, telegram_id, skip, limit)

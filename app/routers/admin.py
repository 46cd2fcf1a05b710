# app/routers/admin.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.review_repo import ReviewRepository
from app.repositories.stats_repo import StatsRepository
from app.repositories.stock_repo import StockLedger
from app.repositories.user_repo import AdminRepository, UserRepository
from app.schemas.admin import AdminLogin, AdminToken
from app.schemas.order import OrderRead, OrderStatusUpdate, OrderWithItemsRead
from app.schemas.product import ProductCreate, ProductRead, ProductUpdate
from app.schemas.review import ReviewModeration, ReviewRead
from app.schemas.stats import AdminDashboardStats
from app.schemas.user import UserRead
from app.services.admin_service import AdminAuthService
from app.services.notification_service import OrderNotifier
from app.services.order_service import OrderService
from app.services.product_service import ProductService
from app.services.review_service import ReviewService
from app.services.stats_service import StatsService
from app.services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["Admin"])

product_repo = ProductRepository()
stock_ledger = StockLedger()
user_service = UserService(UserRepository())

auth_service = AdminAuthService(AdminRepository())
product_service = ProductService(product_repo, stock_ledger)
order_service = OrderService(
    OrderRepository(),
    product_repo,
    stock_ledger,
    user_service,
    OrderNotifier(),
)
review_service = ReviewService(ReviewRepository(), product_repo, user_service)
stats_service = StatsService(StatsRepository())


# -------- Auth --------


@router.post("/login", response_model=AdminToken)
def login(
    payload: AdminLogin,
    session: Session = Depends(get_session),
):
    """
    Exchange admin credentials for a bearer token.
    """
    return auth_service.login(session, payload)


# -------- Products --------


@router.get(
    "/products",
    response_model=list[ProductRead],
    dependencies=[Depends(require_admin)],
)
def list_products(
    session: Session = Depends(get_session),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=200, ge=1, le=500),
):
    """
    All products, inactive ones included.
    """
    return product_service.list_products(
        session, skip=skip, limit=limit, only_active=False
    )


@router.post(
    "/products",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """
    Create a new product.

    - `flavors` only for liquids; their sum becomes the product stock.
    - `image_url` may be a URL or a base64 data URI (stored server-side).
    """
    return product_service.create_product(session, payload)


@router.put(
    "/products/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: str,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Partial update of a product. A `flavors` list replaces all flavors.
    """
    return product_service.update_product(session, product_id, payload)


@router.delete(
    "/products/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: str,
    session: Session = Depends(get_session),
):
    """
    Delete a product, its flavors and its stored image.
    """
    product_service.delete_product(session, product_id)
    return None


# -------- Reviews --------


@router.get(
    "/reviews",
    response_model=list[ReviewRead],
    dependencies=[Depends(require_admin)],
)
def list_reviews(
    session: Session = Depends(get_session),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
):
    """
    All reviews, pending moderation included.
    """
    return review_service.list_all_reviews(session, skip=skip, limit=limit)


@router.put(
    "/reviews/{review_id}",
    response_model=ReviewRead,
    dependencies=[Depends(require_admin)],
)
def moderate_review(
    review_id: int,
    payload: ReviewModeration,
    session: Session = Depends(get_session),
):
    """
    Approve or hide a review.
    """
    return review_service.set_approval(session, review_id, payload)


# -------- Orders --------


@router.get(
    "/orders",
    response_model=list[OrderWithItemsRead],
    dependencies=[Depends(require_admin)],
)
def list_orders(
    session: Session = Depends(get_session),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
):
    """
    All orders, newest first, with customer and items.
    """
    return order_service.list_all_orders(session, skip, limit)


@router.get(
    "/orders/{order_id}",
    response_model=OrderWithItemsRead,
    dependencies=[Depends(require_admin)],
)
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
):
    return order_service.get_order_admin(session, order_id)


@router.put(
    "/orders/{order_id}/status",
    response_model=OrderRead,
    dependencies=[Depends(require_admin)],
)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Set the order status (free text, e.g. "completed", "cancelled").
    """
    return order_service.update_status(session, order_id, payload)


# -------- Users --------


@router.get(
    "/users",
    response_model=list[UserRead],
    dependencies=[Depends(require_admin)],
)
def list_users(
    session: Session = Depends(get_session),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
):
    """
    Customers, newest first.
    """
    return user_service.list_users(session, skip, limit)


# -------- Stats --------


@router.get(
    "/stats",
    response_model=AdminDashboardStats,
    dependencies=[Depends(require_admin)],
)
def get_dashboard_stats(session: Session = Depends(get_session)):
    """
    Aggregated statistics for the last 30 days.

    Low-stock lists are not time bounded.
    """
    return stats_service.get_admin_dashboard_stats(session)

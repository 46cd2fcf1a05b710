# app/routers/products.py
from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session

from app.database import get_session
from app.models.product import CategorySlug
from app.repositories.product_repo import ProductRepository
from app.repositories.stock_repo import StockLedger
from app.schemas.product import CategoryRead, ProductRead
from app.services.product_service import ProductService

router = APIRouter(tags=["Catalog"])

repo = ProductRepository()
service = ProductService(repo, StockLedger())


@router.get("/products", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    category: CategorySlug | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """
    List active products, optionally filtered by category slug.

    - Public endpoint.
    - Flavors are embedded; stored images come back as data URIs.
    """
    return service.list_products(
        session,
        category=category.value if category else None,
        skip=skip,
        limit=limit,
    )


@router.get("/products/{product_id}", response_model=ProductRead)
def get_product(
    product_id: str,
    session: Session = Depends(get_session),
):
    """
    Get a single product by id.

    - Public endpoint.
    """
    return service.get_product(session, product_id)


@router.get("/products/{product_id}/image")
def get_product_image(
    product_id: str,
    session: Session = Depends(get_session),
):
    """
    Raw bytes of an uploaded product image.
    """
    image = service.get_product_image(session, product_id)
    return Response(
        content=image.data,
        media_type=image.mime_type,
        headers={"Cache-Control": "public, max-age=3600"},
    )


@router.get("/categories", response_model=list[CategoryRead])
def list_categories(session: Session = Depends(get_session)):
    return service.list_categories(session)

# app/repositories/product_repo.py
from collections import defaultdict

from sqlalchemy import delete, update
from sqlmodel import Session, select

from app.models.order import OrderItem
from app.models.product import Category, Product, ProductFlavor, ProductImage


class ProductRepository:
    """
    Data access layer for Product, Category & ProductImage.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    # ----- Categories -----

    def list_categories(self, session: Session) -> list[Category]:
        return list(session.exec(select(Category).order_by(Category.name)).all())

    def get_category(self, session: Session, category_id: int) -> Category | None:
        return session.get(Category, category_id)

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: str) -> Product | None:
        return session.get(Product, product_id)

    def get_with_category(
        self,
        session: Session,
        product_id: str,
    ) -> tuple[Product, Category | None] | None:
        stmt = (
            select(Product, Category)
            .join(Category, Category.id == Product.category_id, isouter=True)
            .where(Product.id == product_id)
        )
        row = session.exec(stmt).first()
        return (row[0], row[1]) if row else None

    def list_with_category(
        self,
        session: Session,
        category_slug: str | None = None,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
    ) -> list[tuple[Product, Category | None]]:
        stmt = select(Product, Category).join(
            Category, Category.id == Product.category_id, isouter=True
        )
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        if category_slug:
            stmt = stmt.where(Category.slug == category_slug)
        stmt = stmt.order_by(Product.name).offset(skip).limit(limit)
        return [(p, c) for p, c in session.exec(stmt).all()]

    def names_by_id(self, session: Session, product_ids: list[str]) -> dict[str, str]:
        if not product_ids:
            return {}
        stmt = select(Product.id, Product.name).where(Product.id.in_(product_ids))
        return {pid: name for pid, name in session.exec(stmt).all()}

    def add(self, session: Session, product: Product) -> Product:
        """Insert/update without committing; the service commits."""
        session.add(product)
        session.flush()
        return product

    def delete(self, session: Session, product: Product) -> None:
        """
        Delete a product with its flavors and image.

        Order lines keep their snapshot but lose the product reference.
        """
        session.exec(  # type: ignore[call-overload]
            update(OrderItem)
            .where(OrderItem.product_id == product.id)
            .values(product_id=None)
            .execution_options(synchronize_session=False)
        )
        session.exec(  # type: ignore[call-overload]
            delete(ProductFlavor).where(ProductFlavor.product_id == product.id)
        )
        session.exec(  # type: ignore[call-overload]
            delete(ProductImage).where(ProductImage.product_id == product.id)
        )

        session.delete(product)
        session.flush()

    # ----- Flavors (read side) -----

    def flavors_for_products(
        self,
        session: Session,
        product_ids: list[str],
    ) -> dict[str, list[ProductFlavor]]:
        grouped: dict[str, list[ProductFlavor]] = defaultdict(list)
        if not product_ids:
            return grouped
        stmt = (
            select(ProductFlavor)
            .where(ProductFlavor.product_id.in_(product_ids))
            .order_by(ProductFlavor.product_id, ProductFlavor.flavor_name)
        )
        for flavor in session.exec(stmt).all():
            grouped[flavor.product_id].append(flavor)
        return grouped

    # ----- Product images -----

    def get_image(self, session: Session, product_id: str) -> ProductImage | None:
        return session.get(ProductImage, product_id)

    def images_for_products(
        self,
        session: Session,
        product_ids: list[str],
    ) -> dict[str, ProductImage]:
        if not product_ids:
            return {}
        stmt = select(ProductImage).where(ProductImage.product_id.in_(product_ids))
        return {img.product_id: img for img in session.exec(stmt).all()}

    def save_image(self, session: Session, image: ProductImage) -> ProductImage:
        """Insert or replace the image row of a product (no commit)."""
        existing = session.get(ProductImage, image.product_id)
        if existing is not None:
            existing.data = image.data
            existing.mime_type = image.mime_type
            existing.updated_at = image.updated_at
            image = existing
        session.add(image)
        session.flush()
        return image

    def delete_image(self, session: Session, product_id: str) -> None:
        image = session.get(ProductImage, product_id)
        if image is not None:
            session.delete(image)
            session.flush()

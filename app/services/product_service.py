# app/services/product_service.py
import base64
import binascii
import re
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import NotFoundError, ValidationError
from app.models.product import Category, Product, ProductFlavor, ProductImage
from app.repositories.product_repo import ProductRepository
from app.repositories.stock_repo import StockLedger
from app.schemas.product import (
    CategoryRead,
    FlavorRead,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)

settings = get_settings()

CENT = Decimal("0.01")

# --- Image config ---

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/png": "image/png",
    "image/jpeg": "image/jpeg",
    "image/jpg": "image/jpeg",
    "image/webp": "image/webp",
    "image/gif": "image/gif",
}

MAX_IMAGE_URL_LENGTH = 2048

DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def to_money(value: float | Decimal) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def image_data_uri(image: ProductImage) -> str:
    encoded = base64.b64encode(image.data).decode("ascii")
    return f"data:{image.mime_type};base64,{encoded}"


def stable_image_url(product_id: str) -> str:
    return f"{settings.API_PREFIX}/products/{product_id}/image"


class ProductService:
    """
    Catalog reads and admin product management.

    Responsibilities:
      - catalog view: product + category name + flavors + image
      - admin create/update/delete with flavor replace-all semantics
      - keep stock / is_active consistent through the StockLedger
      - validate and store inline (data URI) image uploads
    """

    def __init__(self, repo: ProductRepository, stock_ledger: StockLedger):
        self.repo = repo
        self.stock_ledger = stock_ledger

    # ----- Helpers -----

    @staticmethod
    def _decode_image(data_uri: str) -> tuple[str, bytes]:
        """
        Parse `data:<mime>;base64,<payload>` into (mime, bytes).

        Raises:
            ValidationError: unsupported type, bad base64, or too large.
        """
        match = DATA_URI_RE.match(data_uri.strip())
        if not match:
            raise ValidationError("Malformed image data URI", field="image_url")

        mime = ALLOWED_IMAGE_CONTENT_TYPES.get(match.group("mime").lower())
        if mime is None:
            raise ValidationError(
                "Unsupported image type. Allowed: PNG, JPEG, WEBP, GIF.",
                field="image_url",
            )

        try:
            raw = base64.b64decode(match.group("data"), validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Image is not valid base64", field="image_url")

        if not raw:
            raise ValidationError("Image is empty", field="image_url")

        if len(raw) > settings.MAX_IMAGE_BYTES:
            raise ValidationError(
                f"Image too large (max {settings.MAX_IMAGE_BYTES // (1024 * 1024)}MB).",
                field="image_url",
            )

        return mime, raw

    def _apply_image(self, session: Session, product: Product, image_url: str | None) -> None:
        """
        - data URI  => stored in product_images, image_url = stable URL
        - ""        => image removed
        - other str => kept as an external URL, stored image removed
        """
        if image_url is None:
            return

        image_url = image_url.strip()

        if image_url.startswith("data:"):
            mime, raw = self._decode_image(image_url)
            self.repo.save_image(
                session,
                ProductImage(
                    product_id=product.id,
                    data=raw,
                    mime_type=mime,
                    updated_at=datetime.now(timezone.utc),
                ),
            )
            product.image_url = stable_image_url(product.id)
            return

        if len(image_url) > MAX_IMAGE_URL_LENGTH:
            raise ValidationError("Image URL too long", field="image_url")

        self.repo.delete_image(session, product.id)
        product.image_url = image_url or None

    def _get_category(self, session: Session, category_id: int) -> Category:
        category = self.repo.get_category(session, category_id)
        if category is None:
            raise ValidationError("Unknown category", field="category_id")
        return category

    @staticmethod
    def _to_read(
        product: Product,
        category: Category | None,
        flavors: list[ProductFlavor],
        image: ProductImage | None,
    ) -> ProductRead:
        return ProductRead(
            id=product.id,
            name=product.name,
            description=product.description,
            price=float(product.price),
            category_id=product.category_id,
            category_name=category.name if category else None,
            category_slug=category.slug if category else None,
            image_url=image_data_uri(image) if image is not None else product.image_url,
            stock=product.stock,
            is_active=product.is_active,
            flavors=[FlavorRead(flavor_name=f.flavor_name, stock=f.stock) for f in flavors],
            created_at=product.created_at,
            updated_at=product.updated_at,
        )

    # ----- Catalog (read side) -----

    def list_categories(self, session: Session) -> list[CategoryRead]:
        return [
            CategoryRead.model_validate(c, from_attributes=True)
            for c in self.repo.list_categories(session)
        ]

    def list_products(
        self,
        session: Session,
        category: str | None = None,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
    ) -> list[ProductRead]:
        rows = self.repo.list_with_category(
            session,
            category_slug=category,
            skip=skip,
            limit=limit,
            only_active=only_active,
        )
        ids = [p.id for p, _ in rows]
        flavors = self.repo.flavors_for_products(session, ids)
        images = self.repo.images_for_products(session, ids)

        return [
            self._to_read(p, c, flavors.get(p.id, []), images.get(p.id))
            for p, c in rows
        ]

    def get_product(self, session: Session, product_id: str) -> ProductRead:
        row = self.repo.get_with_category(session, product_id)
        if row is None:
            raise NotFoundError("Product not found")
        product, category = row
        return self._to_read(
            product,
            category,
            self.stock_ledger.list_flavors(session, product_id),
            self.repo.get_image(session, product_id),
        )

    def get_product_image(self, session: Session, product_id: str) -> ProductImage:
        image = self.repo.get_image(session, product_id)
        if image is None:
            raise NotFoundError("Image not found")
        return image

    # ----- Admin operations -----

    def create_product(self, session: Session, payload: ProductCreate) -> ProductRead:
        """
        Create a product.

        - liquids: stock = sum(flavors), payload.stock ignored
        - others: flavors rejected, stock taken as given
        - stock 0 => created inactive
        """
        try:
            category = self._get_category(session, payload.category_id)
            if payload.flavors and not category.has_flavors:
                raise ValidationError(
                    "Only liquids can have flavors", field="flavors"
                )

            product = Product(
                name=payload.name,
                description=payload.description,
                price=to_money(payload.price),
                category_id=category.id,
                stock=0 if category.has_flavors else payload.stock,
                is_active=payload.is_active,
            )
            self.repo.add(session, product)
            self._apply_image(session, product, payload.image_url)

            if category.has_flavors:
                self.stock_ledger.replace_flavors(session, product.id, payload.flavors or [])
                self.stock_ledger.resync_product(session, product.id)
            elif product.stock <= 0:
                product.is_active = False

            self.repo.add(session, product)
            session.commit()
        except Exception:
            session.rollback()
            raise

        return self.get_product(session, product.id)

    def update_product(
        self,
        session: Session,
        product_id: str,
        payload: ProductUpdate,
    ) -> ProductRead:
        """
        Partial update of a product.

        - `flavors` (liquids only) replaces every flavor row, then the
          aggregate stock is recomputed
        - `stock` is applied directly for non-liquids only
        - stock <= 0 always leaves the product inactive; is_active=True
          re-enables it otherwise
        """
        product = self.repo.get_by_id(session, product_id)
        if product is None:
            raise NotFoundError("Product not found")

        fields = payload.model_dump(exclude_unset=True)

        try:
            if payload.category_id is not None:
                category: Category | None = self._get_category(session, payload.category_id)
            elif product.category_id is not None:
                category = self.repo.get_category(session, product.category_id)
            else:
                category = None

            has_flavors = category is not None and category.has_flavors
            if payload.flavors and not has_flavors:
                raise ValidationError("Only liquids can have flavors", field="flavors")

            category_changed = category is not None and category.id != product.category_id

            if payload.name is not None:
                product.name = payload.name
            if "description" in fields:
                product.description = payload.description
            if payload.price is not None:
                product.price = to_money(payload.price)
            if category is not None:
                product.category_id = category.id
            if payload.is_active is not None:
                product.is_active = payload.is_active
            if not has_flavors and payload.stock is not None:
                product.stock = payload.stock

            self._apply_image(session, product, payload.image_url)
            product.updated_at = datetime.now(timezone.utc)
            self.repo.add(session, product)

            if has_flavors:
                if payload.flavors is not None:
                    self.stock_ledger.replace_flavors(session, product.id, payload.flavors)
                self.stock_ledger.resync_product(session, product.id)
            else:
                if category_changed:
                    self.stock_ledger.replace_flavors(session, product.id, [])
                if product.stock <= 0:
                    product.is_active = False
                    self.repo.add(session, product)

            session.commit()
        except Exception:
            session.rollback()
            raise

        return self.get_product(session, product_id)

    def delete_product(self, session: Session, product_id: str) -> None:
        """
        Delete a product with its flavors and stored image.
        """
        product = self.repo.get_by_id(session, product_id)
        if product is None:
            raise NotFoundError("Product not found")

        try:
            self.repo.delete(session, product)
            session.commit()
        except Exception:
            session.rollback()
            raise

"""Catalog application service.

Product browsing, admin product management and bundles.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.exceptions import NotFoundError, ValidationError
from storefront.domain.pricing import normalize_variations
from storefront.infrastructure.images import CloudinaryImageStore
from storefront.infrastructure.models import (
    Bundle,
    CartItem,
    Product,
    ProductAnswer,
    ProductQuestion,
    RecentlyViewed,
    Review,
    WishlistItem,
)
from storefront.infrastructure.repositories import ProductRepository

logger = structlog.get_logger()

DEFAULT_CATEGORY = "New Phones"


# ============================================================================
# Data Transfer Objects
# ============================================================================


@dataclass
class ProductInput:
    """Fields accepted when creating or updating a product.

    ``None`` means "leave unchanged" on update.
    """

    name: str | None = None
    description: str | None = None
    price_cents: int | None = None
    stock: int | None = None
    category: str | None = None
    variations: list[dict[str, Any]] | None = None


@dataclass
class BundleItemView:
    """Bundle line with its product resolved."""

    product_id: str
    quantity: int
    product: Product | None


@dataclass
class BundleView:
    """Bundle with embedded products and computed price."""

    bundle: Bundle
    items: list[BundleItemView] = field(default_factory=list)

    @property
    def total_cents(self) -> int:
        if self.bundle.price_override_cents is not None:
            return self.bundle.price_override_cents
        return sum(item.product.price_cents * item.quantity for item in self.items if item.product)


# ============================================================================
# Service
# ============================================================================


class CatalogService:
    """Service for products and bundles."""

    def __init__(
        self,
        session: AsyncSession,
        image_store: CloudinaryImageStore | None = None,
        request_id: str | None = None,
    ) -> None:
        self.session = session
        self.products = ProductRepository(session)
        self.image_store = image_store
        self.request_id = request_id

    async def list_products(self, search: str | None = None, category: str | None = None) -> Sequence[Product]:
        """List products, newest first."""
        return await self.products.find_all(search=search, category=category)

    async def get_product(self, product_id: str) -> Product:
        """Get a product.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await self.products.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def _upload_all(self, images: Sequence[str]) -> list[str]:
        if not images:
            return []
        if self.image_store is None:
            raise ValidationError("Image uploads are not available")
        return [await self.image_store.upload(image) for image in images]

    async def create_product(self, data: ProductInput, images: Sequence[str]) -> Product:
        """Create a product after uploading its images.

        Args:
            data: Product fields; name and price are required.
            images: Data URIs or URLs to upload. At least one is required.

        Raises:
            ValidationError: If required fields or images are missing.
        """
        if not data.name or not data.name.strip():
            raise ValidationError("Name is required")
        if data.price_cents is None or data.price_cents < 0:
            raise ValidationError("Price must be zero or more")
        if data.stock is not None and data.stock < 0:
            raise ValidationError("Stock must be zero or more")
        if not images:
            raise ValidationError("At least one image is required")

        urls = await self._upload_all(images)
        product = Product(
            name=data.name.strip(),
            description=data.description,
            category=data.category or DEFAULT_CATEGORY,
            price_cents=data.price_cents,
            stock=data.stock or 0,
            variations=normalize_variations(data.variations),
            image_url=urls[0],
            image_urls=urls,
        )
        await self.products.save(product)

        logger.info("Product created", product_id=product.id, request_id=self.request_id)
        return product

    async def update_product(
        self,
        product_id: str,
        data: ProductInput,
        images: Sequence[str] = (),
        keep_image_urls: list[str] | None = None,
    ) -> Product:
        """Update a product and its image list.

        Kept URLs (all current ones when ``keep_image_urls`` is None) are
        followed by newly uploaded images. The first becomes the primary image.

        Raises:
            NotFoundError: If the product does not exist.
            ValidationError: If no image would remain.
        """
        product = await self.get_product(product_id)

        kept = [url for url in keep_image_urls if url] if keep_image_urls is not None else list(product.image_urls or [])
        if not kept and not images:
            raise ValidationError("At least one image must remain")
        merged = kept + await self._upload_all(images)

        if data.name is not None:
            if not data.name.strip():
                raise ValidationError("Name is required")
            product.name = data.name.strip()
        if data.description is not None:
            product.description = data.description
        if data.price_cents is not None:
            if data.price_cents < 0:
                raise ValidationError("Price must be zero or more")
            product.price_cents = data.price_cents
        if data.stock is not None:
            if data.stock < 0:
                raise ValidationError("Stock must be zero or more")
            product.stock = data.stock
        if data.category is not None:
            product.category = data.category
        if data.variations is not None:
            product.variations = normalize_variations(data.variations)
        product.image_url = merged[0]
        product.image_urls = merged

        await self.session.flush()
        logger.info("Product updated", product_id=product.id, request_id=self.request_id)
        return product

    async def delete_product(self, product_id: str) -> None:
        """Delete a product.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await self.get_product(product_id)
        questions = select(ProductQuestion.id).where(ProductQuestion.product_id == product_id)
        await self.session.execute(delete(ProductAnswer).where(ProductAnswer.question_id.in_(questions)))
        for model in (CartItem, WishlistItem, RecentlyViewed, Review, ProductQuestion):
            await self.session.execute(delete(model).where(model.product_id == product_id))
        await self.products.delete(product)
        logger.info("Product deleted", product_id=product_id, request_id=self.request_id)

    # ------------------------------------------------------------------
    # Bundles
    # ------------------------------------------------------------------

    async def list_bundles(self, product_id: str | None = None) -> list[BundleView]:
        """List active bundles, optionally only those containing a product."""
        result = await self.session.execute(
            select(Bundle).where(Bundle.active.is_(True)).order_by(Bundle.created_at.desc())
        )
        bundles = result.scalars().all()

        if product_id:
            bundles = [
                b for b in bundles if any(item.get("product_id") == product_id for item in b.items or [])
            ]

        product_ids = {item["product_id"] for b in bundles for item in b.items or [] if item.get("product_id")}
        products = await self.products.get_many(sorted(product_ids))

        return [
            BundleView(
                bundle=b,
                items=[
                    BundleItemView(
                        product_id=item["product_id"],
                        quantity=int(item.get("quantity") or 1),
                        product=products.get(item["product_id"]),
                    )
                    for item in b.items or []
                    if item.get("product_id")
                ],
            )
            for b in bundles
        ]

    async def create_bundle(
        self,
        name: str,
        items: list[dict[str, Any]],
        description: str | None = None,
        price_override_cents: int | None = None,
        active: bool = True,
    ) -> Bundle:
        """Create a bundle of existing products.

        Raises:
            ValidationError: If the bundle is empty or names unknown products.
        """
        if not name or not name.strip():
            raise ValidationError("Name is required")
        if not items:
            raise ValidationError("A bundle needs at least one product")

        cleaned = [
            {"product_id": item["product_id"], "quantity": max(int(item.get("quantity") or 1), 1)}
            for item in items
        ]
        known = await self.products.get_many([item["product_id"] for item in cleaned])
        missing = [item["product_id"] for item in cleaned if item["product_id"] not in known]
        if missing:
            raise ValidationError("Unknown products in bundle", details={"product_ids": missing})

        bundle = Bundle(
            name=name.strip(),
            description=description,
            items=cleaned,
            price_override_cents=price_override_cents,
            active=active,
        )
        self.session.add(bundle)
        await self.session.flush()

        logger.info("Bundle created", bundle_id=bundle.id, request_id=self.request_id)
        return bundle

    async def describe_bundle(self, bundle: Bundle) -> BundleView:
        """Resolve a bundle's products."""
        products = await self.products.get_many([item["product_id"] for item in bundle.items or []])
        return BundleView(
            bundle=bundle,
            items=[
                BundleItemView(
                    product_id=item["product_id"],
                    quantity=int(item.get("quantity") or 1),
                    product=products.get(item["product_id"]),
                )
                for item in bundle.items or []
            ],
        )

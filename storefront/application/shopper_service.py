"""Shopper list application service.

Wishlists, recently viewed products and the product comparison tray.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.exceptions import NotFoundError, ValidationError
from storefront.domain.rules import utcnow
from storefront.infrastructure.models import (
    Product,
    ProductComparison,
    RecentlyViewed,
    WishlistItem,
)
from storefront.infrastructure.repositories import ProductRepository

logger = structlog.get_logger()

RECENTLY_VIEWED_LIMIT = 12
COMPARISON_LIMIT = 4


@dataclass
class ComparisonView:
    """Products in the comparison tray, in tray order."""

    ids: list[str]
    products: list[Product]
    record_id: str | None


class ShopperService:
    """Service for per-user product lists."""

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        self.session = session
        self.products = ProductRepository(session)
        self.request_id = request_id

    async def _require_product(self, product_id: str) -> Product:
        if not product_id:
            raise ValidationError("Missing product_id")
        product = await self.products.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    # ------------------------------------------------------------------
    # Wishlist
    # ------------------------------------------------------------------

    async def list_wishlist(self, user_id: str) -> Sequence[WishlistItem]:
        """Wishlist entries, newest first."""
        result = await self.session.execute(
            select(WishlistItem).where(WishlistItem.user_id == user_id).order_by(WishlistItem.created_at.desc())
        )
        return result.unique().scalars().all()

    async def _wishlist_entry(self, user_id: str, product_id: str) -> WishlistItem | None:
        result = await self.session.execute(
            select(WishlistItem).where(WishlistItem.user_id == user_id, WishlistItem.product_id == product_id)
        )
        return result.unique().scalar_one_or_none()

    async def add_to_wishlist(self, user_id: str, product_id: str) -> WishlistItem:
        """Save a product to the wishlist. Adding it twice is a no-op."""
        product = await self._require_product(product_id)
        entry = await self._wishlist_entry(user_id, product_id)
        if entry is None:
            entry = WishlistItem(user_id=user_id, product_id=product_id, product=product)
            self.session.add(entry)
            await self.session.flush()
            logger.info("Wishlist item added", user_id=user_id, product_id=product_id)
        return entry

    async def in_wishlist(self, user_id: str, product_id: str) -> bool:
        """Whether the product is on the user's wishlist."""
        return await self._wishlist_entry(user_id, product_id) is not None

    async def remove_from_wishlist(self, user_id: str, product_id: str) -> None:
        """Remove a product from the wishlist if present."""
        await self.session.execute(
            delete(WishlistItem).where(WishlistItem.user_id == user_id, WishlistItem.product_id == product_id)
        )

    # ------------------------------------------------------------------
    # Recently viewed
    # ------------------------------------------------------------------

    async def list_recently_viewed(self, user_id: str, limit: int = RECENTLY_VIEWED_LIMIT) -> Sequence[RecentlyViewed]:
        """Most recently viewed products, latest first."""
        result = await self.session.execute(
            select(RecentlyViewed)
            .where(RecentlyViewed.user_id == user_id)
            .order_by(RecentlyViewed.viewed_at.desc())
            .limit(limit)
        )
        return result.unique().scalars().all()

    async def record_view(self, user_id: str, product_id: str) -> RecentlyViewed:
        """Record a product view, bumping the timestamp of an earlier one."""
        product = await self._require_product(product_id)
        result = await self.session.execute(
            select(RecentlyViewed).where(RecentlyViewed.user_id == user_id, RecentlyViewed.product_id == product_id)
        )
        entry = result.unique().scalar_one_or_none()
        if entry is None:
            entry = RecentlyViewed(user_id=user_id, product_id=product_id, product=product, viewed_at=utcnow())
            self.session.add(entry)
        else:
            entry.viewed_at = utcnow()
        await self.session.flush()
        return entry

    async def view_counts(self) -> dict[str, int]:
        """Number of users who viewed each product."""
        result = await self.session.execute(
            select(RecentlyViewed.product_id, func.count(RecentlyViewed.id)).group_by(RecentlyViewed.product_id)
        )
        return {product_id: int(count) for product_id, count in result.all()}

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    async def _comparison_record(self, user_id: str) -> ProductComparison | None:
        result = await self.session.execute(
            select(ProductComparison)
            .where(ProductComparison.user_id == user_id)
            .order_by(ProductComparison.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _view(self, record: ProductComparison | None) -> ComparisonView:
        ids = list(record.product_ids or []) if record else []
        products = await self.products.get_many(ids)
        return ComparisonView(
            ids=ids,
            products=[products[pid] for pid in ids if pid in products],
            record_id=record.id if record else None,
        )

    async def get_comparison(self, user_id: str) -> ComparisonView:
        """Current comparison tray."""
        return await self._view(await self._comparison_record(user_id))

    async def add_to_comparison(self, user_id: str, product_id: str) -> ComparisonView:
        """Put a product at the front of the tray, keeping at most four."""
        await self._require_product(product_id)
        record = await self._comparison_record(user_id)
        current = list(record.product_ids or []) if record else []
        next_ids = [product_id] + [pid for pid in current if pid != product_id]
        next_ids = next_ids[:COMPARISON_LIMIT]

        if record is None:
            record = ProductComparison(user_id=user_id, product_ids=next_ids)
            self.session.add(record)
        else:
            record.product_ids = next_ids
        await self.session.flush()
        return await self._view(record)

    async def remove_from_comparison(self, user_id: str, product_id: str) -> ComparisonView:
        """Take a product out of the tray."""
        if not product_id:
            raise ValidationError("Missing product_id")
        record = await self._comparison_record(user_id)
        if record is None:
            return ComparisonView(ids=[], products=[], record_id=None)
        record.product_ids = [pid for pid in record.product_ids or [] if pid != product_id]
        await self.session.flush()
        return await self._view(record)

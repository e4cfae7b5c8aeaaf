"""Cart application service.

Keeps one cart per user. A line is identified by its product and the exact
variation selection, so adding the same selection again grows the quantity.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from storefront.domain.pricing import unit_price, validate_selection
from storefront.infrastructure.models import CartItem, User
from storefront.infrastructure.repositories import (
    CartRepository,
    OrderRepository,
    ProductRepository,
)

logger = structlog.get_logger()


@dataclass
class CartLine:
    """Cart item priced for its selection."""

    item: CartItem
    unit_price_cents: int

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.item.quantity


@dataclass
class CartView:
    """Priced contents of a cart."""

    lines: list[CartLine]

    @property
    def total_cents(self) -> int:
        return sum(line.line_total_cents for line in self.lines)

    @property
    def item_count(self) -> int:
        return sum(line.item.quantity for line in self.lines)


def price_line(item: CartItem) -> CartLine:
    """Price a cart item from its product's variations."""
    product = item.product
    return CartLine(
        item=item,
        unit_price_cents=unit_price(product.price_cents, product.variations, item.selected_variations),
    )


class CartService:
    """Service for cart operations."""

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        self.session = session
        self.carts = CartRepository(session)
        self.products = ProductRepository(session)
        self.orders = OrderRepository(session)
        self.request_id = request_id

    async def get_cart(self, user_id: str) -> CartView:
        """Get the user's priced cart, newest lines first."""
        items: Sequence[CartItem] = await self.carts.list_for_user(user_id)
        return CartView(lines=[price_line(item) for item in items if item.product is not None])

    async def _merge(self, user_id: str, product_id: str, quantity: int, selection: dict[str, str]) -> CartItem:
        existing = await self.carts.find_line(user_id, product_id, selection)
        if existing is not None:
            existing.quantity += quantity
            await self.session.flush()
            return existing

        product = await self.products.get_by_id(product_id)
        line = CartItem(
            user_id=user_id,
            product_id=product_id,
            product=product,
            quantity=quantity,
            selected_variations=selection,
        )
        return await self.carts.add(line)

    async def add_item(
        self,
        user_id: str,
        product_id: str,
        quantity: int = 1,
        selected_variations: dict[str, str] | None = None,
    ) -> CartView:
        """Add a product to the cart.

        Args:
            user_id: Cart owner.
            product_id: Product to add.
            quantity: Units to add; must be positive.
            selected_variations: Option chosen for every variation group.

        Returns:
            The updated cart.

        Raises:
            ValidationError: If the quantity or selection is invalid.
            NotFoundError: If the product does not exist.
        """
        if not product_id:
            raise ValidationError("product_id is required")
        if quantity <= 0:
            raise ValidationError("quantity must be greater than 0")

        product = await self.products.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        selection = validate_selection(product.variations, selected_variations)
        line = await self._merge(user_id, product_id, quantity, selection)

        logger.info(
            "Cart item added",
            user_id=user_id,
            product_id=product_id,
            quantity=line.quantity,
            request_id=self.request_id,
        )
        return await self.get_cart(user_id)

    async def remove_item(self, user_id: str, item_id: str) -> CartView:
        """Remove one line from the user's cart."""
        await self.carts.delete_line(user_id, item_id)
        return await self.get_cart(user_id)

    async def clear(self, user_id: str) -> CartView:
        """Empty the user's cart."""
        await self.carts.clear(user_id)
        return await self.get_cart(user_id)

    async def reorder(self, user: User, order_id: str) -> CartView:
        """Copy an order's items back into the cart.

        Products that no longer exist are skipped.

        Raises:
            NotFoundError: If the order does not exist.
            PermissionDeniedError: If the order belongs to someone else.
        """
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        if order.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Forbidden")

        wanted = [
            item
            for item in order.items or []
            if item.get("product_id") and int(item.get("quantity") or 0) > 0
        ]
        available = await self.products.get_many([item["product_id"] for item in wanted])

        added = 0
        for item in wanted:
            if item["product_id"] not in available:
                continue
            await self._merge(
                user.id,
                item["product_id"],
                int(item["quantity"]),
                dict(item.get("selected_variations") or {}),
            )
            added += 1

        logger.info("Order reordered", order_id=order_id, lines_added=added, request_id=self.request_id)
        return await self.get_cart(user.id)

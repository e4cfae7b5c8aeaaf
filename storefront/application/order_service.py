"""Order application service.

Orchestrates order lifecycle management including:
- Listing and reading orders with owner/admin access checks
- Customer edits to shipping details and cancellation
- Admin status changes with comments, delivery stamping and restocking
- Invoices
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.notifications import Notifier
from storefront.domain.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from storefront.domain.rules import utcnow
from storefront.domain.state_machines import OrderStatus, UserRole
from storefront.infrastructure.mailer import SmtpMailer
from storefront.infrastructure.models import Invoice, Order, OrderComment, User
from storefront.infrastructure.repositories import OrderRepository, ProductRepository

logger = structlog.get_logger()


@dataclass
class ShippingUpdate:
    """Shipping fields a customer may change. ``None`` leaves a field as is."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None

    def is_empty(self) -> bool:
        return all(value is None for value in (self.name, self.email, self.phone, self.address))


class OrderService:
    """Service for order management."""

    def __init__(self, session: AsyncSession, mailer: SmtpMailer, request_id: str | None = None) -> None:
        self.session = session
        self.orders = OrderRepository(session)
        self.products = ProductRepository(session)
        self.notifier = Notifier(mailer)
        self.request_id = request_id

    async def list_orders(self, user: User) -> Sequence[Order]:
        """List the user's own orders, newest first."""
        return await self.orders.list_for_user(user.id)

    async def list_all_orders(self, status: OrderStatus | None = None) -> Sequence[Order]:
        """List every order for the back office."""
        return await self.orders.list_all(status=status.value if status else None)

    async def get_order(self, user: User, order_id: str) -> Order:
        """Get an order visible to the user.

        Raises:
            NotFoundError: If the order does not exist.
            PermissionDeniedError: If the user neither owns it nor is an admin.
        """
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        if order.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Forbidden")
        return order

    async def _restock(self, order: Order) -> None:
        quantities: dict[str, int] = {}
        for item in order.items or []:
            product_id = item.get("product_id")
            if product_id:
                quantities[product_id] = quantities.get(product_id, 0) + int(item.get("quantity") or 0)
        for product_id, quantity in quantities.items():
            await self.products.return_stock(product_id, quantity)

    # ------------------------------------------------------------------
    # Customer
    # ------------------------------------------------------------------

    async def update_by_owner(
        self,
        user: User,
        order_id: str,
        shipping: ShippingUpdate,
        cancel: bool = False,
    ) -> Order:
        """Edit shipping details or cancel an order the user owns.

        Shipping changes are copied onto the user's profile (name, phone and
        address) so the next checkout is prefilled.

        Raises:
            NotFoundError: If the order does not exist.
            PermissionDeniedError: If the user does not own the order.
            ValidationError: If nothing changes or the order is past editing.
        """
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        if order.user_id != user.id:
            raise PermissionDeniedError("Forbidden")
        if shipping.is_empty() and not cancel:
            raise ValidationError("No changes")

        current = OrderStatus(order.status)
        if not current.is_customer_editable():
            raise ValidationError(
                f"Order can no longer be changed (status {current.value})",
                details={"status": current.value},
            )

        if shipping.name is not None:
            order.shipping_name = shipping.name
            user.name = shipping.name
        if shipping.email is not None:
            order.shipping_email = shipping.email
        if shipping.phone is not None:
            order.phone = shipping.phone
            user.phone = shipping.phone
        if shipping.address is not None:
            order.shipping_address = shipping.address
            user.address = shipping.address

        if cancel:
            current.validate_transition(OrderStatus.CANCELLED, order.id)
            order.status = OrderStatus.CANCELLED.value
            await self._restock(order)

        await self.session.flush()
        logger.info(
            "Order updated by customer",
            order_id=order.id,
            cancelled=cancel,
            request_id=self.request_id,
        )
        return order

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def update_by_admin(
        self,
        admin: User,
        order_id: str,
        status: OrderStatus | None = None,
        comment: str | None = None,
    ) -> Order:
        """Change an order's status and/or add a comment.

        Moving to Delivered stamps ``delivered_at`` the first time only.
        Cancelling puts the items back in stock.

        Raises:
            NotFoundError: If the order does not exist.
            InvalidStateTransitionError: If the status change is not allowed.
            ValidationError: If neither a status nor a comment is given.
        """
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        comment = (comment or "").strip() or None
        if status is None and comment is None:
            raise ValidationError("No changes")

        previous = OrderStatus(order.status)
        changed = False
        if status is not None and status != previous:
            previous.validate_transition(status, order.id)
            order.status = status.value
            changed = True
            if status == OrderStatus.CANCELLED:
                await self._restock(order)

        if status == OrderStatus.DELIVERED and order.delivered_at is None:
            order.delivered_at = utcnow()

        if comment:
            order.comments.append(
                OrderComment(
                    user_id=admin.id,
                    user=admin,
                    author_role=UserRole.ADMIN.value,
                    message=comment,
                )
            )

        await self.session.commit()
        logger.info(
            "Order updated by admin",
            order_id=order.id,
            from_status=previous.value,
            to_status=order.status,
            commented=comment is not None,
            request_id=self.request_id,
        )

        if changed:
            email = order.user.email if order.user else order.shipping_email
            await self.notifier.order_status_changed(
                email=email,
                name=order.shipping_name,
                order_id=order.id,
                status=order.status,
                comment=comment,
            )
        return order

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    async def get_invoice(self, user: User, order_id: str) -> Invoice:
        """Get the invoice of an order visible to the user.

        Raises:
            NotFoundError: If the order or its invoice does not exist.
        """
        order = await self.get_order(user, order_id)
        if order.invoice is None:
            raise NotFoundError("Invoice", order_id, message="Invoice not found")
        return order.invoice

    async def upsert_invoice(
        self,
        order_id: str,
        number: str,
        url: str,
        issued_at: datetime | None = None,
    ) -> Invoice:
        """Create or replace an order's invoice.

        Raises:
            NotFoundError: If the order does not exist.
            ValidationError: If the number or URL is blank.
        """
        if not number or not url:
            raise ValidationError("number and url are required")
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)

        if order.invoice is None:
            order.invoice = Invoice(number=number, url=url, issued_at=issued_at or utcnow())
        else:
            order.invoice.number = number
            order.invoice.url = url
            order.invoice.issued_at = issued_at or utcnow()

        await self.session.flush()
        logger.info("Invoice saved", order_id=order.id, number=number, request_id=self.request_id)
        return order.invoice

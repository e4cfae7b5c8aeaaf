"""Checkout application service.

Turns a user's cart into an order:
- Validates stock for every line
- Snapshots prices and selections into the order
- Starts a card payment session or confirms cash on delivery
- Clears the cart and notifies the customer and the shop
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.cart_service import CartService
from storefront.application.notifications import Notifier
from storefront.domain.exceptions import EmptyCartError, InsufficientStockError
from storefront.domain.state_machines import OrderStatus
from storefront.infrastructure.config import settings
from storefront.infrastructure.mailer import SmtpMailer
from storefront.infrastructure.models import Order, User
from storefront.infrastructure.payments import PaymentLine, StripePaymentGateway
from storefront.infrastructure.repositories import CartRepository, OrderRepository, ProductRepository

logger = structlog.get_logger()

COD_CONFIRMATION = "Order confirmed for Cash on Delivery."


class PaymentMethodType(str, Enum):
    """How the customer pays."""

    CARD = "card"
    COD = "cod"


@dataclass
class ShippingDetails:
    """Contact and delivery details captured at checkout."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None


@dataclass
class CheckoutResult:
    """Created order and where the customer goes next."""

    order: Order
    payment_url: str | None = None
    message: str | None = None


class CheckoutService:
    """Service for placing orders."""

    def __init__(
        self,
        session: AsyncSession,
        mailer: SmtpMailer,
        payments: StripePaymentGateway,
        request_id: str | None = None,
    ) -> None:
        self.session = session
        self.carts = CartRepository(session)
        self.orders = OrderRepository(session)
        self.products = ProductRepository(session)
        self.cart_service = CartService(session, request_id=request_id)
        self.notifier = Notifier(mailer)
        self.payments = payments
        self.request_id = request_id

    async def checkout(
        self,
        user: User,
        method: PaymentMethodType,
        shipping: ShippingDetails | None = None,
    ) -> CheckoutResult:
        """Place an order for everything in the user's cart.

        Shipping fields left blank fall back to the user's profile.

        Args:
            user: Customer checking out.
            method: Card or cash on delivery.
            shipping: Delivery details.

        Returns:
            CheckoutResult with the payment URL for card orders.

        Raises:
            EmptyCartError: If the cart has no items.
            InsufficientStockError: If a product cannot cover its quantity.
            ExternalServiceError: If the payment session cannot be created.
        """
        shipping = shipping or ShippingDetails()
        details = ShippingDetails(
            name=shipping.name or user.name or "Customer",
            email=shipping.email or user.email,
            phone=shipping.phone or user.phone or "",
            address=shipping.address or user.address or "",
        )

        cart = await self.cart_service.get_cart(user.id)
        if not cart.lines:
            raise EmptyCartError()

        # Stock is checked per product across all its lines
        requested: dict[str, int] = {}
        for line in cart.lines:
            requested[line.item.product_id] = requested.get(line.item.product_id, 0) + line.item.quantity
        for line in cart.lines:
            product = line.item.product
            if product.stock < requested[product.id]:
                raise InsufficientStockError(product.id, product.name, requested[product.id], product.stock)

        items = [
            {
                "product_id": line.item.product_id,
                "name": line.item.product.name,
                "price_cents": line.unit_price_cents,
                "quantity": line.item.quantity,
                "selected_variations": dict(line.item.selected_variations or {}),
                "image_url": line.item.product.image_url,
            }
            for line in cart.lines
        ]

        # Another checkout may have taken units since the cart was read
        for product_id, quantity in requested.items():
            if not await self.products.take_stock(product_id, quantity):
                product = await self.products.get_by_id(product_id)
                name = next(line.item.product.name for line in cart.lines if line.item.product_id == product_id)
                raise InsufficientStockError(product_id, name, quantity, product.stock if product else 0)

        order = Order(
            user_id=user.id,
            status=OrderStatus.PENDING.value,
            payment_method=method.value,
            total_cents=cart.total_cents,
            currency=settings.currency,
            items=items,
            shipping_name=details.name,
            shipping_email=details.email,
            phone=details.phone,
            shipping_address=details.address,
        )
        await self.orders.save(order)

        if details.phone:
            user.phone = details.phone
        if details.address:
            user.address = details.address

        result = CheckoutResult(order=order)
        if method == PaymentMethodType.CARD:
            payment = await self.payments.create_checkout_session(
                order_id=order.id,
                lines=[
                    PaymentLine(name=item["name"], unit_amount=item["price_cents"], quantity=item["quantity"])
                    for item in items
                ],
                customer_email=details.email,
                success_url=f"{settings.public_base_url}/orders/{order.id}",
                cancel_url=f"{settings.public_base_url}/cart",
            )
            order.payment_session_id = payment.id
            result.payment_url = payment.url
        else:
            result.message = COD_CONFIRMATION

        await self.carts.clear(user.id)
        await self.session.commit()

        logger.info(
            "Order created",
            order_id=order.id,
            user_id=user.id,
            method=method.value,
            total_cents=order.total_cents,
            request_id=self.request_id,
        )

        await self.notifier.order_confirmed(
            order_id=order.id,
            method=method.value,
            total_cents=order.total_cents,
            currency=order.currency,
            items=items,
            shipping={
                "name": details.name,
                "email": details.email,
                "phone": details.phone,
                "address": details.address,
            },
        )
        return result

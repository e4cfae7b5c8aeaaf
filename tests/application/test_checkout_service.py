"""Tests for the checkout service."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import FakeMailer, FakePaymentGateway, make_product, make_user
from storefront.application.cart_service import CartService
from storefront.application.checkout_service import (
    COD_CONFIRMATION,
    CheckoutService,
    PaymentMethodType,
    ShippingDetails,
)
from storefront.domain.exceptions import EmptyCartError, ExternalServiceError, InsufficientStockError
from storefront.infrastructure.database import async_session_factory
from storefront.infrastructure.models import CartItem, Order, Product, User


class TestCheckout:
    """Tests for placing orders."""

    async def test_card_checkout_creates_payment_session(
        self,
        session: AsyncSession,
        mailer: FakeMailer,
        payments: FakePaymentGateway,
    ) -> None:
        """Card orders get a payment URL and keep the session id."""
        user = await make_user(session)
        product = await make_product(session, price_cents=2500, stock=5)
        await CartService(session).add_item(user.id, product.id, 2)

        result = await CheckoutService(session, mailer, payments).checkout(
            user,
            PaymentMethodType.CARD,
            ShippingDetails(address="1 High Street", phone="07000000000"),
        )

        order = result.order
        assert order.status == "Pending"
        assert order.total_cents == 5000
        assert order.payment_session_id == f"cs_test_{order.id[:8]}"
        assert result.payment_url == f"https://pay.test/{order.id}"
        assert payments.sessions[0]["lines"][0].unit_amount == 2500

    async def test_cod_checkout(self, session: AsyncSession, mailer: FakeMailer, payments: FakePaymentGateway) -> None:
        """Cash on delivery orders are confirmed without a payment session."""
        user = await make_user(session)
        product = await make_product(session)
        await CartService(session).add_item(user.id, product.id)

        result = await CheckoutService(session, mailer, payments).checkout(user, PaymentMethodType.COD)

        assert result.payment_url is None
        assert result.message == COD_CONFIRMATION
        assert result.order.payment_method == "cod"
        assert payments.sessions == []

    async def test_snapshots_items_and_decrements_stock(
        self,
        session: AsyncSession,
        mailer: FakeMailer,
        payments: FakePaymentGateway,
    ) -> None:
        """Items carry the selection and price at checkout time; stock drops."""
        variations = [{"name": "Color", "options": [{"value": "Blue", "price": 1800}, "Red"]}]
        user = await make_user(session)
        product = await make_product(session, price_cents=1500, stock=4, variations=variations)
        await CartService(session).add_item(user.id, product.id, 3, {"Color": "Blue"})

        result = await CheckoutService(session, mailer, payments).checkout(user, PaymentMethodType.COD)

        item = result.order.items[0]
        assert item["price_cents"] == 1800
        assert item["selected_variations"] == {"Color": "Blue"}
        assert item["quantity"] == 3
        assert product.stock == 1

    async def test_clears_cart_and_fills_profile(
        self,
        session: AsyncSession,
        mailer: FakeMailer,
        payments: FakePaymentGateway,
    ) -> None:
        """The cart is emptied and shipping details are saved on the profile."""
        user = await make_user(session)
        product = await make_product(session)
        await CartService(session).add_item(user.id, product.id)

        await CheckoutService(session, mailer, payments).checkout(
            user,
            PaymentMethodType.COD,
            ShippingDetails(phone="0123", address="2 Low Road"),
        )

        remaining = (await session.execute(select(CartItem).where(CartItem.user_id == user.id))).scalars().all()
        assert remaining == []
        assert user.phone == "0123"
        assert user.address == "2 Low Road"

    async def test_shipping_defaults_to_profile(
        self,
        session: AsyncSession,
        mailer: FakeMailer,
        payments: FakePaymentGateway,
    ) -> None:
        """Blank shipping fields fall back to the profile."""
        user = await make_user(session, phone="0999", address="Profile House")
        product = await make_product(session)
        await CartService(session).add_item(user.id, product.id)

        result = await CheckoutService(session, mailer, payments).checkout(user, PaymentMethodType.COD)

        assert result.order.shipping_name == user.name
        assert result.order.shipping_email == user.email
        assert result.order.shipping_address == "Profile House"

    async def test_sends_customer_and_admin_mail(
        self,
        session: AsyncSession,
        mailer: FakeMailer,
        payments: FakePaymentGateway,
    ) -> None:
        """Customer and shop both get a confirmation."""
        user = await make_user(session)
        product = await make_product(session)
        await CartService(session).add_item(user.id, product.id)

        await CheckoutService(session, mailer, payments).checkout(user, PaymentMethodType.COD)

        assert mailer.to(user.email)[0].subject == "Order confirmed (Cash on Delivery)"
        assert mailer.to("admin@shop.test")[0].subject == "Admin copy: Order confirmed (Cash on Delivery)"

    async def test_empty_cart(self, session: AsyncSession, mailer: FakeMailer, payments: FakePaymentGateway) -> None:
        """Checking out an empty cart fails."""
        user = await make_user(session)
        with pytest.raises(EmptyCartError):
            await CheckoutService(session, mailer, payments).checkout(user, PaymentMethodType.CARD)

    async def test_insufficient_stock(
        self,
        session: AsyncSession,
        mailer: FakeMailer,
        payments: FakePaymentGateway,
    ) -> None:
        """Stock is checked across every line of the same product."""
        variations = [{"name": "Color", "options": ["Blue", "Red"]}]
        user = await make_user(session)
        product = await make_product(session, stock=2, variations=variations)
        cart = CartService(session)
        await cart.add_item(user.id, product.id, 1, {"Color": "Blue"})
        await cart.add_item(user.id, product.id, 2, {"Color": "Red"})

        with pytest.raises(InsufficientStockError) as exc_info:
            await CheckoutService(session, mailer, payments).checkout(user, PaymentMethodType.COD)

        assert exc_info.value.details == {"product_id": product.id, "requested": 3, "available": 2}
        orders = (await session.execute(select(Order))).scalars().all()
        assert orders == []

    async def test_payment_failure_raises(self, session: AsyncSession, mailer: FakeMailer) -> None:
        """Payment provider failures surface as ExternalServiceError."""
        user = await make_user(session)
        product = await make_product(session)
        await CartService(session).add_item(user.id, product.id)

        with pytest.raises(ExternalServiceError):
            await CheckoutService(session, mailer, FakePaymentGateway(fail=True)).checkout(
                user,
                PaymentMethodType.CARD,
            )

        assert mailer.sent == []


class TestConcurrentCheckout:
    """Tests for checkouts racing on the same product."""

    async def _two_buyers(
        self, session: AsyncSession, stock: int, first_qty: int, second_qty: int
    ) -> tuple[User, User, Product]:
        first = await make_user(session)
        second = await make_user(session, email="second@example.com")
        product = await make_product(session, stock=stock)
        await CartService(session).add_item(first.id, product.id, first_qty)
        await CartService(session).add_item(second.id, product.id, second_qty)
        await session.commit()
        return first, second, product

    async def _stored_stock(self, session: AsyncSession, product_id: str) -> int:
        result = await session.execute(select(Product.stock).where(Product.id == product_id))
        return result.scalar_one()

    async def test_interleaved_checkouts_keep_every_decrement(
        self,
        session: AsyncSession,
        mailer: FakeMailer,
        payments: FakePaymentGateway,
    ) -> None:
        """A checkout working from a stale stock read still decrements the stored value."""
        first, second, product = await self._two_buyers(session, stock=5, first_qty=3, second_qty=1)

        async with async_session_factory() as other:
            stale = await CartService(other).get_cart(second.id)
            assert stale.lines[0].item.product.stock == 5

            await CheckoutService(session, mailer, payments).checkout(first, PaymentMethodType.COD)
            buyer = await other.get(User, second.id)
            await CheckoutService(other, mailer, payments).checkout(buyer, PaymentMethodType.COD)

        assert await self._stored_stock(session, product.id) == 1

    async def test_stale_read_cannot_oversell(
        self,
        session: AsyncSession,
        mailer: FakeMailer,
        payments: FakePaymentGateway,
    ) -> None:
        """The second buyer is refused once the first has taken the units."""
        first, second, product = await self._two_buyers(session, stock=3, first_qty=2, second_qty=3)

        async with async_session_factory() as other:
            await CartService(other).get_cart(second.id)

            await CheckoutService(session, mailer, payments).checkout(first, PaymentMethodType.COD)
            buyer = await other.get(User, second.id)
            with pytest.raises(InsufficientStockError) as exc_info:
                await CheckoutService(other, mailer, payments).checkout(buyer, PaymentMethodType.COD)
            await other.rollback()

        assert exc_info.value.details == {"product_id": product.id, "requested": 3, "available": 1}
        assert await self._stored_stock(session, product.id) == 1


class CommitAwareMailer(FakeMailer):
    """Records whether the session still had uncommitted work at send time."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__()
        self.session = session
        self.in_transaction: list[bool] = []

    async def send(self, *args, **kwargs) -> bool:
        self.in_transaction.append(self.session.in_transaction())
        return await super().send(*args, **kwargs)


class TestConfirmationTiming:
    """Tests for when confirmation mail goes out."""

    async def test_mail_sent_after_commit(self, session: AsyncSession, payments: FakePaymentGateway) -> None:
        """Order confirmations are sent only once the order is committed."""
        user = await make_user(session)
        product = await make_product(session)
        await CartService(session).add_item(user.id, product.id)
        mailer = CommitAwareMailer(session)

        await CheckoutService(session, mailer, payments).checkout(user, PaymentMethodType.COD)

        assert mailer.in_transaction
        assert not any(mailer.in_transaction)

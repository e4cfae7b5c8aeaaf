"""Shared fixtures.

The environment is pointed at an in-memory SQLite database before the
application is imported. Mail, payments and image hosting are replaced with
in-memory fakes.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUTO_CREATE_SCHEMA"] = "true"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["ADMIN_EMAIL"] = "admin@shop.test"
os.environ["SUPPORT_EMAIL"] = "support@shop.test"
os.environ["ERROR_REPORT_EMAIL"] = "ops@shop.test"
os.environ["CONTACT_PHONE"] = "+44 20 7946 0000"
os.environ["PUBLIC_BASE_URL"] = "https://shop.test"
os.environ["SMTP_HOST"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""

from collections.abc import AsyncGenerator, Awaitable, Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.exceptions import ExternalServiceError
from storefront.domain.state_machines import OrderStatus, UserRole
from storefront.infrastructure.database import async_session_factory, create_schema, engine
from storefront.infrastructure.images import get_image_store
from storefront.infrastructure.mailer import MailDeliveryError, get_mailer
from storefront.infrastructure.models import Order, Product, User
from storefront.infrastructure.payments import PaymentLine, PaymentSession, get_payment_gateway
from storefront.infrastructure.security import create_session_token, hash_password
from storefront.main import app

DEFAULT_PASSWORD = "Secret!23"


# ============================================================================
# Fakes
# ============================================================================


@dataclass
class SentMail:
    """Captured outgoing message."""

    to: str
    subject: str
    html: str | None
    text: str | None
    reply_to: str | None


class FakeMailer:
    """Mailer that records messages instead of sending them."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[SentMail] = []
        self.fail = fail

    @property
    def enabled(self) -> bool:
        return True

    async def send(
        self,
        to: str,
        subject: str,
        html: str | None = None,
        text: str | None = None,
        reply_to: str | None = None,
        raise_on_error: bool = False,
    ) -> bool:
        if self.fail:
            if raise_on_error:
                raise MailDeliveryError("relay down")
            return False
        self.sent.append(SentMail(to=to, subject=subject, html=html, text=text, reply_to=reply_to))
        return True

    def subjects(self) -> list[str]:
        return [mail.subject for mail in self.sent]

    def to(self, address: str) -> list[SentMail]:
        return [mail for mail in self.sent if mail.to == address]


class FakePaymentGateway:
    """Payment gateway that hands out predictable sessions."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sessions: list[dict[str, Any]] = []

    async def create_checkout_session(
        self,
        order_id: str,
        lines: list[PaymentLine],
        customer_email: str | None,
        success_url: str,
        cancel_url: str,
    ) -> PaymentSession:
        if self.fail:
            raise ExternalServiceError("payments", "Could not start card payment")
        self.sessions.append({"order_id": order_id, "lines": lines, "customer_email": customer_email})
        return PaymentSession(id=f"cs_test_{order_id[:8]}", url=f"https://pay.test/{order_id}")


class FakeImageStore:
    """Image store that returns a fresh URL per upload."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.uploads: list[str] = []

    async def upload(self, source: str | bytes, filename: str | None = None) -> str:
        if self.fail:
            raise ExternalServiceError("images", "Image upload failed")
        self.uploads.append(source if isinstance(source, str) else filename or "bytes")
        return f"https://images.test/{len(self.uploads)}.jpg"


# ============================================================================
# Data helpers
# ============================================================================


async def make_user(
    session: AsyncSession,
    email: str = "shopper@example.com",
    name: str = "Sam Shopper",
    password: str = DEFAULT_PASSWORD,
    role: UserRole = UserRole.USER,
    verified: bool = True,
    **fields: Any,
) -> User:
    """Insert a user."""
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role.value,
        verified=verified,
        **fields,
    )
    session.add(user)
    await session.flush()
    return user


async def make_product(
    session: AsyncSession,
    name: str = "Pixel 8",
    price_cents: int = 49900,
    stock: int = 10,
    variations: list[dict[str, Any]] | None = None,
    category: str = "New Phones",
    **fields: Any,
) -> Product:
    """Insert a product. ``image_url`` defaults to the first of ``image_urls``."""
    fields.setdefault("image_urls", ["https://images.test/seed.jpg"])
    fields.setdefault("image_url", fields["image_urls"][0] if fields["image_urls"] else None)
    product = Product(
        name=name,
        description=f"{name} description",
        category=category,
        price_cents=price_cents,
        stock=stock,
        variations=variations or [],
        **fields,
    )
    session.add(product)
    await session.flush()
    return product


async def make_order(
    session: AsyncSession,
    user: User,
    product: Product | None = None,
    status: OrderStatus = OrderStatus.PENDING,
    quantity: int = 1,
    delivered_at: datetime | None = None,
    payment_method: str = "cod",
) -> Order:
    """Insert an order for one product line."""
    items = []
    total = 0
    if product is not None:
        items.append(
            {
                "product_id": product.id,
                "name": product.name,
                "price_cents": product.price_cents,
                "quantity": quantity,
                "selected_variations": {},
                "image_url": product.image_url,
            }
        )
        total = product.price_cents * quantity
    order = Order(
        user_id=user.id,
        status=status.value,
        payment_method=payment_method,
        total_cents=total,
        items=items,
        shipping_name=user.name,
        shipping_email=user.email,
        phone="07000000000",
        shipping_address="1 High Street",
        delivered_at=delivered_at,
        user=user,
        comments=[],
        returns=[],
        invoice=None,
    )
    session.add(order)
    await session.flush()
    return order


def bearer(user: User) -> dict[str, str]:
    """Authorization header for a user."""
    return {"Authorization": f"Bearer {create_session_token(user.id, user.email, user.role)}"}


# ============================================================================
# Service-level fixtures
# ============================================================================


@pytest.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    """Session on a fresh in-memory database."""
    await create_schema()
    async with async_session_factory() as db_session:
        yield db_session
    await engine.dispose()


@pytest.fixture
def mailer() -> FakeMailer:
    """Recording mailer."""
    return FakeMailer()


@pytest.fixture
def payments() -> FakePaymentGateway:
    """Fake payment gateway."""
    return FakePaymentGateway()


@pytest.fixture
def images() -> FakeImageStore:
    """Fake image store."""
    return FakeImageStore()


# ============================================================================
# API fixtures
# ============================================================================


class ApiHarness:
    """Test client plus direct database access on the app's event loop."""

    def __init__(self, client: TestClient) -> None:
        self.client = client

    def run(self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Run ``func(session, *args, **kwargs)`` in its own committed session."""

        async def _call() -> Any:
            async with async_session_factory() as db_session:
                result = await func(db_session, *args, **kwargs)
                await db_session.commit()
                return result

        return self.client.portal.call(_call)

    def user(self, **kwargs: Any) -> User:
        return self.run(make_user, **kwargs)

    def admin(self, email: str = "boss@shop.test", **kwargs: Any) -> User:
        return self.run(make_user, email=email, name="Shop Admin", role=UserRole.ADMIN, **kwargs)

    def product(self, **kwargs: Any) -> Product:
        return self.run(make_product, **kwargs)

    def order(self, user: User, product: Product | None = None, **kwargs: Any) -> Order:
        async def _create(db_session: AsyncSession) -> Order:
            owner = await db_session.get(User, user.id)
            item = await db_session.get(Product, product.id) if product else None
            return await make_order(db_session, owner, item, **kwargs)

        return self.run(_create)

    def load(self, model: type, row_id: str) -> Any:
        """Fetch a row by primary key."""

        async def _get(db_session: AsyncSession) -> Any:
            return await db_session.get(model, row_id)

        return self.run(_get)


@pytest.fixture
def fakes() -> dict[str, Any]:
    """Fakes installed into the app for one test."""
    return {"mailer": FakeMailer(), "payments": FakePaymentGateway(), "images": FakeImageStore()}


@pytest.fixture
def api(fakes: dict[str, Any]) -> Iterator[ApiHarness]:
    """Running app with fakes on a fresh database."""
    app.dependency_overrides[get_mailer] = lambda: fakes["mailer"]
    app.dependency_overrides[get_payment_gateway] = lambda: fakes["payments"]
    app.dependency_overrides[get_image_store] = lambda: fakes["images"]
    with TestClient(app) as client:
        client.portal.call(create_schema)
        yield ApiHarness(client)
        client.portal.call(engine.dispose)
    app.dependency_overrides.clear()


@pytest.fixture
def client(api: ApiHarness) -> TestClient:
    """Test client without a session."""
    return api.client

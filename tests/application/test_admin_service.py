"""Tests for back-office user management."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import make_order, make_product, make_user
from storefront.application.admin_service import AdminService
from storefront.application.cart_service import CartService
from storefront.domain.exceptions import NotFoundError, ValidationError
from storefront.domain.state_machines import UserRole
from storefront.infrastructure.models import CartItem, Order
from storefront.infrastructure.security import verify_password


class TestAdminUsers:
    """Tests for account management."""

    async def test_list_sorted_by_email(self, session: AsyncSession) -> None:
        """Users are listed alphabetically by email."""
        await make_user(session, email="zed@example.com")
        await make_user(session, email="amy@example.com")

        users = await AdminService(session).list_users()

        assert [u.email for u in users] == ["amy@example.com", "zed@example.com"]

    async def test_set_password(self, session: AsyncSession) -> None:
        """Admins may set a six-character password."""
        user = await make_user(session)
        await AdminService(session).set_password(user.id, "simple")

        assert verify_password("simple", user.password_hash)

    async def test_short_password(self, session: AsyncSession) -> None:
        """Passwords under six characters are rejected."""
        user = await make_user(session)
        with pytest.raises(ValidationError):
            await AdminService(session).set_password(user.id, "abc")

    async def test_set_verified(self, session: AsyncSession) -> None:
        """Verification can be toggled."""
        user = await make_user(session, verified=False, verification_token="tok")
        await AdminService(session).set_verified(user.id, True)

        assert user.verified
        assert user.verification_token is None

    async def test_cannot_delete_self(self, session: AsyncSession) -> None:
        """Admins cannot delete their own account."""
        admin = await make_user(session, email="boss@shop.test", role=UserRole.ADMIN)
        with pytest.raises(ValidationError, match="You cannot delete your own account"):
            await AdminService(session).delete_user(admin, admin.id)

    async def test_delete_keeps_orders(self, session: AsyncSession) -> None:
        """Deleting a user removes their cart but keeps orders detached."""
        admin = await make_user(session, email="boss@shop.test", role=UserRole.ADMIN)
        user = await make_user(session)
        product = await make_product(session)
        await CartService(session).add_item(user.id, product.id)
        order = await make_order(session, user, product)
        order_id = order.id
        session.expunge(order)

        await AdminService(session).delete_user(admin, user.id)

        carts = (await session.execute(select(CartItem))).scalars().all()
        kept = (await session.execute(select(Order.user_id).where(Order.id == order_id))).scalar_one()
        assert carts == []
        assert kept is None
        with pytest.raises(NotFoundError):
            await AdminService(session).set_verified(user.id, True)

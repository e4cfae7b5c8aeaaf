"""Tests for the return service."""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import FakeMailer, make_order, make_user
from storefront.application.return_service import ReturnService
from storefront.domain.exceptions import (
    InvalidStateTransitionError,
    PermissionDeniedError,
    ReturnWindowError,
    ValidationError,
)
from storefront.domain.rules import utcnow
from storefront.domain.state_machines import OrderStatus, ReturnStatus


class TestRequestReturn:
    """Tests for raising a return."""

    async def test_within_window(self, session: AsyncSession, mailer: FakeMailer) -> None:
        """A delivered order inside the window gets a pending return and an RMA."""
        user = await make_user(session)
        order = await make_order(
            session,
            user,
            status=OrderStatus.DELIVERED,
            delivered_at=utcnow() - timedelta(days=1),
        )

        request = await ReturnService(session, mailer).request_return(user, order.id, "Cracked screen", "Box kept")

        assert request.status == "pending"
        assert request.rma_number.startswith(f"RMA-{order.id[:6].upper()}-")
        assert mailer.subjects() == [
            f"Return request submitted ({order.id[:8]})",
            f"Admin copy: Return request submitted ({order.id[:8]})",
        ]

    async def test_not_delivered(self, session: AsyncSession, mailer: FakeMailer) -> None:
        """Undelivered orders cannot be returned."""
        user = await make_user(session)
        order = await make_order(session, user, status=OrderStatus.SHIPPED)

        with pytest.raises(ReturnWindowError, match="only available after delivery"):
            await ReturnService(session, mailer).request_return(user, order.id, "Changed my mind")

    async def test_window_expired(self, session: AsyncSession, mailer: FakeMailer) -> None:
        """Returns close three days after delivery."""
        user = await make_user(session)
        order = await make_order(
            session,
            user,
            status=OrderStatus.DELIVERED,
            delivered_at=utcnow() - timedelta(days=4),
        )

        with pytest.raises(ReturnWindowError, match="expired"):
            await ReturnService(session, mailer).request_return(user, order.id, "Too late")

    async def test_reason_required(self, session: AsyncSession, mailer: FakeMailer) -> None:
        """A blank reason is rejected."""
        user = await make_user(session)
        order = await make_order(session, user, status=OrderStatus.DELIVERED, delivered_at=utcnow())

        with pytest.raises(ValidationError, match="Reason is required"):
            await ReturnService(session, mailer).request_return(user, order.id, "   ")

    async def test_one_open_return(self, session: AsyncSession, mailer: FakeMailer) -> None:
        """A second return is rejected while the first is open."""
        user = await make_user(session)
        order = await make_order(session, user, status=OrderStatus.DELIVERED, delivered_at=utcnow())
        service = ReturnService(session, mailer)
        await service.request_return(user, order.id, "Faulty")

        with pytest.raises(ValidationError, match="already open"):
            await service.request_return(user, order.id, "Still faulty")

    async def test_stranger_forbidden(self, session: AsyncSession, mailer: FakeMailer) -> None:
        """Only the owner or an admin may raise a return."""
        user = await make_user(session)
        other = await make_user(session, email="other@example.com")
        order = await make_order(session, user, status=OrderStatus.DELIVERED, delivered_at=utcnow())

        with pytest.raises(PermissionDeniedError):
            await ReturnService(session, mailer).request_return(other, order.id, "Not mine")


class TestUpdateStatus:
    """Tests for admin return decisions."""

    async def _pending(self, session: AsyncSession, mailer: FakeMailer):
        user = await make_user(session)
        order = await make_order(session, user, status=OrderStatus.DELIVERED, delivered_at=utcnow())
        request = await ReturnService(session, mailer).request_return(user, order.id, "Faulty")
        mailer.sent.clear()
        return order, request

    async def test_accept_moves_order(self, session: AsyncSession, mailer: FakeMailer) -> None:
        """Accepting the return moves the order to Return request accepted."""
        order, request = await self._pending(session, mailer)

        await ReturnService(session, mailer).update_status(order.id, request.id, ReturnStatus.ACCEPTED)

        assert request.status == "accepted"
        assert order.status == OrderStatus.RETURN_ACCEPTED.value
        assert mailer.subjects() == [f"Return {request.rma_number} accepted"]

    async def test_returned_closes_order(self, session: AsyncSession, mailer: FakeMailer) -> None:
        """Receiving the item marks the order Returned."""
        order, request = await self._pending(session, mailer)
        service = ReturnService(session, mailer)

        await service.update_status(order.id, request.id, ReturnStatus.ACCEPTED)
        await service.update_status(order.id, request.id, ReturnStatus.RETURNED)

        assert order.status == "Returned"

    async def test_decline_keeps_order(self, session: AsyncSession, mailer: FakeMailer) -> None:
        """Declining leaves the order Delivered and allows a new request."""
        order, request = await self._pending(session, mailer)
        service = ReturnService(session, mailer)

        await service.update_status(order.id, request.id, ReturnStatus.DECLINED)

        assert order.status == "Delivered"
        second = await service.request_return(order.user, order.id, "Another try")
        assert second.rma_number != request.rma_number

    async def test_cannot_skip_acceptance(self, session: AsyncSession, mailer: FakeMailer) -> None:
        """Pending returns cannot jump to returned."""
        order, request = await self._pending(session, mailer)

        with pytest.raises(InvalidStateTransitionError):
            await ReturnService(session, mailer).update_status(order.id, request.id, ReturnStatus.RETURNED)

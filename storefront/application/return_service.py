"""Return application service.

Customers may request a return within the return window after delivery.
Admins move returns through pending → accepted/declined → returned, and the
order status follows.
"""

from collections.abc import Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.notifications import Notifier
from storefront.domain.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from storefront.domain.rules import ensure_return_window, generate_rma_number
from storefront.domain.state_machines import OrderStatus, ReturnStatus
from storefront.infrastructure.config import settings
from storefront.infrastructure.mailer import SmtpMailer
from storefront.infrastructure.models import Order, ReturnRequest, User
from storefront.infrastructure.repositories import OrderRepository

logger = structlog.get_logger()


class ReturnService:
    """Service for return requests."""

    def __init__(self, session: AsyncSession, mailer: SmtpMailer, request_id: str | None = None) -> None:
        self.session = session
        self.orders = OrderRepository(session)
        self.notifier = Notifier(mailer)
        self.request_id = request_id

    async def _load_order(self, user: User, order_id: str) -> Order:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        if order.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Forbidden")
        return order

    async def list_returns(self, user: User, order_id: str) -> Sequence[ReturnRequest]:
        """List returns raised against an order."""
        order = await self._load_order(user, order_id)
        return list(order.returns)

    async def request_return(
        self,
        user: User,
        order_id: str,
        reason: str,
        notes: str | None = None,
    ) -> ReturnRequest:
        """Raise a return request with a fresh RMA number.

        Raises:
            NotFoundError: If the order does not exist.
            PermissionDeniedError: If the user neither owns it nor is an admin.
            ReturnWindowError: If the order is undelivered or the window passed.
            ValidationError: If the reason is blank or a return is already open.
        """
        order = await self._load_order(user, order_id)
        ensure_return_window(order.delivered_at, window_days=settings.return_window_days)

        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Reason is required")
        if any(ReturnStatus(r.status).is_open() for r in order.returns):
            raise ValidationError("A return is already open for this order")

        rma_number = generate_rma_number(order.id)
        taken = {r.rma_number for r in order.returns}
        while rma_number in taken:
            rma_number = generate_rma_number(order.id)

        request = ReturnRequest(
            user_id=user.id,
            reason=reason,
            notes=notes or None,
            rma_number=rma_number,
            status=ReturnStatus.PENDING.value,
        )
        order.returns.append(request)
        await self.session.commit()

        logger.info(
            "Return requested",
            order_id=order.id,
            return_id=request.id,
            rma_number=rma_number,
            request_id=self.request_id,
        )

        await self.notifier.return_submitted(
            email=order.shipping_email or user.email,
            order_id=order.id,
            rma_number=rma_number,
            reason=reason,
            notes=notes,
        )
        return request

    async def update_status(self, order_id: str, return_id: str, status: ReturnStatus) -> ReturnRequest:
        """Move a return to a new status and align the order.

        Raises:
            NotFoundError: If the order or return does not exist.
            InvalidStateTransitionError: If the return cannot move to ``status``.
        """
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        request = next((r for r in order.returns if r.id == return_id), None)
        if request is None:
            raise NotFoundError("Return", return_id)

        current = ReturnStatus(request.status)
        if current == status:
            return request
        if not current.can_transition_to(status):
            raise InvalidStateTransitionError(
                "Return",
                request.id,
                current.value,
                status.value,
                [s.value for s in ReturnStatus if current.can_transition_to(s)],
            )
        request.status = status.value

        target = status.order_status()
        if target is not None and order.status != target.value:
            OrderStatus(order.status).validate_transition(target, order.id)
            order.status = target.value

        await self.session.commit()
        logger.info(
            "Return status changed",
            order_id=order.id,
            return_id=request.id,
            from_status=current.value,
            to_status=status.value,
            request_id=self.request_id,
        )

        email = order.user.email if order.user else order.shipping_email
        await self.notifier.return_status_changed(email, order.id, request.rma_number, status.value)
        return request

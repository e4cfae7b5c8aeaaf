"""State machines for orders, returns and repair bookings.

Each status enum knows which statuses it may move to. The transition
tables live outside the enums to avoid Enum member restrictions.
"""

from enum import Enum

from storefront.domain.exceptions import InvalidStateTransitionError


# ============================================================================
# Order State Machine
# ============================================================================


class OrderStatus(str, Enum):
    """Order lifecycle states.

    State diagram:
        PENDING ◄──► PROCESSING ──► SHIPPED ──► DELIVERED ◄──► RETURN_ACCEPTED
           │             │             │            │                │
           └─────────────┴─────────────┴──► CANCELLED              ▼
                                                    └──────────► RETURNED

    Pending and Processing may also jump straight to Shipped or Delivered.
    """

    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    RETURN_ACCEPTED = "Return request accepted"
    RETURNED = "Returned"
    CANCELLED = "Cancelled"

    def can_transition_to(self, target: "OrderStatus") -> bool:
        """Check if transition to target state is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _ORDER_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["OrderStatus"]:
        """Get valid target states in display order."""
        allowed = _ORDER_TRANSITIONS.get(self, set())
        return [status for status in OrderStatus if status in allowed]

    def is_customer_editable(self) -> bool:
        """Check if the customer may still edit or cancel the order."""
        return self in {OrderStatus.PENDING, OrderStatus.PROCESSING}

    def is_terminal(self) -> bool:
        """Check if this is a terminal (final) state."""
        return len(_ORDER_TRANSITIONS.get(self, set())) == 0

    def validate_transition(self, target: "OrderStatus", order_id: str) -> None:
        """Raise if the order cannot move to ``target``.

        Raises:
            InvalidStateTransitionError: If the move is not allowed.
        """
        if not self.can_transition_to(target):
            raise InvalidStateTransitionError(
                "Order",
                order_id,
                self.value,
                target.value,
                [s.value for s in self.allowed_transitions()],
            )


_ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {
        OrderStatus.PENDING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: {OrderStatus.RETURN_ACCEPTED, OrderStatus.RETURNED},
    OrderStatus.RETURN_ACCEPTED: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.RETURNED: set(),  # Terminal state
    OrderStatus.CANCELLED: set(),  # Terminal state
}


# ============================================================================
# Return State Machine
# ============================================================================


class ReturnStatus(str, Enum):
    """Return request states."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    RETURNED = "returned"

    def can_transition_to(self, target: "ReturnStatus") -> bool:
        """Check if transition to target state is valid."""
        return target in _RETURN_TRANSITIONS.get(self, set())

    def is_open(self) -> bool:
        """Check if the return still blocks a new request on the same order."""
        return self in {ReturnStatus.PENDING, ReturnStatus.ACCEPTED}

    def order_status(self) -> OrderStatus | None:
        """Order status implied by reaching this return state, if any."""
        return _RETURN_ORDER_STATUS.get(self)


_RETURN_TRANSITIONS: dict[ReturnStatus, set[ReturnStatus]] = {
    ReturnStatus.PENDING: {ReturnStatus.ACCEPTED, ReturnStatus.DECLINED},
    ReturnStatus.ACCEPTED: {ReturnStatus.RETURNED},
    ReturnStatus.DECLINED: set(),
    ReturnStatus.RETURNED: set(),
}

_RETURN_ORDER_STATUS: dict[ReturnStatus, OrderStatus] = {
    ReturnStatus.ACCEPTED: OrderStatus.RETURN_ACCEPTED,
    ReturnStatus.RETURNED: OrderStatus.RETURNED,
}


# ============================================================================
# Repair Booking Status
# ============================================================================


class RepairStatus(str, Enum):
    """Repair booking states. Admins may set any of them."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class UserRole(str, Enum):
    """Account roles carried in the session token."""

    ADMIN = "ADMIN"
    USER = "USER"

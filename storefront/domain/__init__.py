"""Domain layer - exceptions, status state machines and shop rules.

- **Exceptions**: business rule violations carrying an error code and HTTP status
- **State Machines**: order, return and repair status transitions
- **Pricing**: variation-aware display and unit prices
- **Rules**: return window, RMA numbers, business hours, password strength

Example usage:
    from storefront.domain import OrderStatus, unit_price

    OrderStatus.PENDING.can_transition_to(OrderStatus.SHIPPED)  # True
    unit_price(99900, [{"name": "Storage", "options": [{"value": "256GB", "price": 109900}]}],
               {"Storage": "256GB"})  # 109900
"""

from storefront.domain.exceptions import (
    AuthenticationError,
    ConflictError,
    DomainError,
    EmptyCartError,
    ExternalServiceError,
    InsufficientStockError,
    InvalidStateTransitionError,
    NotFoundError,
    NotificationError,
    PermissionDeniedError,
    ReturnWindowError,
    ValidationError,
)
from storefront.domain.pricing import display_price, normalize_variations, unit_price, validate_selection
from storefront.domain.rules import (
    ensure_return_window,
    ensure_strong_password,
    generate_rma_number,
    within_business_hours,
)
from storefront.domain.state_machines import OrderStatus, RepairStatus, ReturnStatus, UserRole

__all__ = [
    # Exceptions
    "AuthenticationError",
    "ConflictError",
    "DomainError",
    "EmptyCartError",
    "ExternalServiceError",
    "InsufficientStockError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "NotificationError",
    "PermissionDeniedError",
    "ReturnWindowError",
    "ValidationError",
    # Pricing
    "display_price",
    "normalize_variations",
    "unit_price",
    "validate_selection",
    # Rules
    "ensure_return_window",
    "ensure_strong_password",
    "generate_rma_number",
    "within_business_hours",
    # State Machines
    "OrderStatus",
    "RepairStatus",
    "ReturnStatus",
    "UserRole",
]

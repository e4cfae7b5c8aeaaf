"""Domain exceptions.

All domain-level errors that represent business rule violations.
Each error carries a machine-readable ``error_code`` and the HTTP status
the API layer answers with.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    error_code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Access Errors
# ============================================================================


class AuthenticationError(DomainError):
    """Raised when credentials or a session are missing or invalid."""

    error_code = "UNAUTHORIZED"
    status_code = 401


class PermissionDeniedError(DomainError):
    """Raised when the caller may not act on a resource."""

    error_code = "FORBIDDEN"
    status_code = 403


# ============================================================================
# Lookup Errors
# ============================================================================


class NotFoundError(DomainError):
    """Raised when an entity does not exist or is not visible to the caller."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity_type: str, entity_id: str | None = None, message: str | None = None) -> None:
        """Initialize not found error.

        Args:
            entity_type: Type of entity (e.g., "Product", "Order").
            entity_id: ID that was looked up.
            message: Overrides the generated message.
        """
        super().__init__(
            message or f"{entity_type} not found",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


class ConflictError(DomainError):
    """Raised when a write collides with existing data."""

    error_code = "CONFLICT"
    status_code = 409


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(DomainError):
    """Raised when input breaks a business rule."""

    error_code = "VALIDATION_ERROR"
    status_code = 400


class EmptyCartError(ValidationError):
    """Raised when checking out with nothing in the cart."""

    error_code = "CART_EMPTY"

    def __init__(self) -> None:
        super().__init__("Cart is empty")


class InsufficientStockError(ValidationError):
    """Raised when a product cannot cover the requested quantity."""

    error_code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, product_name: str, requested: int, available: int) -> None:
        """Initialize insufficient stock error.

        Args:
            product_id: Product that ran short.
            product_name: Product name for the message.
            requested: Units requested.
            available: Units in stock.
        """
        super().__init__(
            f"Not enough stock for {product_name}",
            details={
                "product_id": product_id,
                "requested": requested,
                "available": available,
            },
        )


class ReturnWindowError(ValidationError):
    """Raised when a return is requested outside the return window."""

    error_code = "RETURN_WINDOW"


class InvalidStateTransitionError(ValidationError):
    """Raised when an invalid state transition is attempted.

    This error indicates that the requested operation cannot be performed
    in the current state of the entity.
    """

    error_code = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            entity_type: Type of entity (e.g., "Order", "Return").
            entity_id: ID of the entity.
            current_state: Current state of the entity.
            target_state: Attempted target state.
            allowed_transitions: List of allowed target states from current state.
        """
        allowed = allowed_transitions or []
        message = (
            f"Cannot move {entity_type} from '{current_state}' to '{target_state}'"
        )
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )


# ============================================================================
# Integration Errors
# ============================================================================


class ExternalServiceError(DomainError):
    """Raised when a third-party provider fails."""

    error_code = "EXTERNAL_SERVICE_ERROR"
    status_code = 502

    def __init__(self, service: str, message: str) -> None:
        """Initialize external service error.

        Args:
            service: Provider name (e.g., "payments").
            message: Human-readable error message.
        """
        super().__init__(message, details={"service": service})


class NotificationError(DomainError):
    """Raised when a message the caller is waiting on cannot be delivered."""

    error_code = "DELIVERY_FAILED"
    status_code = 500

"""Order API endpoints.

Provides endpoints for order lifecycle management:
- GET /orders - the user's orders
- GET /orders/{id} - order details with comments, invoice and returns
- PUT /orders/{id} - customer shipping edits or cancellation
- PATCH /orders/{id} - admin status change and/or comment
- GET /orders/{id}/invoice - invoice document
- POST /orders/{id}/invoice - attach or replace the invoice (admin)
- POST /orders/{id}/reorder - copy the order back into the cart
- GET /orders/{id}/returns - return requests
- POST /orders/{id}/returns - request a return
- PATCH /orders/{id}/returns - decide on a return (admin)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from storefront.api.cart import cart_to_response
from storefront.api.converters import (
    invoice_to_schema,
    order_to_response,
    order_to_summary,
    return_to_response,
)
from storefront.api.dependencies import (
    AdminUser,
    CurrentUser,
    MailerDep,
    RequestIdDep,
    SessionDep,
)
from storefront.api.schemas import (
    CartResponse,
    ErrorResponse,
    InvoiceRequest,
    InvoiceSchema,
    OrderAdminUpdateRequest,
    OrderCustomerUpdateRequest,
    OrderResponse,
    OrderSummarySchema,
    ReturnCreateRequest,
    ReturnResponse,
    ReturnUpdateRequest,
)
from storefront.application.cart_service import CartService
from storefront.application.order_service import OrderService, ShippingUpdate
from storefront.application.return_service import ReturnService
from storefront.domain.state_machines import OrderStatus, ReturnStatus

router = APIRouter(prefix="/orders", tags=["Orders"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(session: SessionDep, mailer: MailerDep, request_id: RequestIdDep) -> OrderService:
    """Get order service with request ID."""
    return OrderService(session, mailer, request_id=request_id)


def get_return_service(session: SessionDep, mailer: MailerDep, request_id: RequestIdDep) -> ReturnService:
    """Get return service with request ID."""
    return ReturnService(session, mailer, request_id=request_id)


def get_cart_service(session: SessionDep, request_id: RequestIdDep) -> CartService:
    """Get cart service with request ID."""
    return CartService(session, request_id=request_id)


ServiceDep = Annotated[OrderService, Depends(get_service)]
ReturnServiceDep = Annotated[ReturnService, Depends(get_return_service)]
CartServiceDep = Annotated[CartService, Depends(get_cart_service)]


# ============================================================================
# Orders
# ============================================================================


@router.get("", response_model=list[OrderSummarySchema])
async def list_orders(user: CurrentUser, service: ServiceDep) -> list[OrderSummarySchema]:
    """List the user's orders, newest first."""
    return [order_to_summary(order) for order in await service.list_orders(user)]


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not your order"},
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
async def get_order(order_id: str, user: CurrentUser, service: ServiceDep) -> OrderResponse:
    """Get order details."""
    return order_to_response(await service.get_order(user, order_id))


@router.put(
    "/{order_id}",
    response_model=OrderResponse,
    responses={
        400: {"model": ErrorResponse, "description": "No changes or order past editing"},
        403: {"model": ErrorResponse, "description": "Not your order"},
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
async def update_order(
    order_id: str,
    body: OrderCustomerUpdateRequest,
    user: CurrentUser,
    service: ServiceDep,
) -> OrderResponse:
    """Change shipping details or cancel while the order is Pending or Processing."""
    shipping = ShippingUpdate(name=body.name, email=body.email, phone=body.phone, address=body.address)
    order = await service.update_by_owner(user, order_id, shipping, cancel=body.cancel)
    return order_to_response(order)


@router.patch(
    "/{order_id}",
    response_model=OrderResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid transition or no changes"},
        403: {"model": ErrorResponse, "description": "Admins only"},
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
async def admin_update_order(
    order_id: str,
    body: OrderAdminUpdateRequest,
    admin: AdminUser,
    service: ServiceDep,
) -> OrderResponse:
    """Change the order status and/or add a comment."""
    target = OrderStatus(body.status.value) if body.status else None
    order = await service.update_by_admin(admin, order_id, status=target, comment=body.comment)
    return order_to_response(order)


@router.post(
    "/{order_id}/reorder",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse, "description": "Order not found"}},
)
async def reorder(order_id: str, user: CurrentUser, service: CartServiceDep) -> CartResponse:
    """Copy the order's items back into the cart."""
    return cart_to_response(await service.reorder(user, order_id))


# ============================================================================
# Invoices
# ============================================================================


@router.get(
    "/{order_id}/invoice",
    response_model=InvoiceSchema,
    responses={404: {"model": ErrorResponse, "description": "Order or invoice not found"}},
)
async def get_invoice(order_id: str, user: CurrentUser, service: ServiceDep) -> InvoiceSchema:
    """Get the order's invoice."""
    return invoice_to_schema(await service.get_invoice(user, order_id))


@router.post(
    "/{order_id}/invoice",
    response_model=InvoiceSchema,
    responses={404: {"model": ErrorResponse, "description": "Order not found"}},
)
async def save_invoice(
    order_id: str,
    body: InvoiceRequest,
    admin: AdminUser,
    service: ServiceDep,
) -> InvoiceSchema:
    """Attach or replace the order's invoice."""
    invoice = await service.upsert_invoice(order_id, body.number, body.url, issued_at=body.issued_at)
    return invoice_to_schema(invoice)


# ============================================================================
# Returns
# ============================================================================


@router.get("/{order_id}/returns", response_model=list[ReturnResponse])
async def list_returns(order_id: str, user: CurrentUser, service: ReturnServiceDep) -> list[ReturnResponse]:
    """List return requests for the order."""
    return [return_to_response(r) for r in await service.list_returns(user, order_id)]


@router.post(
    "/{order_id}/returns",
    response_model=ReturnResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Outside the return window or missing reason"},
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
async def request_return(
    order_id: str,
    body: ReturnCreateRequest,
    user: CurrentUser,
    service: ReturnServiceDep,
) -> ReturnResponse:
    """Request a return within the window after delivery."""
    request = await service.request_return(user, order_id, body.reason, notes=body.notes)
    return return_to_response(request)


@router.patch(
    "/{order_id}/returns",
    response_model=ReturnResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid transition"},
        404: {"model": ErrorResponse, "description": "Order or return not found"},
    },
)
async def update_return(
    order_id: str,
    body: ReturnUpdateRequest,
    admin: AdminUser,
    service: ReturnServiceDep,
) -> ReturnResponse:
    """Accept, decline or complete a return."""
    request = await service.update_status(order_id, body.return_id, ReturnStatus(body.status.value))
    return return_to_response(request)

"""Cart API endpoints.

Provides endpoints for the signed-in user's cart:
- GET /cart - priced cart contents
- POST /cart - add a product with a variation selection
- DELETE /cart - remove one line or empty the cart
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from storefront.api.converters import product_to_response
from storefront.api.dependencies import CurrentUser, RequestIdDep, SessionDep
from storefront.api.schemas import (
    CartDeleteRequest,
    CartItemRequest,
    CartItemResponse,
    CartResponse,
    ErrorResponse,
)
from storefront.application.cart_service import CartService, CartView
from storefront.domain.exceptions import ValidationError

router = APIRouter(prefix="/cart", tags=["Cart"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(session: SessionDep, request_id: RequestIdDep) -> CartService:
    """Get cart service with request ID."""
    return CartService(session, request_id=request_id)


ServiceDep = Annotated[CartService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


def cart_to_response(cart: CartView) -> CartResponse:
    """Convert CartView to CartResponse."""
    return CartResponse(
        items=[
            CartItemResponse(
                id=line.item.id,
                product=product_to_response(line.item.product),
                quantity=line.item.quantity,
                selected_variations=line.item.selected_variations or {},
                unit_price_cents=line.unit_price_cents,
                line_total_cents=line.line_total_cents,
            )
            for line in cart.lines
        ],
        item_count=cart.item_count,
        total_cents=cart.total_cents,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("", response_model=CartResponse)
async def get_cart(user: CurrentUser, service: ServiceDep) -> CartResponse:
    """Get the cart, newest lines first."""
    return cart_to_response(await service.get_cart(user.id))


@router.post(
    "",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid quantity or selection"},
        404: {"model": ErrorResponse, "description": "Product not found"},
    },
)
async def add_to_cart(body: CartItemRequest, user: CurrentUser, service: ServiceDep) -> CartResponse:
    """Add a product; an identical selection grows the existing line."""
    cart = await service.add_item(
        user.id,
        body.product_id,
        quantity=body.quantity,
        selected_variations=body.selected_variations,
    )
    return cart_to_response(cart)


@router.delete(
    "",
    response_model=CartResponse,
    responses={400: {"model": ErrorResponse, "description": "Nothing to remove"}},
)
async def remove_from_cart(
    user: CurrentUser,
    service: ServiceDep,
    body: CartDeleteRequest | None = None,
) -> CartResponse:
    """Remove one line by ``item_id`` or everything with ``all: true``."""
    if body is not None and body.all:
        return cart_to_response(await service.clear(user.id))
    if body is not None and body.item_id:
        return cart_to_response(await service.remove_item(user.id, body.item_id))
    raise ValidationError("Provide item_id or all")

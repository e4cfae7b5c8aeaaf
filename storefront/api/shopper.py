"""Shopper list API endpoints.

Provides endpoints for the signed-in user's product lists:
- GET|POST /wishlist, GET|DELETE /wishlist/{product_id}
- GET|POST /recently-viewed, GET /recently-viewed/count
- GET|POST|DELETE /comparison
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from storefront.api.converters import product_to_response
from storefront.api.dependencies import CurrentUser, RequestIdDep, SessionDep
from storefront.api.schemas import (
    ComparisonResponse,
    ErrorResponse,
    ProductRefRequest,
    RecentlyViewedResponse,
    WishlistItemResponse,
    WishlistStatusResponse,
)
from storefront.application.shopper_service import ComparisonView, ShopperService
from storefront.infrastructure.models import RecentlyViewed, WishlistItem

wishlist_router = APIRouter(prefix="/wishlist", tags=["Wishlist"])
recently_viewed_router = APIRouter(prefix="/recently-viewed", tags=["Recently viewed"])
comparison_router = APIRouter(prefix="/comparison", tags=["Comparison"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(session: SessionDep, request_id: RequestIdDep) -> ShopperService:
    """Get shopper list service with request ID."""
    return ShopperService(session, request_id=request_id)


ServiceDep = Annotated[ShopperService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


def wishlist_to_response(entry: WishlistItem) -> WishlistItemResponse:
    """Convert WishlistItem to WishlistItemResponse."""
    return WishlistItemResponse(
        id=entry.id,
        product=product_to_response(entry.product),
        created_at=entry.created_at,
    )


def recently_viewed_to_response(entry: RecentlyViewed) -> RecentlyViewedResponse:
    """Convert RecentlyViewed to RecentlyViewedResponse."""
    return RecentlyViewedResponse(
        id=entry.id,
        product=product_to_response(entry.product),
        viewed_at=entry.viewed_at,
    )


def comparison_to_response(view: ComparisonView) -> ComparisonResponse:
    """Convert ComparisonView to ComparisonResponse."""
    return ComparisonResponse(
        ids=view.ids,
        products=[product_to_response(p) for p in view.products],
        record_id=view.record_id,
    )


# ============================================================================
# Wishlist
# ============================================================================


@wishlist_router.get("", response_model=list[WishlistItemResponse])
async def list_wishlist(user: CurrentUser, service: ServiceDep) -> list[WishlistItemResponse]:
    """List saved products, newest first."""
    return [wishlist_to_response(e) for e in await service.list_wishlist(user.id) if e.product]


@wishlist_router.post(
    "",
    response_model=WishlistItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def add_to_wishlist(body: ProductRefRequest, user: CurrentUser, service: ServiceDep) -> WishlistItemResponse:
    """Save a product. Saving it again changes nothing."""
    return wishlist_to_response(await service.add_to_wishlist(user.id, body.product_id))


@wishlist_router.get("/{product_id}", response_model=WishlistStatusResponse)
async def wishlist_status(product_id: str, user: CurrentUser, service: ServiceDep) -> WishlistStatusResponse:
    """Check whether a product is saved."""
    return WishlistStatusResponse(in_wishlist=await service.in_wishlist(user.id, product_id))


@wishlist_router.delete("/{product_id}", response_model=WishlistStatusResponse)
async def remove_from_wishlist(product_id: str, user: CurrentUser, service: ServiceDep) -> WishlistStatusResponse:
    """Remove a product from the wishlist."""
    await service.remove_from_wishlist(user.id, product_id)
    return WishlistStatusResponse(in_wishlist=False)


# ============================================================================
# Recently viewed
# ============================================================================


@recently_viewed_router.get("", response_model=list[RecentlyViewedResponse])
async def list_recently_viewed(user: CurrentUser, service: ServiceDep) -> list[RecentlyViewedResponse]:
    """Latest viewed products, most recent first."""
    return [recently_viewed_to_response(e) for e in await service.list_recently_viewed(user.id) if e.product]


@recently_viewed_router.post(
    "",
    response_model=RecentlyViewedResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def record_view(body: ProductRefRequest, user: CurrentUser, service: ServiceDep) -> RecentlyViewedResponse:
    """Record a product view."""
    return recently_viewed_to_response(await service.record_view(user.id, body.product_id))


@recently_viewed_router.get("/count", response_model=dict[str, int])
async def view_counts(service: ServiceDep) -> dict[str, int]:
    """Number of shoppers who viewed each product."""
    return await service.view_counts()


# ============================================================================
# Comparison
# ============================================================================


@comparison_router.get("", response_model=ComparisonResponse)
async def get_comparison(user: CurrentUser, service: ServiceDep) -> ComparisonResponse:
    """Get the comparison tray."""
    return comparison_to_response(await service.get_comparison(user.id))


@comparison_router.post(
    "",
    response_model=ComparisonResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def add_to_comparison(body: ProductRefRequest, user: CurrentUser, service: ServiceDep) -> ComparisonResponse:
    """Put a product at the front of the tray (at most four are kept)."""
    return comparison_to_response(await service.add_to_comparison(user.id, body.product_id))


@comparison_router.delete("", response_model=ComparisonResponse)
async def remove_from_comparison(
    user: CurrentUser,
    service: ServiceDep,
    product_id: Annotated[str, Query(description="Product to remove")] = "",
) -> ComparisonResponse:
    """Take a product out of the tray."""
    return comparison_to_response(await service.remove_from_comparison(user.id, product_id))

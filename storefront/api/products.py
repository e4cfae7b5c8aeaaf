"""Catalog API endpoints.

Provides endpoints for browsing the catalog:
- GET /products - list products (search and category filters)
- GET /products/{id} - product details
- GET /bundles - active bundles, optionally containing a product
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from storefront.api.converters import product_to_response
from storefront.api.dependencies import RequestIdDep, SessionDep
from storefront.api.schemas import (
    BundleItemSchema,
    BundleResponse,
    ErrorResponse,
    ProductResponse,
)
from storefront.application.catalog_service import BundleView, CatalogService

router = APIRouter(prefix="/products", tags=["Catalog"])
bundles_router = APIRouter(prefix="/bundles", tags=["Catalog"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(session: SessionDep, request_id: RequestIdDep) -> CatalogService:
    """Get catalog service with request ID."""
    return CatalogService(session, request_id=request_id)


ServiceDep = Annotated[CatalogService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


def bundle_to_response(view: BundleView) -> BundleResponse:
    """Convert BundleView to BundleResponse."""
    bundle = view.bundle
    return BundleResponse(
        id=bundle.id,
        name=bundle.name,
        description=bundle.description,
        items=[
            BundleItemSchema(
                product_id=item.product_id,
                quantity=item.quantity,
                product=product_to_response(item.product) if item.product else None,
            )
            for item in view.items
        ],
        price_override_cents=bundle.price_override_cents,
        total_cents=view.total_cents,
        active=bundle.active,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("", response_model=list[ProductResponse])
async def list_products(
    service: ServiceDep,
    search: Annotated[str | None, Query(description="Match name, description or category")] = None,
    category: Annotated[str | None, Query(description="Exact category")] = None,
) -> list[ProductResponse]:
    """List products, newest first."""
    products = await service.list_products(search=search, category=category)
    return [product_to_response(p) for p in products]


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def get_product(product_id: str, service: ServiceDep) -> ProductResponse:
    """Get product details."""
    return product_to_response(await service.get_product(product_id))


@bundles_router.get("", response_model=list[BundleResponse])
async def list_bundles(
    service: ServiceDep,
    product_id: Annotated[str | None, Query(description="Only bundles containing this product")] = None,
) -> list[BundleResponse]:
    """List active bundles with their products and price."""
    return [bundle_to_response(view) for view in await service.list_bundles(product_id=product_id)]

"""Admin console API endpoints.

Every path here requires an ADMIN session (enforced by the session
middleware and again by the route dependency).

- GET|POST /admin/products, PUT|DELETE /admin/products/{id}
- GET|PUT|PATCH|DELETE /admin/users
- GET /admin/orders
- GET /admin/questions
- POST /admin/bundles
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from storefront.api.converters import (
    order_to_summary,
    product_to_response,
    question_to_response,
    user_to_admin_response,
)
from storefront.api.dependencies import AdminUser, ImageStoreDep, MailerDep, RequestIdDep, SessionDep
from storefront.api.products import bundle_to_response
from storefront.api.schemas import (
    AdminDeleteUserRequest,
    AdminPasswordRequest,
    AdminUserResponse,
    AdminVerifyRequest,
    BundleCreateRequest,
    BundleResponse,
    DeletedResponse,
    ErrorResponse,
    OrderStatusEnum,
    OrderSummarySchema,
    ProductResponse,
    ProductWriteRequest,
    QuestionResponse,
)
from storefront.application.admin_service import AdminService
from storefront.application.catalog_service import CatalogService, ProductInput
from storefront.application.order_service import OrderService
from storefront.application.review_service import ReviewService
from storefront.domain.state_machines import OrderStatus

router = APIRouter(prefix="/admin", tags=["Admin"])


# ============================================================================
# Dependencies
# ============================================================================


def get_catalog_service(session: SessionDep, images: ImageStoreDep, request_id: RequestIdDep) -> CatalogService:
    """Get catalog service with the image store."""
    return CatalogService(session, image_store=images, request_id=request_id)


def get_admin_service(session: SessionDep, request_id: RequestIdDep) -> AdminService:
    """Get user management service with request ID."""
    return AdminService(session, request_id=request_id)


def get_order_service(
    session: SessionDep,
    mailer: MailerDep,
    request_id: RequestIdDep,
) -> OrderService:
    """Get order service with request ID."""
    return OrderService(session, mailer, request_id=request_id)


def get_review_service(session: SessionDep, request_id: RequestIdDep) -> ReviewService:
    """Get review service with request ID."""
    return ReviewService(session, request_id=request_id)


CatalogDep = Annotated[CatalogService, Depends(get_catalog_service)]
AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]
OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
ReviewServiceDep = Annotated[ReviewService, Depends(get_review_service)]


def product_input(body: ProductWriteRequest) -> ProductInput:
    """Convert ProductWriteRequest to ProductInput."""
    return ProductInput(
        name=body.name,
        description=body.description,
        price_cents=body.price_cents,
        stock=body.stock,
        category=body.category,
        variations=[v.model_dump() for v in body.variations] if body.variations is not None else None,
    )


# ============================================================================
# Products
# ============================================================================


@router.get("/products", response_model=list[ProductResponse])
async def admin_list_products(admin: AdminUser, service: CatalogDep) -> list[ProductResponse]:
    """List every product, newest first."""
    return [product_to_response(p) for p in await service.list_products()]


@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing name, price or image"},
        502: {"model": ErrorResponse, "description": "Image upload failed"},
    },
)
async def admin_create_product(body: ProductWriteRequest, admin: AdminUser, service: CatalogDep) -> ProductResponse:
    """Create a product; images are uploaded to the image host."""
    product = await service.create_product(product_input(body), body.images)
    return product_to_response(product)


@router.put(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={
        400: {"model": ErrorResponse, "description": "No image would remain"},
        404: {"model": ErrorResponse, "description": "Product not found"},
    },
)
async def admin_update_product(
    product_id: str,
    body: ProductWriteRequest,
    admin: AdminUser,
    service: CatalogDep,
) -> ProductResponse:
    """Update a product, keeping the listed images and adding new uploads."""
    product = await service.update_product(
        product_id,
        product_input(body),
        images=body.images,
        keep_image_urls=body.keep_image_urls,
    )
    return product_to_response(product)


@router.delete(
    "/products/{product_id}",
    response_model=DeletedResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def admin_delete_product(product_id: str, admin: AdminUser, service: CatalogDep) -> DeletedResponse:
    """Delete a product with its reviews, questions and list entries."""
    await service.delete_product(product_id)
    return DeletedResponse(id=product_id)


# ============================================================================
# Bundles
# ============================================================================


@router.post(
    "/bundles",
    response_model=BundleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Empty bundle or unknown products"}},
)
async def admin_create_bundle(body: BundleCreateRequest, admin: AdminUser, service: CatalogDep) -> BundleResponse:
    """Create a bundle of existing products."""
    bundle = await service.create_bundle(
        body.name,
        [item.model_dump() for item in body.items],
        description=body.description,
        price_override_cents=body.price_override_cents,
        active=body.active,
    )
    return bundle_to_response(await service.describe_bundle(bundle))


# ============================================================================
# Users
# ============================================================================


@router.get("/users", response_model=list[AdminUserResponse])
async def admin_list_users(admin: AdminUser, service: AdminServiceDep) -> list[AdminUserResponse]:
    """List accounts ordered by email."""
    return [user_to_admin_response(u) for u in await service.list_users()]


@router.put(
    "/users",
    response_model=AdminUserResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Password too short"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def admin_set_password(
    body: AdminPasswordRequest,
    admin: AdminUser,
    service: AdminServiceDep,
) -> AdminUserResponse:
    """Set a user's password."""
    return user_to_admin_response(await service.set_password(body.user_id, body.password))


@router.patch(
    "/users",
    response_model=AdminUserResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def admin_set_verified(
    body: AdminVerifyRequest,
    admin: AdminUser,
    service: AdminServiceDep,
) -> AdminUserResponse:
    """Mark a user verified or unverified."""
    return user_to_admin_response(await service.set_verified(body.user_id, body.verified))


@router.delete(
    "/users",
    response_model=DeletedResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Cannot delete yourself"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def admin_delete_user(
    body: AdminDeleteUserRequest,
    admin: AdminUser,
    service: AdminServiceDep,
) -> DeletedResponse:
    """Delete a user. Their orders stay with the owner cleared."""
    await service.delete_user(admin, body.user_id)
    return DeletedResponse(id=body.user_id)


# ============================================================================
# Orders & Questions
# ============================================================================


@router.get("/orders", response_model=list[OrderSummarySchema])
async def admin_list_orders(
    admin: AdminUser,
    service: OrderServiceDep,
    status_filter: Annotated[OrderStatusEnum | None, Query(alias="status", description="Only this status")] = None,
) -> list[OrderSummarySchema]:
    """List every order with its customer, newest first."""
    target = OrderStatus(status_filter.value) if status_filter else None
    return [order_to_summary(o) for o in await service.list_all_orders(status=target)]


@router.get("/questions", response_model=list[QuestionResponse])
async def admin_list_questions(admin: AdminUser, service: ReviewServiceDep) -> list[QuestionResponse]:
    """List every product question, newest first."""
    return [question_to_response(q) for q in await service.list_all_questions()]

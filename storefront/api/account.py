"""Address and payment method API endpoints.

Provides endpoints for the signed-in user's saved details:
- GET|POST /addresses, GET|PUT|DELETE /addresses/{id}
- GET|POST /payment-methods, PUT|DELETE /payment-methods/{id}

Each user has at most one default address and one default payment method.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from storefront.api.dependencies import CurrentUser, RequestIdDep, SessionDep
from storefront.api.schemas import (
    AddressRequest,
    AddressResponse,
    DeletedResponse,
    ErrorResponse,
    PaymentMethodRequest,
    PaymentMethodResponse,
    PaymentMethodUpdateRequest,
)
from storefront.application.account_service import AccountService, AddressInput, CardInput
from storefront.infrastructure.models import Address, PaymentMethod

addresses_router = APIRouter(prefix="/addresses", tags=["Addresses"])
payment_methods_router = APIRouter(prefix="/payment-methods", tags=["Payment methods"])

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Not found"}}


# ============================================================================
# Dependencies
# ============================================================================


def get_service(session: SessionDep, request_id: RequestIdDep) -> AccountService:
    """Get account service with request ID."""
    return AccountService(session, request_id=request_id)


ServiceDep = Annotated[AccountService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


def address_to_response(address: Address) -> AddressResponse:
    """Convert Address to AddressResponse."""
    return AddressResponse(
        id=address.id,
        label=address.label,
        name=address.name,
        phone=address.phone,
        line1=address.line1,
        line2=address.line2,
        city=address.city,
        post_code=address.post_code,
        country=address.country,
        is_default=address.is_default,
    )


def address_input(body: AddressRequest) -> AddressInput:
    """Convert AddressRequest to AddressInput."""
    return AddressInput(
        label=body.label,
        name=body.name,
        phone=body.phone,
        line1=body.line1,
        line2=body.line2,
        city=body.city,
        post_code=body.post_code,
        country=body.country,
    )


def payment_method_to_response(method: PaymentMethod) -> PaymentMethodResponse:
    """Convert PaymentMethod to PaymentMethodResponse."""
    return PaymentMethodResponse(
        id=method.id,
        name_on_card=method.name_on_card,
        brand=method.brand,
        last4=method.last4,
        exp_month=method.exp_month,
        exp_year=method.exp_year,
        provider=method.provider,
        is_default=method.is_default,
    )


# ============================================================================
# Addresses
# ============================================================================


@addresses_router.get("", response_model=list[AddressResponse])
async def list_addresses(user: CurrentUser, service: ServiceDep) -> list[AddressResponse]:
    """List addresses, default first."""
    return [address_to_response(a) for a in await service.list_addresses(user.id)]


@addresses_router.post(
    "",
    response_model=AddressResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Missing required fields"}},
)
async def create_address(body: AddressRequest, user: CurrentUser, service: ServiceDep) -> AddressResponse:
    """Save an address. The first one becomes the default."""
    address = await service.create_address(user.id, address_input(body), is_default=bool(body.is_default))
    return address_to_response(address)


@addresses_router.get("/{address_id}", response_model=AddressResponse, responses=NOT_FOUND)
async def get_address(address_id: str, user: CurrentUser, service: ServiceDep) -> AddressResponse:
    """Get one address."""
    return address_to_response(await service.get_address(user.id, address_id))


@addresses_router.put("/{address_id}", response_model=AddressResponse, responses=NOT_FOUND)
async def update_address(
    address_id: str,
    body: AddressRequest,
    user: CurrentUser,
    service: ServiceDep,
) -> AddressResponse:
    """Update an address; ``is_default: true`` makes it the default."""
    address = await service.update_address(user.id, address_id, address_input(body), is_default=body.is_default)
    return address_to_response(address)


@addresses_router.delete("/{address_id}", response_model=DeletedResponse, responses=NOT_FOUND)
async def delete_address(address_id: str, user: CurrentUser, service: ServiceDep) -> DeletedResponse:
    """Delete an address."""
    await service.delete_address(user.id, address_id)
    return DeletedResponse(id=address_id)


# ============================================================================
# Payment methods
# ============================================================================


@payment_methods_router.get("", response_model=list[PaymentMethodResponse])
async def list_payment_methods(user: CurrentUser, service: ServiceDep) -> list[PaymentMethodResponse]:
    """List saved cards, default first."""
    return [payment_method_to_response(m) for m in await service.list_payment_methods(user.id)]


@payment_methods_router.post(
    "",
    response_model=PaymentMethodResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Card number missing or malformed"}},
)
async def create_payment_method(
    body: PaymentMethodRequest,
    user: CurrentUser,
    service: ServiceDep,
) -> PaymentMethodResponse:
    """Save a card. Only the brand and last four digits are stored."""
    card = CardInput(
        card_number=body.card_number,
        name_on_card=body.name_on_card,
        brand=body.brand,
        exp_month=body.exp_month,
        exp_year=body.exp_year,
        provider=body.provider,
        provider_payment_method_id=body.provider_payment_method_id,
        provider_customer_id=body.provider_customer_id,
    )
    method = await service.create_payment_method(user.id, card, is_default=body.is_default)
    return payment_method_to_response(method)


@payment_methods_router.put("/{method_id}", response_model=PaymentMethodResponse, responses=NOT_FOUND)
async def update_payment_method(
    method_id: str,
    body: PaymentMethodUpdateRequest,
    user: CurrentUser,
    service: ServiceDep,
) -> PaymentMethodResponse:
    """Set or clear the default flag."""
    method = await service.set_default_payment_method(user.id, method_id, body.is_default)
    return payment_method_to_response(method)


@payment_methods_router.delete("/{method_id}", response_model=DeletedResponse, responses=NOT_FOUND)
async def delete_payment_method(method_id: str, user: CurrentUser, service: ServiceDep) -> DeletedResponse:
    """Delete a saved card."""
    await service.delete_payment_method(user.id, method_id)
    return DeletedResponse(id=method_id)

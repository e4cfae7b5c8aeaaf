"""Checkout API endpoint.

- POST /checkout - turn the cart into an order (card or cash on delivery)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from storefront.api.dependencies import CurrentUser, MailerDep, PaymentsDep, RequestIdDep, SessionDep
from storefront.api.schemas import CheckoutRequest, CheckoutResponse, ErrorResponse
from storefront.application.checkout_service import (
    CheckoutService,
    PaymentMethodType,
    ShippingDetails,
)

router = APIRouter(prefix="/checkout", tags=["Checkout"])


def get_service(
    session: SessionDep,
    mailer: MailerDep,
    payments: PaymentsDep,
    request_id: RequestIdDep,
) -> CheckoutService:
    """Get checkout service with request ID."""
    return CheckoutService(session, mailer, payments, request_id=request_id)


ServiceDep = Annotated[CheckoutService, Depends(get_service)]


@router.post(
    "",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Empty cart or insufficient stock"},
        502: {"model": ErrorResponse, "description": "Payment provider failed"},
    },
)
async def checkout(body: CheckoutRequest, user: CurrentUser, service: ServiceDep) -> CheckoutResponse:
    """Place an order for the cart.

    Card orders return the hosted payment page URL; cash on delivery
    orders return a confirmation message.
    """
    shipping = ShippingDetails(
        name=body.shipping.name,
        email=body.shipping.email,
        phone=body.shipping.phone,
        address=body.shipping.address,
    )
    result = await service.checkout(user, PaymentMethodType(body.method.value), shipping)
    return CheckoutResponse(order_id=result.order.id, url=result.payment_url, message=result.message)

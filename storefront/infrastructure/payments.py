"""Card payment sessions via Stripe Checkout."""

import asyncio
from dataclasses import dataclass
from typing import Any

import stripe
import structlog

from storefront.domain.exceptions import ExternalServiceError
from storefront.infrastructure.config import settings

logger = structlog.get_logger()


@dataclass
class PaymentLine:
    """One line item sent to the payment provider."""

    name: str
    unit_amount: int
    quantity: int


@dataclass
class PaymentSession:
    """Hosted payment page created for an order."""

    id: str
    url: str


class StripePaymentGateway:
    """Creates hosted checkout sessions on Stripe."""

    def __init__(self, api_key: str | None = None, currency: str | None = None) -> None:
        self.api_key = settings.stripe_secret_key if api_key is None else api_key
        self.currency = (currency or settings.currency).lower()

    def _line_items(self, lines: list[PaymentLine]) -> list[dict[str, Any]]:
        return [
            {
                "quantity": line.quantity,
                "price_data": {
                    "currency": self.currency,
                    "unit_amount": line.unit_amount,
                    "product_data": {"name": line.name},
                },
            }
            for line in lines
        ]

    async def create_checkout_session(
        self,
        order_id: str,
        lines: list[PaymentLine],
        customer_email: str | None,
        success_url: str,
        cancel_url: str,
    ) -> PaymentSession:
        """Create a hosted payment session for an order.

        Args:
            order_id: Order the payment belongs to.
            lines: Priced order lines.
            customer_email: Prefilled on the payment page.
            success_url: Redirect after payment.
            cancel_url: Redirect when the shopper backs out.

        Returns:
            Created payment session.

        Raises:
            ExternalServiceError: If the provider is unconfigured or fails.
        """
        if not self.api_key:
            raise ExternalServiceError("payments", "Card payments are not configured")

        params: dict[str, Any] = {
            "api_key": self.api_key,
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": self._line_items(lines),
            "metadata": {"order_id": order_id},
            "client_reference_id": order_id,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = await asyncio.to_thread(stripe.checkout.Session.create, **params)
        except stripe.StripeError as e:
            logger.error("Payment session creation failed", order_id=order_id, error=str(e))
            raise ExternalServiceError("payments", "Could not start card payment") from e

        logger.info("Payment session created", order_id=order_id, session_id=session.id)
        return PaymentSession(id=session.id, url=session.url)


def get_payment_gateway() -> StripePaymentGateway:
    """Get the payment gateway."""
    return StripePaymentGateway()

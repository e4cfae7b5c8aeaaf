"""Customer and staff notifications.

Composes the shop's emails and hands them to the mailer. Every method is
best-effort: delivery failures are logged by the mailer and never raised,
except for the contact form which must report failure to the sender.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from html import escape
from typing import Any

import structlog

from storefront.infrastructure.config import settings
from storefront.infrastructure.mailer import CallToAction, SmtpMailer, build_email, field_line

logger = structlog.get_logger()

_CURRENCY_SYMBOLS = {"GBP": "£", "USD": "$", "EUR": "€"}


def format_money(amount_cents: int, currency: str | None = None) -> str:
    """Format minor units for display, e.g. ``£12.50``."""
    code = (currency or settings.currency).upper()
    symbol = _CURRENCY_SYMBOLS.get(code, f"{code} ")
    return f"{symbol}{amount_cents / 100:.2f}"


def describe_selection(selection: Mapping[str, str] | None) -> str:
    """Render a variation selection as ``Color: Blue, Storage: 128GB``."""
    return ", ".join(f"{name}: {value}" for name, value in (selection or {}).items())


def _item_lines(items: Iterable[Mapping[str, Any]], currency: str) -> str:
    rendered = []
    for item in items:
        line = (
            f"{item.get('name', 'Item')} x{item.get('quantity', 0)} "
            f"- {format_money(int(item.get('price_cents', 0)) * int(item.get('quantity', 0)), currency)}"
        )
        variations = describe_selection(item.get("selected_variations"))
        if variations:
            line = f"{line} ({variations})"
        rendered.append(escape(line))
    return "<br/>".join(rendered)


def _payment_label(method: str) -> str:
    return "Cash on Delivery" if method == "cod" else "Card"


class Notifier:
    """Builds and sends notification emails."""

    def __init__(self, mailer: SmtpMailer) -> None:
        self.mailer = mailer

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def verification(self, name: str | None, email: str, token: str) -> bool:
        link = f"{settings.public_base_url}/verify/{token}"
        html = build_email(
            title="Verify your email",
            greeting=f"Hi {name or 'there'},",
            intro="Thanks for signing up. Please confirm your email address to activate your account.",
            cta=CallToAction(label="Verify email", url=link),
            footer="If you did not create an account you can ignore this email.",
        )
        return await self.mailer.send(email, "Verify your email", html=html)

    async def password_reset(self, name: str | None, email: str, token: str) -> bool:
        link = f"{settings.public_base_url}/reset/{token}"
        html = build_email(
            title="Reset your password",
            greeting=f"Hi {name or 'there'},",
            intro="We received a request to reset your password.",
            cta=CallToAction(label="Reset password", url=link),
            footer="If you did not request this you can ignore this email.",
        )
        return await self.mailer.send(email, "Reset your password", html=html)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def order_confirmed(
        self,
        order_id: str,
        method: str,
        total_cents: int,
        currency: str,
        items: list[dict[str, Any]],
        shipping: Mapping[str, str | None],
    ) -> None:
        subject = f"Order confirmed ({_payment_label(method)})"
        item_lines = _item_lines(items, currency)

        if shipping.get("email"):
            customer_html = build_email(
                title="Order confirmed",
                greeting=f"Hi {shipping.get('name') or 'there'},",
                intro="Thanks for your order. We are preparing it now.",
                lines=[
                    field_line("Payment", _payment_label(method)),
                    field_line("Total", format_money(total_cents, currency)),
                    f"<strong>Items:</strong><br/>{item_lines}",
                    field_line("Phone", shipping.get("phone") or "-"),
                    field_line("Address", shipping.get("address") or "-"),
                ],
                footer="You can view your orders anytime from your account.",
            )
            await self.mailer.send(shipping["email"], subject, html=customer_html)

        admin_html = build_email(
            title="New order placed",
            intro="A customer placed a new order.",
            lines=[
                field_line("Customer", f"{shipping.get('name')} ({shipping.get('email')})"),
                field_line("Payment", _payment_label(method)),
                field_line("Total", format_money(total_cents, currency)),
                field_line("Order ID", order_id),
                f"<strong>Items:</strong><br/>{item_lines}",
            ],
        )
        await self.mailer.send(settings.admin_recipient, f"Admin copy: {subject}", html=admin_html)

    async def order_status_changed(
        self,
        email: str | None,
        name: str | None,
        order_id: str,
        status: str,
        comment: str | None = None,
    ) -> None:
        if not email:
            return
        lines = [field_line("Order ID", order_id), field_line("Status", status)]
        if comment:
            lines.append(field_line("Note", comment))
        html = build_email(
            title="Order update",
            greeting=f"Hi {name or 'there'},",
            intro=f"Your order is now {status}.",
            lines=lines,
            cta=CallToAction(label="View order", url=f"{settings.public_base_url}/orders/{order_id}"),
        )
        await self.mailer.send(email, f"Order {order_id[:8]} is {status}", html=html)

    # ------------------------------------------------------------------
    # Returns
    # ------------------------------------------------------------------

    async def return_submitted(
        self,
        email: str | None,
        order_id: str,
        rma_number: str,
        reason: str,
        notes: str | None,
    ) -> None:
        subject = f"Return request submitted ({order_id[:8]})"
        lines = [
            field_line("Order ID", order_id),
            field_line("RMA", rma_number),
            field_line("Reason", reason),
        ]
        if notes:
            lines.append(field_line("Notes", notes))

        if email:
            html = build_email(
                title="Return request received",
                intro="We received your return request. We will review it and get back to you.",
                lines=lines,
                footer="Please include your RMA number with the returned item.",
            )
            await self.mailer.send(email, subject, html=html)

        admin_html = build_email(
            title="New return request",
            intro=f"A return was requested by {email or 'a customer'}.",
            lines=lines,
        )
        await self.mailer.send(settings.admin_recipient, f"Admin copy: {subject}", html=admin_html)

    async def return_status_changed(self, email: str | None, order_id: str, rma_number: str, status: str) -> None:
        if not email:
            return
        html = build_email(
            title="Return update",
            intro=f"Your return {rma_number} is now {status}.",
            lines=[field_line("Order ID", order_id), field_line("RMA", rma_number)],
        )
        await self.mailer.send(email, f"Return {rma_number} {status}", html=html)

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def question_asked(self, product_name: str, asker: str | None, question: str) -> None:
        html = build_email(
            title="New product question",
            intro=f"A customer asked about {product_name}.",
            lines=[field_line("From", asker or "-"), field_line("Question", question)],
        )
        await self.mailer.send(settings.admin_recipient, f"New question: {product_name}", html=html)

    async def question_answered(self, email: str | None, product_name: str, question: str, answer: str) -> None:
        if not email:
            return
        html = build_email(
            title="Your question was answered",
            intro=f"We answered your question about {product_name}.",
            lines=[field_line("Question", question), field_line("Answer", answer)],
        )
        await self.mailer.send(email, f"Answer to your question about {product_name}", html=html)

    # ------------------------------------------------------------------
    # Repairs
    # ------------------------------------------------------------------

    async def repair_booked(
        self,
        email: str | None,
        name: str | None,
        phone_model: str,
        issue: str,
        when: datetime,
    ) -> None:
        when_text = when.strftime("%A %d %B %Y, %H:%M")
        lines = [
            field_line("Device", phone_model),
            field_line("Issue", issue),
            field_line("When", when_text),
        ]
        if email:
            html = build_email(
                title="Repair booking confirmed",
                greeting=f"Hi {name or 'there'},",
                intro="Your repair appointment is booked.",
                lines=lines,
            )
            await self.mailer.send(email, "Repair booking confirmed", html=html)

        support_html = build_email(
            title="New repair booking",
            intro=f"{name or 'A customer'} ({email or '-'}) booked a repair.",
            lines=lines,
        )
        await self.mailer.send(settings.support_recipient, "New repair booking", html=support_html)

    async def repair_cancelled(
        self,
        email: str | None,
        name: str | None,
        phone_model: str,
        when: datetime,
    ) -> None:
        lines = [
            field_line("Device", phone_model),
            field_line("When", when.strftime("%A %d %B %Y, %H:%M")),
        ]
        if email:
            html = build_email(
                title="Repair booking cancelled",
                greeting=f"Hi {name or 'there'},",
                intro="Your repair appointment has been cancelled.",
                lines=lines,
            )
            await self.mailer.send(email, "Repair booking cancelled", html=html)

        support_html = build_email(
            title="Repair booking cancelled",
            intro=f"{name or 'A customer'} ({email or '-'}) cancelled a repair.",
            lines=lines,
        )
        await self.mailer.send(settings.support_recipient, "Repair booking cancelled", html=support_html)

    # ------------------------------------------------------------------
    # Contact
    # ------------------------------------------------------------------

    async def contact_message(self, name: str | None, email: str, subject: str, message: str) -> None:
        """Forward a contact form message and acknowledge it.

        Raises:
            MailDeliveryError: If the message to support cannot be sent.
        """
        support_html = build_email(
            title="New contact message",
            lines=[
                field_line("From", f"{name or 'Anonymous'} ({email})"),
                field_line("Subject", subject),
                field_line("Message", message),
            ],
        )
        await self.mailer.send(
            settings.support_recipient,
            f"Contact: {subject}",
            html=support_html,
            reply_to=email,
            raise_on_error=True,
        )

        ack_html = build_email(
            title="We received your message",
            greeting=f"Hi {name or 'there'},",
            intro="Thanks for getting in touch. We will reply as soon as we can.",
            lines=[field_line("Subject", subject)],
        )
        await self.mailer.send(email, "We received your message", html=ack_html)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def server_error(self, method: str, url: str, error_text: str) -> None:
        recipient = settings.error_report_email or settings.admin_email
        if not recipient:
            return
        text = f"A 500 error occurred.\nURL: {method} {url}\n\n{error_text}"
        await self.mailer.send(recipient, f"Server error on {url}", text=text)

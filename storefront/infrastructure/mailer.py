"""Outbound email.

Builds the shop's HTML notification template and delivers it over SMTP.
Delivery is blocking, so it runs in a worker thread.
"""

import asyncio
import smtplib
from collections.abc import Iterable
from dataclasses import dataclass
from email.message import EmailMessage
from html import escape

import structlog

from storefront.infrastructure.config import settings

logger = structlog.get_logger()


# ============================================================================
# Template
# ============================================================================


@dataclass
class CallToAction:
    """Button rendered under the email body."""

    label: str
    url: str


def field_line(label: str, value: object) -> str:
    """Render a bold label followed by an escaped value."""
    text = "" if value is None else str(value)
    return f"<strong>{escape(label)}:</strong> {escape(text)}"


def build_email(
    title: str,
    intro: str | None = None,
    lines: Iterable[str] = (),
    greeting: str | None = None,
    cta: CallToAction | None = None,
    footer: str | None = None,
) -> str:
    """Render the HTML body used by every notification.

    ``title``, ``greeting``, ``intro`` and ``footer`` are escaped. ``lines``
    are trusted HTML fragments; build them with :func:`field_line` or
    escape user text before passing it in.

    Args:
        title: Heading shown at the top.
        intro: Optional first paragraph.
        lines: Body paragraphs.
        greeting: Optional salutation, e.g. "Hi Sam,".
        cta: Optional button.
        footer: Optional small print.

    Returns:
        Complete HTML document.
    """
    parts = [
        "<!doctype html>",
        '<html><body style="font-family:Arial,sans-serif;color:#1f2937;">',
        '<div style="max-width:600px;margin:0 auto;padding:24px;">',
        f'<h1 style="font-size:20px;">{escape(title)}</h1>',
    ]
    if greeting:
        parts.append(f"<p>{escape(greeting)}</p>")
    if intro:
        parts.append(f"<p>{escape(intro)}</p>")
    for line in lines:
        parts.append(f'<p style="margin:4px 0;">{line}</p>')
    if cta:
        parts.append(
            f'<p style="margin-top:20px;"><a href="{escape(cta.url, quote=True)}" '
            'style="background:#2563eb;color:#fff;padding:10px 16px;'
            f'border-radius:6px;text-decoration:none;">{escape(cta.label)}</a></p>'
        )
    if footer:
        parts.append(f'<p style="font-size:12px;color:#6b7280;">{escape(footer)}</p>')
    parts.append("</div></body></html>")
    return "\n".join(parts)


# ============================================================================
# Delivery
# ============================================================================


class MailDeliveryError(Exception):
    """Raised when the SMTP server rejects or cannot receive a message."""


class SmtpMailer:
    """Sends email through the configured SMTP relay."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool | None = None,
        sender: str | None = None,
    ) -> None:
        self.host = settings.smtp_host if host is None else host
        self.port = port or settings.smtp_port
        self.username = settings.smtp_username if username is None else username
        self.password = settings.smtp_password if password is None else password
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls
        self.sender = sender or settings.email_from

    @property
    def enabled(self) -> bool:
        """Whether an SMTP host is configured."""
        return bool(self.host)

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=15) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)

    async def send(
        self,
        to: str,
        subject: str,
        html: str | None = None,
        text: str | None = None,
        reply_to: str | None = None,
        raise_on_error: bool = False,
    ) -> bool:
        """Send one message.

        Args:
            to: Recipient address.
            subject: Subject line.
            html: HTML body.
            text: Plain-text body.
            reply_to: Optional Reply-To header.
            raise_on_error: Raise MailDeliveryError instead of logging.

        Returns:
            True if the message was handed to the relay.
        """
        if not self.enabled:
            logger.info("SMTP not configured, skipping email", to=to, subject=subject)
            if raise_on_error:
                raise MailDeliveryError("Email delivery is not configured")
            return False

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        if reply_to:
            message["Reply-To"] = reply_to
        message.set_content(text or "This message requires an HTML capable mail client.")
        if html:
            message.add_alternative(html, subtype="html")

        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email", to=to, subject=subject, error=str(e))
            if raise_on_error:
                raise MailDeliveryError(str(e)) from e
            return False

        logger.info("Email sent", to=to, subject=subject)
        return True


_mailer: SmtpMailer | None = None


def get_mailer() -> SmtpMailer:
    """Get the process-wide mailer."""
    global _mailer
    if _mailer is None:
        _mailer = SmtpMailer()
    return _mailer

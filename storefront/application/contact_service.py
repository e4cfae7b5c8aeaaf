"""Contact form application service."""

import structlog

from storefront.application.notifications import Notifier
from storefront.domain.exceptions import NotificationError, ValidationError
from storefront.infrastructure.mailer import MailDeliveryError, SmtpMailer
from storefront.infrastructure.models import User

logger = structlog.get_logger()


class ContactService:
    """Forwards contact form messages to support."""

    def __init__(self, mailer: SmtpMailer, request_id: str | None = None) -> None:
        self.notifier = Notifier(mailer)
        self.request_id = request_id

    async def send_message(
        self,
        subject: str,
        message: str,
        name: str | None = None,
        email: str | None = None,
        user: User | None = None,
    ) -> None:
        """Send a contact message on behalf of a visitor or signed-in user.

        The signed-in user's email wins over the one typed into the form.

        Raises:
            ValidationError: If the sender, subject or message is missing.
            NotificationError: If the message could not be delivered.
        """
        sender = (user.email if user else None) or email
        display_name = name or (user.name if user else None) or "Customer"
        if not sender or not subject or not message:
            raise ValidationError("Email, subject, and message are required")

        try:
            await self.notifier.contact_message(display_name, sender, subject, message)
        except MailDeliveryError as e:
            logger.error("Contact message not delivered", sender=sender, error=str(e), request_id=self.request_id)
            raise NotificationError("Could not send message. Please try again later.") from e

        logger.info("Contact message sent", sender=sender, request_id=self.request_id)

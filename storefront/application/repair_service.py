"""Repair booking application service."""

from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.notifications import Notifier
from storefront.domain.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from storefront.domain.rules import as_utc, within_business_hours
from storefront.domain.state_machines import RepairStatus
from storefront.infrastructure.config import settings
from storefront.infrastructure.mailer import SmtpMailer
from storefront.infrastructure.models import RepairBooking, User

logger = structlog.get_logger()


def parse_appointment(value: str | datetime) -> datetime:
    """Parse and check an appointment time.

    Naive values are read as shop-local time. The result is aware UTC.

    Raises:
        ValidationError: If the value is not a date or falls outside shop hours.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise ValidationError("Invalid date") from e

    shop_tz = ZoneInfo(settings.shop_timezone)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=shop_tz)

    if not within_business_hours(
        parsed,
        opening_hour=settings.repair_opening_hour,
        closing_hour=settings.repair_closing_hour,
        tz_name=settings.shop_timezone,
    ):
        raise ValidationError(
            f"Appointments must be between {settings.repair_opening_hour}:00 "
            f"and {settings.repair_closing_hour}:00"
        )
    return as_utc(parsed)


def _local(when: datetime) -> datetime:
    return as_utc(when).astimezone(ZoneInfo(settings.shop_timezone))


class RepairService:
    """Service for repair appointments."""

    def __init__(self, session: AsyncSession, mailer: SmtpMailer, request_id: str | None = None) -> None:
        self.session = session
        self.notifier = Notifier(mailer)
        self.request_id = request_id

    async def list_bookings(self, user: User) -> Sequence[RepairBooking]:
        """Own bookings for customers; every booking for admins. Newest first."""
        query = select(RepairBooking).order_by(RepairBooking.created_at.desc())
        if not user.is_admin:
            query = query.where(RepairBooking.user_id == user.id)
        result = await self.session.execute(query)
        return result.unique().scalars().all()

    async def _get_visible(self, user: User, booking_id: str) -> RepairBooking:
        booking = await self.session.get(RepairBooking, booking_id)
        if booking is None or (not user.is_admin and booking.user_id != user.id):
            raise NotFoundError("Booking", booking_id, message="Not found")
        return booking

    async def book(self, user: User, phone_model: str, issue: str, date: str | datetime) -> RepairBooking:
        """Book a repair and email the customer and support.

        Raises:
            ValidationError: If a field is missing or the time is invalid.
        """
        if not phone_model or not issue or not date:
            raise ValidationError("All fields are required")
        scheduled_at = parse_appointment(date)

        booking = RepairBooking(
            user_id=user.id,
            user=user,
            phone_model=phone_model,
            issue=issue,
            scheduled_at=scheduled_at,
            status=RepairStatus.PENDING.value,
        )
        self.session.add(booking)
        await self.session.commit()

        logger.info("Repair booked", booking_id=booking.id, user_id=user.id, request_id=self.request_id)
        await self.notifier.repair_booked(user.email, user.name, phone_model, issue, _local(scheduled_at))
        return booking

    async def update(
        self,
        user: User,
        booking_id: str,
        phone_model: str | None = None,
        issue: str | None = None,
        date: str | datetime | None = None,
        status: RepairStatus | None = None,
    ) -> RepairBooking:
        """Change a booking. Only admins may change its status.

        Raises:
            NotFoundError: If the booking is missing or not the user's.
            PermissionDeniedError: If a customer tries to set the status.
            ValidationError: If the new time is invalid.
        """
        booking = await self._get_visible(user, booking_id)
        if status is not None and status.value != booking.status and not user.is_admin:
            raise PermissionDeniedError("Only staff can change a booking status")

        if date:
            booking.scheduled_at = parse_appointment(date)
        if phone_model:
            booking.phone_model = phone_model
        if issue:
            booking.issue = issue
        if status is not None:
            booking.status = status.value

        await self.session.flush()
        logger.info("Repair booking updated", booking_id=booking.id, status=booking.status, request_id=self.request_id)
        return booking

    async def cancel(self, user: User, booking_id: str) -> None:
        """Delete a booking and email the customer and support."""
        booking = await self._get_visible(user, booking_id)
        owner = booking.user
        phone_model, scheduled_at = booking.phone_model, booking.scheduled_at

        await self.session.delete(booking)
        await self.session.commit()

        logger.info("Repair booking deleted", booking_id=booking_id, request_id=self.request_id)
        await self.notifier.repair_cancelled(
            owner.email if owner else None,
            owner.name if owner else None,
            phone_model,
            _local(scheduled_at),
        )

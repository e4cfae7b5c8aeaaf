"""Repair booking API endpoints.

- GET /repair - own bookings (all bookings for admins)
- POST /repair - book an appointment within shop hours
- PUT /repair/{id} - change a booking (status for admins only)
- DELETE /repair/{id} - cancel a booking
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from storefront.api.converters import customer_to_schema
from storefront.api.dependencies import CurrentUser, MailerDep, RequestIdDep, SessionDep
from storefront.api.schemas import (
    DeletedResponse,
    ErrorResponse,
    RepairCreateRequest,
    RepairResponse,
    RepairStatusEnum,
    RepairUpdateRequest,
)
from storefront.application.repair_service import RepairService
from storefront.domain.state_machines import RepairStatus
from storefront.infrastructure.models import RepairBooking

router = APIRouter(prefix="/repair", tags=["Repairs"])


def get_service(session: SessionDep, mailer: MailerDep, request_id: RequestIdDep) -> RepairService:
    """Get repair service with request ID."""
    return RepairService(session, mailer, request_id=request_id)


ServiceDep = Annotated[RepairService, Depends(get_service)]


def booking_to_response(booking: RepairBooking, include_customer: bool = False) -> RepairResponse:
    """Convert RepairBooking to RepairResponse."""
    return RepairResponse(
        id=booking.id,
        phone_model=booking.phone_model,
        issue=booking.issue,
        scheduled_at=booking.scheduled_at,
        status=RepairStatusEnum(booking.status),
        customer=customer_to_schema(booking.user) if include_customer else None,
        created_at=booking.created_at,
    )


@router.get("", response_model=list[RepairResponse])
async def list_bookings(user: CurrentUser, service: ServiceDep) -> list[RepairResponse]:
    """List bookings, newest first."""
    return [booking_to_response(b, include_customer=user.is_admin) for b in await service.list_bookings(user)]


@router.post(
    "",
    response_model=RepairResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Missing fields or time outside shop hours"}},
)
async def book_repair(body: RepairCreateRequest, user: CurrentUser, service: ServiceDep) -> RepairResponse:
    """Book a repair appointment."""
    booking = await service.book(user, body.phone_model, body.issue, body.date)
    return booking_to_response(booking)


@router.put(
    "/{booking_id}",
    response_model=RepairResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Time outside shop hours"},
        403: {"model": ErrorResponse, "description": "Status change by a customer"},
        404: {"model": ErrorResponse, "description": "Booking not found"},
    },
)
async def update_booking(
    booking_id: str,
    body: RepairUpdateRequest,
    user: CurrentUser,
    service: ServiceDep,
) -> RepairResponse:
    """Change a booking."""
    booking = await service.update(
        user,
        booking_id,
        phone_model=body.phone_model,
        issue=body.issue,
        date=body.date,
        status=RepairStatus(body.status.value) if body.status else None,
    )
    return booking_to_response(booking, include_customer=user.is_admin)


@router.delete(
    "/{booking_id}",
    response_model=DeletedResponse,
    responses={404: {"model": ErrorResponse, "description": "Booking not found"}},
)
async def cancel_booking(booking_id: str, user: CurrentUser, service: ServiceDep) -> DeletedResponse:
    """Cancel a booking; the customer and support are notified."""
    await service.cancel(user, booking_id)
    return DeletedResponse(id=booking_id)

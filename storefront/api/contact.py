"""Contact form API endpoint.

- POST /contact - forward a message to support and acknowledge the sender
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from storefront.api.dependencies import MailerDep, OptionalUser, RequestIdDep
from storefront.api.schemas import ContactRequest, ErrorResponse, MessageResponse
from storefront.application.contact_service import ContactService

router = APIRouter(prefix="/contact", tags=["Contact"])


def get_service(mailer: MailerDep, request_id: RequestIdDep) -> ContactService:
    """Get contact service with request ID."""
    return ContactService(mailer, request_id=request_id)


@router.post(
    "",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing email, subject or message"},
        500: {"model": ErrorResponse, "description": "Message could not be delivered"},
    },
)
async def send_contact_message(
    body: ContactRequest,
    user: OptionalUser,
    service: Annotated[ContactService, Depends(get_service)],
) -> MessageResponse:
    """Send a message to support. Signed-in users reply from their account email."""
    await service.send_message(body.subject, body.message, name=body.name, email=body.email, user=user)
    return MessageResponse(message="Message sent")

"""Shared route dependencies.

Database session, request ID, the signed-in user and the external service
adapters. Routers build their services from these.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.exceptions import AuthenticationError, PermissionDeniedError
from storefront.infrastructure.database import get_session
from storefront.infrastructure.images import CloudinaryImageStore, get_image_store
from storefront.infrastructure.mailer import SmtpMailer, get_mailer
from storefront.infrastructure.models import User
from storefront.infrastructure.payments import StripePaymentGateway, get_payment_gateway
from storefront.infrastructure.repositories import UserRepository

SessionDep = Annotated[AsyncSession, Depends(get_session)]
MailerDep = Annotated[SmtpMailer, Depends(get_mailer)]
PaymentsDep = Annotated[StripePaymentGateway, Depends(get_payment_gateway)]
ImageStoreDep = Annotated[CloudinaryImageStore, Depends(get_image_store)]


def get_request_id(request: Request) -> str | None:
    """Get the correlation ID assigned by the request ID middleware."""
    return getattr(request.state, "request_id", None)


RequestIdDep = Annotated[str | None, Depends(get_request_id)]


async def get_optional_user(request: Request, session: SessionDep) -> User | None:
    """Load the signed-in user, or None for anonymous callers."""
    claims = getattr(request.state, "session_claims", None)
    if claims is None:
        return None
    return await UserRepository(session).get_by_id(claims.user_id)


async def get_current_user(
    request: Request,
    user: Annotated[User | None, Depends(get_optional_user)],
) -> User:
    """Require a signed-in user.

    Raises:
        AuthenticationError: If there is no valid session or the account is gone.
    """
    if user is None:
        raise AuthenticationError(getattr(request.state, "session_error", None) or "Unauthorized")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]


async def require_admin(user: CurrentUser) -> User:
    """Require a signed-in admin.

    Raises:
        PermissionDeniedError: If the user is not an admin.
    """
    if not user.is_admin:
        raise PermissionDeniedError("Forbidden")
    return user


AdminUser = Annotated[User, Depends(require_admin)]

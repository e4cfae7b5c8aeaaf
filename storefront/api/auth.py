"""Auth and profile API endpoints.

Provides endpoints for account access:
- POST /auth/register - create an account and send the verification email
- GET|POST /auth/verify/{token} - verify an email address
- POST /auth/login - sign in; sets the session cookie
- POST /auth/logout - clear the session cookie
- POST /auth/forgot - email a password reset link
- POST /auth/reset - set a new password with a reset token
- GET|PUT /profile - read or update the signed-in user's profile
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from storefront.api.converters import user_to_schema
from storefront.api.dependencies import CurrentUser, MailerDep, RequestIdDep, SessionDep
from storefront.api.schemas import (
    ErrorResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
)
from storefront.application.auth_service import AuthService
from storefront.infrastructure.config import settings
from storefront.infrastructure.models import User

router = APIRouter(prefix="/auth", tags=["Auth"])
profile_router = APIRouter(prefix="/profile", tags=["Profile"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(session: SessionDep, mailer: MailerDep, request_id: RequestIdDep) -> AuthService:
    """Get auth service with request ID."""
    return AuthService(session, mailer, request_id=request_id)


ServiceDep = Annotated[AuthService, Depends(get_service)]


def profile_to_response(user: User) -> ProfileResponse:
    """Convert User to ProfileResponse."""
    return ProfileResponse(name=user.name, email=user.email, phone=user.phone, address=user.address)


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Weak password or invalid input"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
async def register(body: RegisterRequest, service: ServiceDep) -> RegisterResponse:
    """Create an account and send the verification email.

    The account is kept even if the email cannot be delivered; the message
    says so.
    """
    result = await service.register(body.name, body.email, body.password)
    return RegisterResponse(message=result.message, user_id=result.user.id, email_sent=result.email_sent)


@router.api_route(
    "/verify/{token}",
    methods=["GET", "POST"],
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Unknown token"}},
)
async def verify_email(token: str, service: ServiceDep) -> MessageResponse:
    """Verify an email address. Repeating a verification is harmless."""
    return MessageResponse(message=await service.verify_email(token))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Email not verified"},
    },
)
async def login(body: LoginRequest, response: Response, service: ServiceDep) -> LoginResponse:
    """Sign in and issue a session token.

    The token is returned in the body and set as an http-only cookie.
    """
    result = await service.login(body.email, body.password)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=result.token,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return LoginResponse(token=result.token, user=user_to_schema(result.user))


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear the session cookie."""
    response.delete_cookie(settings.session_cookie_name)
    return MessageResponse(message="Signed out")


@router.post(
    "/forgot",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Email not verified"},
        404: {"model": ErrorResponse, "description": "Unknown email"},
    },
)
async def forgot_password(body: ForgotPasswordRequest, service: ServiceDep) -> MessageResponse:
    """Email a password reset link."""
    await service.request_password_reset(body.email)
    return MessageResponse(message="Password reset email sent")


@router.post(
    "/reset",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Weak password or unknown token"}},
)
async def reset_password(body: ResetPasswordRequest, service: ServiceDep) -> MessageResponse:
    """Set a new password using an emailed reset token."""
    await service.reset_password(body.token, body.password)
    return MessageResponse(message="Password updated")


# ============================================================================
# Profile
# ============================================================================


@profile_router.get("", response_model=ProfileResponse)
async def get_profile(user: CurrentUser) -> ProfileResponse:
    """Get the signed-in user's profile."""
    return profile_to_response(user)


@profile_router.put(
    "",
    response_model=ProfileResponse,
    responses={400: {"model": ErrorResponse, "description": "Name missing"}},
)
async def update_profile(body: ProfileUpdateRequest, user: CurrentUser, service: ServiceDep) -> ProfileResponse:
    """Update name, phone and address."""
    user = await service.update_profile(user, body.name, body.phone, body.address)
    return profile_to_response(user)

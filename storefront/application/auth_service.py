"""Account application service.

Handles registration, email verification, login, password reset and
profile updates.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.notifications import Notifier
from storefront.domain.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from storefront.domain.rules import ensure_strong_password
from storefront.domain.state_machines import UserRole
from storefront.infrastructure.mailer import SmtpMailer
from storefront.infrastructure.models import User
from storefront.infrastructure.repositories import UserRepository
from storefront.infrastructure.security import (
    create_session_token,
    generate_token,
    hash_password,
    verify_password,
)

logger = structlog.get_logger()


@dataclass
class RegistrationResult:
    """Outcome of a registration."""

    user: User
    email_sent: bool

    @property
    def message(self) -> str:
        if self.email_sent:
            return "Check email for verification"
        return "Account created but verification email could not be sent. Please contact support."


@dataclass
class LoginResult:
    """Signed-in user and their session token."""

    user: User
    token: str


class AuthService:
    """Service for accounts and sessions."""

    def __init__(self, session: AsyncSession, mailer: SmtpMailer, request_id: str | None = None) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.notifier = Notifier(mailer)
        self.request_id = request_id

    async def register(self, name: str, email: str, password: str) -> RegistrationResult:
        """Create an unverified account and send the verification link.

        Raises:
            ConflictError: If the email is already registered.
            ValidationError: If the password is weak.
        """
        email = email.strip().lower()
        if await self.users.get_by_email(email):
            raise ConflictError("Email already registered", details={"email": email})
        ensure_strong_password(password)

        token = generate_token()
        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            role=UserRole.USER.value,
            verified=False,
            verification_token=token,
        )
        await self.users.save(user)
        await self.session.commit()

        logger.info("User registered", user_id=user.id, request_id=self.request_id)

        email_sent = await self.notifier.verification(user.name, user.email, token)
        return RegistrationResult(user=user, email_sent=email_sent)

    async def verify_email(self, token: str) -> str:
        """Mark the token's owner verified.

        Returns:
            Message for the caller.

        Raises:
            ValidationError: If no account holds the token.
        """
        if not token:
            raise ValidationError("Missing verification token")
        user = await self.users.get_by_verification_token(token)
        if user is None:
            raise ValidationError("Invalid or expired verification link")
        if user.verified:
            return "Email is already verified"

        user.verified = True
        user.verification_token = None
        await self.session.flush()

        logger.info("Email verified", user_id=user.id)
        return "Email verified successfully"

    async def login(self, email: str, password: str) -> LoginResult:
        """Check credentials and issue a session token.

        Raises:
            AuthenticationError: If the credentials do not match.
            PermissionDeniedError: If the email is not verified yet.
        """
        user = await self.users.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login", email=email)
            raise AuthenticationError("Invalid email or password")
        if not user.verified:
            raise PermissionDeniedError("Please verify your email before signing in")

        token = create_session_token(user.id, user.email, user.role)
        logger.info("User logged in", user_id=user.id)
        return LoginResult(user=user, token=token)

    async def request_password_reset(self, email: str) -> None:
        """Store a reset token and email the reset link.

        Raises:
            NotFoundError: If no account uses the email.
            ValidationError: If the account is not verified.
        """
        user = await self.users.get_by_email(email)
        if user is None:
            raise NotFoundError("User", message="No account found for this email")
        if not user.verified:
            raise ValidationError("Please verify your email before resetting password")

        user.reset_token = generate_token()
        await self.session.commit()

        await self.notifier.password_reset(user.name, user.email, user.reset_token)
        logger.info("Password reset requested", user_id=user.id)

    async def reset_password(self, token: str, password: str) -> None:
        """Set a new password for the holder of a reset token.

        Raises:
            ValidationError: If the password is weak or the token unknown.
        """
        ensure_strong_password(password)
        user = await self.users.get_by_reset_token(token)
        if user is None:
            raise ValidationError("Invalid or expired reset link")

        user.password_hash = hash_password(password)
        user.reset_token = None
        await self.session.flush()

        logger.info("Password reset", user_id=user.id)

    async def update_profile(self, user: User, name: str, phone: str | None, address: str | None) -> User:
        """Update contact details shown on the profile page."""
        if not name or not name.strip():
            raise ValidationError("Name is required")
        user.name = name.strip()
        user.phone = phone or ""
        user.address = address or ""
        await self.session.flush()
        return user

"""Back-office user management."""

from collections.abc import Sequence

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.exceptions import NotFoundError, ValidationError
from storefront.domain.rules import ensure_admin_password
from storefront.infrastructure.models import (
    Address,
    CartItem,
    Order,
    OrderComment,
    PaymentMethod,
    ProductAnswer,
    ProductComparison,
    ProductQuestion,
    RecentlyViewed,
    RepairBooking,
    ReturnRequest,
    Review,
    User,
    WishlistItem,
)
from storefront.infrastructure.repositories import UserRepository
from storefront.infrastructure.security import hash_password

logger = structlog.get_logger()

# Rows removed together with their owner
_OWNED_MODELS = (
    CartItem,
    WishlistItem,
    RecentlyViewed,
    ProductComparison,
    Address,
    PaymentMethod,
    Review,
    RepairBooking,
)

# Rows kept with the owner detached
_DETACHED_MODELS = (Order, OrderComment, ReturnRequest, ProductAnswer)


class AdminService:
    """Service for managing customer accounts."""

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.request_id = request_id

    async def list_users(self) -> Sequence[User]:
        """All accounts ordered by email."""
        result = await self.session.execute(select(User).order_by(User.email.asc()))
        return result.scalars().all()

    async def _get_user(self, user_id: str) -> User:
        if not user_id:
            raise ValidationError("user_id is required")
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def set_password(self, user_id: str, password: str) -> User:
        """Replace a user's password.

        Raises:
            ValidationError: If the password is shorter than six characters.
            NotFoundError: If the user does not exist.
        """
        ensure_admin_password(password or "")
        user = await self._get_user(user_id)
        user.password_hash = hash_password(password)
        user.reset_token = None
        await self.session.flush()
        logger.info("Password set by admin", user_id=user.id, request_id=self.request_id)
        return user

    async def set_verified(self, user_id: str, verified: bool) -> User:
        """Mark an account verified or unverified."""
        user = await self._get_user(user_id)
        user.verified = verified
        if verified:
            user.verification_token = None
        await self.session.flush()
        logger.info("Verification set by admin", user_id=user.id, verified=verified, request_id=self.request_id)
        return user

    async def delete_user(self, admin: User, user_id: str) -> None:
        """Delete an account.

        Personal rows go with it; orders, comments, returns and answers stay
        with the user reference cleared.

        Raises:
            ValidationError: If an admin tries to delete their own account.
            NotFoundError: If the user does not exist.
        """
        if user_id == admin.id:
            raise ValidationError("You cannot delete your own account")
        user = await self._get_user(user_id)

        questions = select(ProductQuestion.id).where(ProductQuestion.user_id == user_id)
        await self.session.execute(delete(ProductAnswer).where(ProductAnswer.question_id.in_(questions)))
        await self.session.execute(delete(ProductQuestion).where(ProductQuestion.user_id == user_id))
        for model in _OWNED_MODELS:
            await self.session.execute(delete(model).where(model.user_id == user_id))
        for model in _DETACHED_MODELS:
            await self.session.execute(update(model).where(model.user_id == user_id).values(user_id=None))

        await self.session.delete(user)
        await self.session.flush()
        logger.info("User deleted", user_id=user_id, deleted_by=admin.id, request_id=self.request_id)

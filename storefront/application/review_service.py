"""Review and product Q&A application service."""

from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.notifications import Notifier
from storefront.domain.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from storefront.infrastructure.mailer import SmtpMailer
from storefront.infrastructure.models import ProductAnswer, ProductQuestion, Review, User
from storefront.infrastructure.repositories import ProductRepository

logger = structlog.get_logger()


@dataclass
class RatingSummary:
    """Average rating and review count."""

    average: float
    count: int


@dataclass
class ProductReviews:
    """Reviews of one product with their summary."""

    summary: RatingSummary
    reviews: Sequence[Review]


class ReviewService:
    """Service for reviews and product questions."""

    def __init__(self, session: AsyncSession, mailer: SmtpMailer | None = None, request_id: str | None = None) -> None:
        self.session = session
        self.products = ProductRepository(session)
        self.notifier = Notifier(mailer) if mailer is not None else None
        self.request_id = request_id

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def list_reviews(self, product_id: str) -> ProductReviews:
        """List a product's reviews, newest first, with their average."""
        if not product_id:
            raise ValidationError("product_id is required")
        result = await self.session.execute(
            select(Review).where(Review.product_id == product_id).order_by(Review.created_at.desc())
        )
        reviews = result.unique().scalars().all()
        count = len(reviews)
        average = sum(r.rating for r in reviews) / count if count else 0.0
        return ProductReviews(summary=RatingSummary(average=average, count=count), reviews=reviews)

    async def upsert_review(self, user: User, product_id: str, rating: int, title: str, body: str) -> Review:
        """Create the user's review of a product or overwrite the existing one.

        Raises:
            ValidationError: If a field is missing or the rating is out of range.
            NotFoundError: If the product does not exist.
        """
        if not product_id or not title or not body:
            raise ValidationError("Missing fields")
        if rating < 1 or rating > 5:
            raise ValidationError("Rating must be 1-5")
        if await self.products.get_by_id(product_id) is None:
            raise NotFoundError("Product", product_id)

        result = await self.session.execute(
            select(Review).where(Review.user_id == user.id, Review.product_id == product_id)
        )
        review = result.unique().scalar_one_or_none()
        if review is None:
            review = Review(user_id=user.id, user=user, product_id=product_id, rating=rating, title=title, body=body)
            self.session.add(review)
        else:
            review.rating = rating
            review.title = title
            review.body = body
        await self.session.flush()

        logger.info("Review saved", review_id=review.id, product_id=product_id, request_id=self.request_id)
        return review

    async def delete_review(self, user: User, review_id: str) -> None:
        """Delete a review written by the user, or any review for admins.

        Raises:
            NotFoundError: If the review does not exist.
            PermissionDeniedError: If the user may not delete it.
        """
        review = await self.session.get(Review, review_id)
        if review is None:
            raise NotFoundError("Review", review_id)
        if review.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Forbidden")
        await self.session.delete(review)
        await self.session.flush()
        logger.info("Review deleted", review_id=review_id, request_id=self.request_id)

    async def summary(self) -> dict[str, RatingSummary]:
        """Average rating and count for every reviewed product."""
        result = await self.session.execute(
            select(Review.product_id, func.avg(Review.rating), func.count(Review.id)).group_by(Review.product_id)
        )
        return {
            product_id: RatingSummary(average=float(average), count=int(count))
            for product_id, average, count in result.all()
        }

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def list_questions(self, product_id: str) -> Sequence[ProductQuestion]:
        """List a product's questions with answers, newest first."""
        if not product_id:
            raise ValidationError("product_id is required")
        result = await self.session.execute(
            select(ProductQuestion)
            .where(ProductQuestion.product_id == product_id)
            .order_by(ProductQuestion.created_at.desc())
        )
        return result.unique().scalars().all()

    async def list_all_questions(self) -> Sequence[ProductQuestion]:
        """List every question for the back office, newest first."""
        result = await self.session.execute(select(ProductQuestion).order_by(ProductQuestion.created_at.desc()))
        return result.unique().scalars().all()

    async def get_question(self, question_id: str) -> ProductQuestion:
        """Get a question with its answers.

        Raises:
            NotFoundError: If the question does not exist.
        """
        question = await self.session.get(ProductQuestion, question_id)
        if question is None:
            raise NotFoundError("Question", question_id)
        return question

    async def ask_question(self, user: User, product_id: str, text: str) -> ProductQuestion:
        """Record a question and notify the shop.

        Raises:
            ValidationError: If the question is blank.
            NotFoundError: If the product does not exist.
        """
        text = (text or "").strip()
        if not product_id or not text:
            raise ValidationError("product_id and question are required")
        product = await self.products.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        question = ProductQuestion(
            product_id=product_id,
            product=product,
            user_id=user.id,
            user=user,
            question=text,
            answers=[],
        )
        self.session.add(question)
        await self.session.commit()

        logger.info("Question asked", question_id=question.id, product_id=product_id, request_id=self.request_id)
        if self.notifier:
            await self.notifier.question_asked(product.name, user.email, text)
        return question

    async def answer_question(self, admin: User, question_id: str, body: str) -> ProductQuestion:
        """Add an admin answer and email the asker.

        Raises:
            ValidationError: If the answer is blank.
            NotFoundError: If the question does not exist.
        """
        body = (body or "").strip()
        if not body:
            raise ValidationError("Answer is required")
        question = await self.get_question(question_id)

        question.answers.append(ProductAnswer(user_id=admin.id, user=admin, body=body))
        await self.session.commit()

        logger.info("Question answered", question_id=question.id, request_id=self.request_id)
        if self.notifier and question.user is not None:
            product_name = question.product.name if question.product else "a product"
            await self.notifier.question_answered(question.user.email, product_name, question.question, body)
        return question

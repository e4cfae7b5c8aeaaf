"""Review and product question API endpoints.

Provides endpoints for product feedback:
- GET /reviews - reviews of a product with their average
- POST /reviews - create or overwrite the user's review of a product
- DELETE /reviews/{id} - delete a review (author or admin)
- GET /reviews/summary - average rating and count per product
- GET /questions - questions about a product
- POST /questions - ask a question
- GET /questions/{id} - question with answers
- POST /questions/{id} - answer a question (admin)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from storefront.api.converters import question_to_response
from storefront.api.dependencies import (
    AdminUser,
    CurrentUser,
    MailerDep,
    RequestIdDep,
    SessionDep,
)
from storefront.api.schemas import (
    AnswerRequest,
    DeletedResponse,
    ErrorResponse,
    QuestionRequest,
    QuestionResponse,
    RatingSummarySchema,
    ReviewAuthorSchema,
    ReviewListResponse,
    ReviewRequest,
    ReviewResponse,
)
from storefront.application.review_service import ReviewService
from storefront.infrastructure.models import Review

router = APIRouter(prefix="/reviews", tags=["Reviews"])
questions_router = APIRouter(prefix="/questions", tags=["Questions"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(session: SessionDep, mailer: MailerDep, request_id: RequestIdDep) -> ReviewService:
    """Get review service with request ID."""
    return ReviewService(session, mailer, request_id=request_id)


ServiceDep = Annotated[ReviewService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


def review_to_response(review: Review) -> ReviewResponse:
    """Convert Review to ReviewResponse."""
    author = None
    if review.user is not None:
        author = ReviewAuthorSchema(name=review.user.name, email=review.user.email)
    return ReviewResponse(
        id=review.id,
        product_id=review.product_id,
        rating=review.rating,
        title=review.title,
        body=review.body,
        user=author,
        created_at=review.created_at,
    )


# ============================================================================
# Reviews
# ============================================================================


@router.get(
    "",
    response_model=ReviewListResponse,
    responses={400: {"model": ErrorResponse, "description": "product_id missing"}},
)
async def list_reviews(
    service: ServiceDep,
    product_id: Annotated[str, Query(description="Product to list reviews for")] = "",
) -> ReviewListResponse:
    """List a product's reviews, newest first."""
    result = await service.list_reviews(product_id)
    return ReviewListResponse(
        average=result.summary.average,
        count=result.summary.count,
        reviews=[review_to_response(r) for r in result.reviews],
    )


@router.get("/summary", response_model=dict[str, RatingSummarySchema])
async def review_summary(service: ServiceDep) -> dict[str, RatingSummarySchema]:
    """Average rating and review count per product."""
    return {
        product_id: RatingSummarySchema(average=summary.average, count=summary.count)
        for product_id, summary in (await service.summary()).items()
    }


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing fields or bad rating"},
        404: {"model": ErrorResponse, "description": "Product not found"},
    },
)
async def save_review(body: ReviewRequest, user: CurrentUser, service: ServiceDep) -> ReviewResponse:
    """Create the user's review or overwrite the existing one."""
    review = await service.upsert_review(user, body.product_id, body.rating, body.title, body.review)
    return review_to_response(review)


@router.delete(
    "/{review_id}",
    response_model=DeletedResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Review not found"},
    },
)
async def delete_review(review_id: str, user: CurrentUser, service: ServiceDep) -> DeletedResponse:
    """Delete a review."""
    await service.delete_review(user, review_id)
    return DeletedResponse(id=review_id)


# ============================================================================
# Questions
# ============================================================================


@questions_router.get(
    "",
    response_model=list[QuestionResponse],
    responses={400: {"model": ErrorResponse, "description": "product_id missing"}},
)
async def list_questions(
    service: ServiceDep,
    product_id: Annotated[str, Query(description="Product to list questions for")] = "",
) -> list[QuestionResponse]:
    """List a product's questions with answers, newest first."""
    return [question_to_response(q) for q in await service.list_questions(product_id)]


@questions_router.post(
    "",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def ask_question(body: QuestionRequest, user: CurrentUser, service: ServiceDep) -> QuestionResponse:
    """Ask a question about a product; the shop is notified."""
    return question_to_response(await service.ask_question(user, body.product_id, body.question))


@questions_router.get(
    "/{question_id}",
    response_model=QuestionResponse,
    responses={404: {"model": ErrorResponse, "description": "Question not found"}},
)
async def get_question(question_id: str, service: ServiceDep) -> QuestionResponse:
    """Get a question with its answers."""
    return question_to_response(await service.get_question(question_id))


@questions_router.post(
    "/{question_id}",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse, "description": "Question not found"}},
)
async def answer_question(
    question_id: str,
    body: AnswerRequest,
    admin: AdminUser,
    service: ServiceDep,
) -> QuestionResponse:
    """Answer a question; the asker is notified."""
    return question_to_response(await service.answer_question(admin, question_id, body.answer))

"""Converters from ORM rows and service views to API schemas.

Shared by the routers so every area renders products, users and orders the
same way.
"""

from storefront.api.schemas import (
    AdminUserResponse,
    AnswerSchema,
    CustomerSchema,
    InvoiceSchema,
    OrderCommentSchema,
    OrderItemSchema,
    OrderResponse,
    OrderStatusEnum,
    OrderSummarySchema,
    PaymentMethodEnum,
    ProductResponse,
    QuestionResponse,
    ReturnResponse,
    ReturnStatusEnum,
    UserSchema,
    VariationOptionSchema,
    VariationSchema,
)
from storefront.domain.pricing import display_price, normalize_variations
from storefront.domain.state_machines import OrderStatus
from storefront.infrastructure.models import (
    Invoice,
    Order,
    Product,
    ProductQuestion,
    ReturnRequest,
    User,
)


# ============================================================================
# Users
# ============================================================================


def user_to_schema(user: User) -> UserSchema:
    """Convert User to UserSchema."""
    return UserSchema(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        verified=user.verified,
    )


def user_to_admin_response(user: User) -> AdminUserResponse:
    """Convert User to the back-office view."""
    return AdminUserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        verified=user.verified,
        phone=user.phone,
        created_at=user.created_at,
    )


def customer_to_schema(user: User | None) -> CustomerSchema | None:
    """Convert an optional owner to CustomerSchema."""
    if user is None:
        return None
    return CustomerSchema(id=user.id, name=user.name, email=user.email)


# ============================================================================
# Products
# ============================================================================


def product_to_response(product: Product) -> ProductResponse:
    """Convert Product to ProductResponse."""
    variations = [
        VariationSchema(
            name=group["name"],
            options=[
                VariationOptionSchema(value=option["value"], price=option.get("price"))
                for option in group["options"]
            ],
        )
        for group in normalize_variations(product.variations)
    ]
    return ProductResponse(
        id=product.id,
        name=product.name,
        description=product.description,
        category=product.category,
        price_cents=product.price_cents,
        display_price_cents=display_price(product.price_cents, product.variations),
        stock=product.stock,
        variations=variations,
        image_url=product.image_url,
        image_urls=list(product.image_urls or []),
        created_at=product.created_at,
    )


# ============================================================================
# Orders
# ============================================================================


def invoice_to_schema(invoice: Invoice) -> InvoiceSchema:
    """Convert Invoice to InvoiceSchema."""
    return InvoiceSchema(number=invoice.number, url=invoice.url, issued_at=invoice.issued_at)


def return_to_response(request: ReturnRequest) -> ReturnResponse:
    """Convert ReturnRequest to ReturnResponse."""
    return ReturnResponse(
        id=request.id,
        order_id=request.order_id,
        rma_number=request.rma_number,
        reason=request.reason,
        notes=request.notes,
        status=ReturnStatusEnum(request.status),
        created_at=request.created_at,
    )


def order_to_summary(order: Order) -> OrderSummarySchema:
    """Convert Order to its listing row."""
    return OrderSummarySchema(
        id=order.id,
        status=OrderStatusEnum(order.status),
        payment_method=PaymentMethodEnum(order.payment_method),
        total_cents=order.total_cents,
        currency=order.currency,
        item_count=order.item_count,
        shipping_name=order.shipping_name,
        customer=customer_to_schema(order.user),
        created_at=order.created_at,
    )


def order_to_response(order: Order) -> OrderResponse:
    """Convert Order to OrderResponse with comments, invoice and returns."""
    items = [
        OrderItemSchema(
            product_id=item.get("product_id", ""),
            name=item.get("name", ""),
            price_cents=int(item.get("price_cents", 0)),
            quantity=int(item.get("quantity", 0)),
            selected_variations=item.get("selected_variations") or {},
            image_url=item.get("image_url"),
        )
        for item in order.items or []
    ]

    comments = [
        OrderCommentSchema(
            id=comment.id,
            author_role=comment.author_role,
            author_name=comment.user.name if comment.user else None,
            message=comment.message,
            created_at=comment.created_at,
        )
        for comment in order.comments
    ]

    status = OrderStatus(order.status)
    summary = order_to_summary(order)

    return OrderResponse(
        **summary.model_dump(),
        items=items,
        shipping_email=order.shipping_email,
        phone=order.phone,
        shipping_address=order.shipping_address,
        delivered_at=order.delivered_at,
        updated_at=order.updated_at,
        allowed_transitions=[OrderStatusEnum(s.value) for s in status.allowed_transitions()],
        comments=comments,
        invoice=invoice_to_schema(order.invoice) if order.invoice else None,
        returns=[return_to_response(r) for r in order.returns],
    )


# ============================================================================
# Questions
# ============================================================================


def question_to_response(question: ProductQuestion) -> QuestionResponse:
    """Convert ProductQuestion to QuestionResponse."""
    return QuestionResponse(
        id=question.id,
        product_id=question.product_id,
        product_name=question.product.name if question.product else None,
        question=question.question,
        asked_by=question.user.name if question.user else None,
        answers=[
            AnswerSchema(
                id=answer.id,
                body=answer.body,
                author_name=answer.user.name if answer.user else None,
                created_at=answer.created_at,
            )
            for answer in question.answers
        ],
        created_at=question.created_at,
    )

"""API schemas for the storefront.

Pydantic models for request/response validation and serialization.
All money amounts are integers in minor currency units (pence).
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, EmailStr, Field


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[ErrorDetail] | dict[str, Any] = Field(
        default_factory=list, description="Additional error details"
    )
    request_id: str | None = Field(default=None, description="Request ID for correlation")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str = Field(..., description="Human-readable result")


class OrderStatusEnum(str, Enum):
    """Order status values exposed by the API."""

    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    RETURN_ACCEPTED = "Return request accepted"
    RETURNED = "Returned"
    CANCELLED = "Cancelled"


class ReturnStatusEnum(str, Enum):
    """Return request status values."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    RETURNED = "returned"


class RepairStatusEnum(str, Enum):
    """Repair booking status values."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PaymentMethodEnum(str, Enum):
    """Checkout payment choices."""

    CARD = "card"
    COD = "cod"


# ============================================================================
# Auth & Profile Schemas
# ============================================================================


class RegisterRequest(BaseModel):
    """New account details."""

    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., description="Password (8+ chars, an uppercase letter and a symbol)")


class RegisterResponse(BaseModel):
    """Result of a registration."""

    message: str = Field(..., description="Next step for the user")
    user_id: str = Field(..., description="Created account")
    email_sent: bool = Field(..., description="Whether the verification email went out")


class LoginRequest(BaseModel):
    """Credentials."""

    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Password")


class UserSchema(BaseModel):
    """Account summary."""

    id: str = Field(..., description="User identifier")
    name: str | None = Field(default=None, description="Display name")
    email: str = Field(..., description="Email address")
    role: str = Field(..., description="ADMIN or USER")
    verified: bool = Field(..., description="Whether the email is verified")


class LoginResponse(BaseModel):
    """Session issued at login. The token is also set as a cookie."""

    token: str = Field(..., description="Signed session token")
    user: UserSchema = Field(..., description="Signed-in user")


class ForgotPasswordRequest(BaseModel):
    """Password reset request."""

    email: str = Field(..., min_length=1, description="Account email")


class ResetPasswordRequest(BaseModel):
    """New password with the emailed reset token."""

    token: str = Field(..., min_length=1, description="Reset token")
    password: str = Field(..., min_length=1, description="New password")


class ProfileResponse(BaseModel):
    """Profile details."""

    name: str | None = Field(default=None, description="Display name")
    email: str = Field(..., description="Email address")
    phone: str | None = Field(default=None, description="Phone number")
    address: str | None = Field(default=None, description="Delivery address")


class ProfileUpdateRequest(BaseModel):
    """Profile changes."""

    name: str = Field(..., description="Display name")
    phone: str | None = Field(default=None, description="Phone number")
    address: str | None = Field(default=None, description="Delivery address")


# ============================================================================
# Catalog Schemas
# ============================================================================


class VariationOptionSchema(BaseModel):
    """One option of a variation group."""

    value: str = Field(..., min_length=1, description="Option label, e.g. 'Blue'")
    price: int | None = Field(default=None, ge=0, description="Price override in pence")


class VariationSchema(BaseModel):
    """Variation group such as Color or Storage."""

    name: str = Field(..., min_length=1, description="Group name")
    options: list[VariationOptionSchema] = Field(default_factory=list, description="Available options")


class ProductResponse(BaseModel):
    """Product details."""

    id: str = Field(..., description="Product identifier")
    name: str = Field(..., description="Product name")
    description: str | None = Field(default=None, description="Product description")
    category: str = Field(..., description="Category")
    price_cents: int = Field(..., description="Base price in pence")
    display_price_cents: int = Field(..., description="Lowest price across options")
    stock: int = Field(..., description="Units in stock")
    variations: list[VariationSchema] = Field(default_factory=list, description="Option groups")
    image_url: str | None = Field(default=None, description="Primary image")
    image_urls: list[str] = Field(default_factory=list, description="All images")
    created_at: datetime = Field(..., description="When the product was created")


class ProductWriteRequest(BaseModel):
    """Admin product fields. Omitted fields stay unchanged on update."""

    name: str | None = Field(default=None, max_length=500, description="Product name")
    description: str | None = Field(default=None, description="Product description")
    price_cents: int | None = Field(default=None, ge=0, description="Base price in pence")
    stock: int | None = Field(default=None, ge=0, description="Units in stock")
    category: str | None = Field(default=None, description="Category")
    variations: list[VariationSchema] | None = Field(default=None, description="Option groups")
    images: list[str] = Field(
        default_factory=list, description="Images to upload (data URIs or URLs)"
    )
    keep_image_urls: list[str] | None = Field(
        default=None, description="Existing image URLs to keep (update only)"
    )


class BundleItemSchema(BaseModel):
    """Bundle line."""

    product_id: str = Field(..., description="Product identifier")
    quantity: int = Field(default=1, ge=1, description="Units in the bundle")
    product: ProductResponse | None = Field(default=None, description="Product, if it still exists")


class BundleResponse(BaseModel):
    """Bundle with its products."""

    id: str = Field(..., description="Bundle identifier")
    name: str = Field(..., description="Bundle name")
    description: str | None = Field(default=None, description="Bundle description")
    items: list[BundleItemSchema] = Field(..., description="Bundle lines")
    price_override_cents: int | None = Field(default=None, description="Fixed bundle price")
    total_cents: int = Field(..., description="Price charged for the bundle")
    active: bool = Field(..., description="Whether the bundle is offered")


class BundleItemRequest(BaseModel):
    """Bundle line to create."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    quantity: int = Field(default=1, ge=1, description="Units in the bundle")


class BundleCreateRequest(BaseModel):
    """New bundle."""

    name: str = Field(..., min_length=1, description="Bundle name")
    description: str | None = Field(default=None, description="Bundle description")
    items: list[BundleItemRequest] = Field(..., min_length=1, description="Bundle lines")
    price_override_cents: int | None = Field(default=None, ge=0, description="Fixed bundle price")
    active: bool = Field(default=True, description="Whether the bundle is offered")


# ============================================================================
# Cart Schemas
# ============================================================================


class CartItemRequest(BaseModel):
    """Item to add to the cart."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    quantity: int = Field(default=1, description="Units to add")
    selected_variations: dict[str, str] = Field(
        default_factory=dict, description="Chosen option per variation group"
    )


class CartDeleteRequest(BaseModel):
    """Remove one line or empty the cart."""

    item_id: str | None = Field(default=None, description="Line to remove")
    all: bool = Field(default=False, description="Empty the whole cart")


class CartItemResponse(BaseModel):
    """Priced cart line."""

    id: str = Field(..., description="Line identifier")
    product: ProductResponse = Field(..., description="Product")
    quantity: int = Field(..., description="Units")
    selected_variations: dict[str, str] = Field(default_factory=dict, description="Chosen options")
    unit_price_cents: int = Field(..., description="Price of one unit for this selection")
    line_total_cents: int = Field(..., description="Unit price times quantity")


class CartResponse(BaseModel):
    """Cart contents."""

    items: list[CartItemResponse] = Field(..., description="Lines, newest first")
    item_count: int = Field(..., description="Total units")
    total_cents: int = Field(..., description="Cart total")


# ============================================================================
# Checkout Schemas
# ============================================================================


class ShippingSchema(BaseModel):
    """Delivery contact details."""

    name: str | None = Field(default=None, description="Recipient name")
    email: str | None = Field(default=None, description="Contact email")
    phone: str | None = Field(default=None, description="Contact phone")
    address: str | None = Field(default=None, description="Delivery address")


class CheckoutRequest(BaseModel):
    """Checkout options."""

    method: PaymentMethodEnum = Field(default=PaymentMethodEnum.CARD, description="card or cod")
    shipping: ShippingSchema = Field(default_factory=ShippingSchema, description="Delivery details")


class CheckoutResponse(BaseModel):
    """Placed order."""

    order_id: str = Field(..., description="Created order")
    url: str | None = Field(default=None, description="Hosted payment page for card orders")
    message: str | None = Field(default=None, description="Confirmation for cash on delivery")


# ============================================================================
# Order Schemas
# ============================================================================


class OrderItemSchema(BaseModel):
    """Order line snapshot."""

    product_id: str = Field(..., description="Product identifier")
    name: str = Field(..., description="Product name at purchase")
    price_cents: int = Field(..., description="Unit price at purchase")
    quantity: int = Field(..., description="Units")
    selected_variations: dict[str, str] = Field(default_factory=dict, description="Chosen options")
    image_url: str | None = Field(default=None, description="Product image at purchase")


class OrderCommentSchema(BaseModel):
    """Comment on an order."""

    id: str = Field(..., description="Comment identifier")
    author_role: str = Field(..., description="Role of the author")
    author_name: str | None = Field(default=None, description="Author display name")
    message: str = Field(..., description="Comment text")
    created_at: datetime = Field(..., description="When the comment was left")


class InvoiceSchema(BaseModel):
    """Invoice document."""

    number: str = Field(..., description="Invoice number")
    url: str = Field(..., description="Where the invoice can be downloaded")
    issued_at: datetime = Field(..., description="Issue date")


class InvoiceRequest(BaseModel):
    """Invoice to attach to an order."""

    number: str = Field(..., min_length=1, description="Invoice number")
    url: str = Field(..., min_length=1, description="Document URL")
    issued_at: datetime | None = Field(default=None, description="Issue date; defaults to now")


class ReturnResponse(BaseModel):
    """Return request."""

    id: str = Field(..., description="Return identifier")
    order_id: str = Field(..., description="Order identifier")
    rma_number: str = Field(..., description="Return merchandise authorisation number")
    reason: str = Field(..., description="Why the item is returned")
    notes: str | None = Field(default=None, description="Extra notes")
    status: ReturnStatusEnum = Field(..., description="Return status")
    created_at: datetime = Field(..., description="When the return was requested")


class CustomerSchema(BaseModel):
    """Customer attached to an order."""

    id: str = Field(..., description="User identifier")
    name: str | None = Field(default=None, description="Display name")
    email: str = Field(..., description="Email address")


class OrderSummarySchema(BaseModel):
    """Order row for listings."""

    id: str = Field(..., description="Order identifier")
    status: OrderStatusEnum = Field(..., description="Order status")
    payment_method: PaymentMethodEnum = Field(..., description="card or cod")
    total_cents: int = Field(..., description="Order total")
    currency: str = Field(..., description="Currency code")
    item_count: int = Field(..., description="Total units")
    shipping_name: str | None = Field(default=None, description="Recipient name")
    customer: CustomerSchema | None = Field(default=None, description="Ordering user")
    created_at: datetime = Field(..., description="When the order was placed")


class OrderResponse(OrderSummarySchema):
    """Full order details."""

    items: list[OrderItemSchema] = Field(..., description="Order lines")
    shipping_email: str | None = Field(default=None, description="Contact email")
    phone: str | None = Field(default=None, description="Contact phone")
    shipping_address: str | None = Field(default=None, description="Delivery address")
    delivered_at: datetime | None = Field(default=None, description="When the order was delivered")
    updated_at: datetime = Field(..., description="When the order last changed")
    allowed_transitions: list[OrderStatusEnum] = Field(
        default_factory=list, description="Statuses the order may move to"
    )
    comments: list[OrderCommentSchema] = Field(default_factory=list, description="Order comments")
    invoice: InvoiceSchema | None = Field(default=None, description="Invoice, once issued")
    returns: list[ReturnResponse] = Field(default_factory=list, description="Return requests")


class OrderCustomerUpdateRequest(BaseModel):
    """Customer edits to an order."""

    name: str | None = Field(default=None, description="Recipient name")
    email: str | None = Field(default=None, description="Contact email")
    phone: str | None = Field(default=None, description="Contact phone")
    address: str | None = Field(default=None, description="Delivery address")
    cancel: bool = Field(default=False, description="Cancel the order")


class OrderAdminUpdateRequest(BaseModel):
    """Admin order changes."""

    status: OrderStatusEnum | None = Field(default=None, description="New status")
    comment: str | None = Field(default=None, description="Comment to add")


# ============================================================================
# Return Schemas
# ============================================================================


class ReturnCreateRequest(BaseModel):
    """Return request from a customer."""

    reason: str = Field(default="", description="Why the item is returned")
    notes: str | None = Field(default=None, description="Extra notes")


class ReturnUpdateRequest(BaseModel):
    """Admin return decision."""

    return_id: str = Field(..., min_length=1, description="Return identifier")
    status: ReturnStatusEnum = Field(..., description="New status")


# ============================================================================
# Review & Question Schemas
# ============================================================================


class ReviewAuthorSchema(BaseModel):
    """Review author."""

    name: str | None = Field(default=None, description="Display name")
    email: str = Field(..., description="Email address")


class ReviewResponse(BaseModel):
    """Product review."""

    id: str = Field(..., description="Review identifier")
    product_id: str = Field(..., description="Product identifier")
    rating: int = Field(..., description="Stars, 1 to 5")
    title: str = Field(..., description="Headline")
    body: str = Field(..., description="Review text")
    user: ReviewAuthorSchema | None = Field(default=None, description="Author")
    created_at: datetime = Field(..., description="When the review was written")


class ReviewListResponse(BaseModel):
    """Reviews of a product."""

    average: float = Field(..., description="Average rating, 0 when unreviewed")
    count: int = Field(..., description="Number of reviews")
    reviews: list[ReviewResponse] = Field(..., description="Reviews, newest first")


class ReviewRequest(BaseModel):
    """Review to create or overwrite."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    rating: int = Field(..., description="Stars, 1 to 5")
    title: str = Field(..., min_length=1, description="Headline")
    review: str = Field(..., min_length=1, description="Review text")


class RatingSummarySchema(BaseModel):
    """Average rating for one product."""

    average: float = Field(..., description="Average rating")
    count: int = Field(..., description="Number of reviews")


class AnswerSchema(BaseModel):
    """Answer to a product question."""

    id: str = Field(..., description="Answer identifier")
    body: str = Field(..., description="Answer text")
    author_name: str | None = Field(default=None, description="Who answered")
    created_at: datetime = Field(..., description="When it was answered")


class QuestionResponse(BaseModel):
    """Product question with answers."""

    id: str = Field(..., description="Question identifier")
    product_id: str = Field(..., description="Product identifier")
    product_name: str | None = Field(default=None, description="Product name")
    question: str = Field(..., description="Question text")
    asked_by: str | None = Field(default=None, description="Asker display name")
    answers: list[AnswerSchema] = Field(default_factory=list, description="Answers, oldest first")
    created_at: datetime = Field(..., description="When it was asked")


class QuestionRequest(BaseModel):
    """Question about a product."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    question: str = Field(..., min_length=1, description="Question text")


class AnswerRequest(BaseModel):
    """Admin answer."""

    answer: str = Field(..., min_length=1, description="Answer text")


# ============================================================================
# Shopper List Schemas
# ============================================================================


class ProductRefRequest(BaseModel):
    """Reference to a product."""

    product_id: str = Field(..., min_length=1, description="Product identifier")


class WishlistItemResponse(BaseModel):
    """Wishlist entry."""

    id: str = Field(..., description="Entry identifier")
    product: ProductResponse = Field(..., description="Saved product")
    created_at: datetime = Field(..., description="When it was saved")


class WishlistStatusResponse(BaseModel):
    """Whether a product is wishlisted."""

    in_wishlist: bool = Field(..., description="True when saved")


class RecentlyViewedResponse(BaseModel):
    """Recently viewed product."""

    id: str = Field(..., description="Entry identifier")
    product: ProductResponse = Field(..., description="Viewed product")
    viewed_at: datetime = Field(..., description="Last view")


class ComparisonResponse(BaseModel):
    """Comparison tray."""

    ids: list[str] = Field(..., description="Product identifiers, newest first")
    products: list[ProductResponse] = Field(..., description="Products in tray order")
    record_id: str | None = Field(default=None, description="Tray identifier")


# ============================================================================
# Address & Payment Method Schemas
# ============================================================================


class AddressRequest(BaseModel):
    """Address fields. Omitted fields stay unchanged on update."""

    label: str | None = Field(default=None, description="e.g. Home, Work")
    name: str | None = Field(default=None, description="Recipient name")
    phone: str | None = Field(default=None, description="Contact phone")
    line1: str | None = Field(default=None, description="Street address")
    line2: str | None = Field(default=None, description="Flat, suite, etc.")
    city: str | None = Field(default=None, description="City")
    post_code: str | None = Field(default=None, description="Post code")
    country: str | None = Field(default=None, description="Country")
    is_default: bool | None = Field(default=None, description="Make this the default address")


class AddressResponse(BaseModel):
    """Saved address."""

    id: str = Field(..., description="Address identifier")
    label: str = Field(..., description="Label")
    name: str = Field(..., description="Recipient name")
    phone: str = Field(..., description="Contact phone")
    line1: str = Field(..., description="Street address")
    line2: str | None = Field(default=None, description="Flat, suite, etc.")
    city: str = Field(..., description="City")
    post_code: str = Field(..., description="Post code")
    country: str = Field(..., description="Country")
    is_default: bool = Field(..., description="Whether this is the default")


class PaymentMethodRequest(BaseModel):
    """Card to save. The number is reduced to its last four digits."""

    card_number: str = Field(default="", description="Card number")
    name_on_card: str | None = Field(default=None, description="Cardholder name")
    brand: str | None = Field(default=None, description="Card network; detected when omitted")
    exp_month: int | None = Field(default=None, description="Expiry month")
    exp_year: int | None = Field(default=None, description="Expiry year")
    provider: str | None = Field(default=None, description="Payment provider")
    provider_payment_method_id: str | None = Field(default=None, description="Provider reference")
    provider_customer_id: str | None = Field(default=None, description="Provider customer reference")
    is_default: bool = Field(default=False, description="Make this the default card")


class PaymentMethodUpdateRequest(BaseModel):
    """Default flag change."""

    is_default: bool = Field(..., description="Whether this card is the default")


class PaymentMethodResponse(BaseModel):
    """Saved card reference."""

    id: str = Field(..., description="Payment method identifier")
    name_on_card: str | None = Field(default=None, description="Cardholder name")
    brand: str = Field(..., description="Card network")
    last4: str = Field(..., description="Last four digits")
    exp_month: int | None = Field(default=None, description="Expiry month")
    exp_year: int | None = Field(default=None, description="Expiry year")
    provider: str | None = Field(default=None, description="Payment provider")
    is_default: bool = Field(..., description="Whether this is the default")


# ============================================================================
# Repair Schemas
# ============================================================================


class RepairCreateRequest(BaseModel):
    """Repair appointment request."""

    phone_model: str = Field(default="", description="Device model")
    issue: str = Field(default="", description="What is wrong")
    date: str = Field(default="", description="Appointment time (ISO 8601)")


class RepairUpdateRequest(BaseModel):
    """Repair booking changes."""

    phone_model: str | None = Field(default=None, description="Device model")
    issue: str | None = Field(default=None, description="What is wrong")
    date: str | None = Field(default=None, description="Appointment time (ISO 8601)")
    status: RepairStatusEnum | None = Field(default=None, description="Booking status (staff only)")


class RepairResponse(BaseModel):
    """Repair booking."""

    id: str = Field(..., description="Booking identifier")
    phone_model: str = Field(..., description="Device model")
    issue: str = Field(..., description="What is wrong")
    scheduled_at: datetime = Field(..., description="Appointment time (UTC)")
    status: RepairStatusEnum = Field(..., description="Booking status")
    customer: CustomerSchema | None = Field(default=None, description="Booking owner (staff view)")
    created_at: datetime = Field(..., description="When it was booked")


# ============================================================================
# Contact Schemas
# ============================================================================


class ContactRequest(BaseModel):
    """Contact form submission."""

    name: str | None = Field(default=None, description="Sender name")
    email: str | None = Field(default=None, description="Sender email; the session email wins")
    subject: str = Field(default="", description="Subject")
    message: str = Field(default="", description="Message")


# ============================================================================
# Admin Schemas
# ============================================================================


class AdminUserResponse(UserSchema):
    """Account as seen by admins."""

    phone: str | None = Field(default=None, description="Phone number")
    created_at: datetime = Field(..., description="When the account was created")


class AdminPasswordRequest(BaseModel):
    """Set a user's password."""

    user_id: str = Field(..., min_length=1, description="User identifier")
    password: str = Field(..., description="New password (6+ chars)")


class AdminVerifyRequest(BaseModel):
    """Set a user's verification flag."""

    user_id: str = Field(..., min_length=1, description="User identifier")
    verified: bool = Field(..., description="Verified flag")


class AdminDeleteUserRequest(BaseModel):
    """Delete a user."""

    user_id: str = Field(..., min_length=1, description="User identifier")


class DeletedResponse(BaseModel):
    """Deletion acknowledgement."""

    id: str = Field(..., description="Deleted identifier")
    deleted: bool = Field(default=True, description="Always true")

"""Create review, question, shopper list, account and repair tables.

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _user_fk(nullable: bool = False, ondelete: str = "CASCADE", index: bool = True) -> sa.Column:
    return sa.Column(
        "user_id",
        sa.String(36),
        sa.ForeignKey("users.id", ondelete=ondelete),
        nullable=nullable,
        index=index,
    )


def _product_fk(index: bool = False) -> sa.Column:
    return sa.Column(
        "product_id",
        sa.String(36),
        sa.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=index,
    )


def _timestamp(name: str = "created_at") -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade() -> None:
    """Create tables for records owned by customers."""
    # Reviews and questions
    op.create_table(
        "reviews",
        _id(),
        _user_fk(index=False),
        _product_fk(index=True),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("body", sa.Text, nullable=False),
        _timestamp(),
        sa.UniqueConstraint("user_id", "product_id", name="uq_reviews_user_product"),
    )
    op.create_table(
        "product_questions",
        _id(),
        _product_fk(index=True),
        _user_fk(nullable=True, index=False),
        sa.Column("question", sa.Text, nullable=False),
        _timestamp(),
    )
    op.create_table(
        "product_answers",
        _id(),
        sa.Column(
            "question_id",
            sa.String(36),
            sa.ForeignKey("product_questions.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        _user_fk(nullable=True, ondelete="SET NULL", index=False),
        sa.Column("body", sa.Text, nullable=False),
        _timestamp(),
    )

    # Shopper lists
    op.create_table(
        "wishlist_items",
        _id(),
        _user_fk(),
        _product_fk(),
        _timestamp(),
        sa.UniqueConstraint("user_id", "product_id", name="uq_wishlist_user_product"),
    )
    op.create_table(
        "recently_viewed",
        _id(),
        _user_fk(),
        _product_fk(),
        _timestamp("viewed_at"),
        sa.UniqueConstraint("user_id", "product_id", name="uq_recently_viewed_user_product"),
    )
    op.create_table(
        "product_comparisons",
        _id(),
        _user_fk(),
        sa.Column("product_ids", postgresql.JSONB, nullable=False, server_default="[]"),
        _timestamp(),
    )

    # Account records
    op.create_table(
        "addresses",
        _id(),
        _user_fk(),
        sa.Column("label", sa.String(100), nullable=False, server_default="Primary"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("line1", sa.String(255), nullable=False),
        sa.Column("line2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("post_code", sa.String(20), nullable=False),
        sa.Column("country", sa.String(100), nullable=False, server_default="UK"),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default=sa.false()),
        _timestamp(),
    )
    op.create_table(
        "payment_methods",
        _id(),
        _user_fk(),
        sa.Column("name_on_card", sa.String(255), nullable=True),
        sa.Column("brand", sa.String(50), nullable=False, server_default="Card"),
        sa.Column("last4", sa.String(4), nullable=False),
        sa.Column("exp_month", sa.Integer, nullable=True),
        sa.Column("exp_year", sa.Integer, nullable=True),
        sa.Column("provider", sa.String(50), nullable=True),
        sa.Column("provider_payment_method_id", sa.String(255), nullable=True),
        sa.Column("provider_customer_id", sa.String(255), nullable=True),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default=sa.false()),
        _timestamp(),
    )

    # Repairs
    op.create_table(
        "repair_bookings",
        _id(),
        _user_fk(),
        sa.Column("phone_model", sa.String(255), nullable=False),
        sa.Column("issue", sa.Text, nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="Pending"),
        _timestamp(),
    )


def downgrade() -> None:
    """Drop customer record tables."""
    for table in (
        "repair_bookings",
        "payment_methods",
        "addresses",
        "product_comparisons",
        "recently_viewed",
        "wishlist_items",
        "product_answers",
        "product_questions",
        "reviews",
    ):
        op.drop_table(table)

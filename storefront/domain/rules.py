"""Business rules shared across services."""

import random
import re
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from storefront.domain.exceptions import ReturnWindowError, ValidationError

RETURN_NOT_DELIVERED = "Returns are only available after delivery."
STRONG_PASSWORD_MESSAGE = (
    "Password must be at least 8 characters, include one uppercase letter, "
    "and one special character"
)

_UPPERCASE = re.compile(r"[A-Z]")
_SPECIAL = re.compile(r"[^A-Za-z0-9]")


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as SQLite returns them) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ============================================================================
# Returns
# ============================================================================


def ensure_return_window(
    delivered_at: datetime | None,
    window_days: int = 3,
    now: datetime | None = None,
) -> None:
    """Raise unless a return may still be requested.

    Args:
        delivered_at: When the order was delivered, if ever.
        window_days: Days after delivery during which returns are accepted.
        now: Reference time; defaults to the current time.

    Raises:
        ReturnWindowError: If the order was never delivered or the window passed.
    """
    if delivered_at is None:
        raise ReturnWindowError(RETURN_NOT_DELIVERED)
    now = as_utc(now or utcnow())
    if now - as_utc(delivered_at) > timedelta(days=window_days):
        raise ReturnWindowError(
            f"Return window ({window_days} days after delivery) has expired.",
            details={"delivered_at": as_utc(delivered_at).isoformat()},
        )


def generate_rma_number(order_id: str) -> str:
    """Build an RMA number such as ``RMA-3F2A9C-4821``."""
    return f"RMA-{order_id[:6].upper()}-{random.randint(1000, 9999)}"


# ============================================================================
# Repairs
# ============================================================================


def within_business_hours(
    when: datetime,
    opening_hour: int = 9,
    closing_hour: int = 17,
    tz_name: str = "Europe/London",
) -> bool:
    """Check that an appointment falls within shop hours.

    Naive datetimes are read as shop-local time. Both boundary hours are
    bookable, so 17:30 is accepted and 18:00 is not.
    """
    shop_tz = ZoneInfo(tz_name)
    local = when.replace(tzinfo=shop_tz) if when.tzinfo is None else when.astimezone(shop_tz)
    return opening_hour <= local.hour <= closing_hour


# ============================================================================
# Passwords
# ============================================================================


def is_strong_password(password: str) -> bool:
    """At least 8 characters with an uppercase letter and a special character."""
    return (
        len(password) >= 8
        and _UPPERCASE.search(password) is not None
        and _SPECIAL.search(password) is not None
    )


def ensure_strong_password(password: str) -> None:
    """Raise ValidationError for a weak customer password."""
    if not is_strong_password(password):
        raise ValidationError(STRONG_PASSWORD_MESSAGE)


def ensure_admin_password(password: str) -> None:
    """Raise ValidationError when an admin-set password is too short."""
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")

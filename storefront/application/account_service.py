"""Saved addresses and payment methods.

Each user has at most one default address and one default payment method.
Changing the default clears the previous one in the same transaction, and
deleting the default promotes the most recently created remaining row.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, fields
from typing import TypeVar

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.exceptions import NotFoundError, ValidationError
from storefront.infrastructure.models import Address, PaymentMethod

logger = structlog.get_logger()

DefaultRow = TypeVar("DefaultRow", Address, PaymentMethod)

_NON_DIGITS = re.compile(r"\D")


@dataclass
class AddressInput:
    """Address fields. ``None`` leaves a field unchanged on update."""

    label: str | None = None
    name: str | None = None
    phone: str | None = None
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    post_code: str | None = None
    country: str | None = None


@dataclass
class CardInput:
    """Card details as submitted. Only brand and last four digits are kept."""

    card_number: str
    name_on_card: str | None = None
    brand: str | None = None
    exp_month: int | None = None
    exp_year: int | None = None
    provider: str | None = None
    provider_payment_method_id: str | None = None
    provider_customer_id: str | None = None


def detect_card_brand(digits: str) -> str:
    """Guess the card network from the number prefix."""
    if digits.startswith("4"):
        return "Visa"
    if digits[:2] in {"34", "37"}:
        return "American Express"
    if digits[:2] in {"51", "52", "53", "54", "55"} or (len(digits) >= 4 and 2221 <= int(digits[:4]) <= 2720):
        return "Mastercard"
    return "Card"


def _ordered(rows: Sequence[DefaultRow]) -> list[DefaultRow]:
    """Default first, then newest first."""
    return sorted(rows, key=lambda r: (not r.is_default, -r.created_at.timestamp()))


class AccountService:
    """Service for addresses and payment methods."""

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        self.session = session
        self.request_id = request_id

    async def _rows(self, model: type[DefaultRow], user_id: str) -> list[DefaultRow]:
        result = await self.session.execute(select(model).where(model.user_id == user_id))
        return list(result.scalars().all())

    async def _get_owned(self, model: type[DefaultRow], user_id: str, row_id: str) -> DefaultRow:
        row = await self.session.get(model, row_id)
        if row is None or row.user_id != user_id:
            raise NotFoundError(model.__name__, row_id, message="Not found")
        return row

    async def _make_default(self, model: type[DefaultRow], user_id: str, target: DefaultRow) -> None:
        for row in await self._rows(model, user_id):
            if row is not target and row.is_default:
                row.is_default = False
        target.is_default = True
        await self.session.flush()

    async def _promote_newest(self, model: type[DefaultRow], user_id: str) -> None:
        rows = await self._rows(model, user_id)
        if rows and not any(row.is_default for row in rows):
            newest = max(rows, key=lambda r: r.created_at)
            newest.is_default = True
            await self.session.flush()

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    async def list_addresses(self, user_id: str) -> list[Address]:
        """Addresses with the default first."""
        return _ordered(await self._rows(Address, user_id))

    async def get_address(self, user_id: str, address_id: str) -> Address:
        """Get one of the user's addresses.

        Raises:
            NotFoundError: If it does not exist or belongs to someone else.
        """
        return await self._get_owned(Address, user_id, address_id)

    async def create_address(self, user_id: str, data: AddressInput, is_default: bool = False) -> Address:
        """Save an address. The user's first address becomes the default.

        Raises:
            ValidationError: If a required field is missing.
        """
        missing = [name for name in ("name", "phone", "line1", "city", "post_code") if not getattr(data, name)]
        if missing:
            raise ValidationError("Missing required fields", details={"missing": missing})

        existing = await self._rows(Address, user_id)
        address = Address(
            user_id=user_id,
            label=data.label or "Primary",
            name=data.name,
            phone=data.phone,
            line1=data.line1,
            line2=data.line2,
            city=data.city,
            post_code=data.post_code,
            country=data.country or "UK",
            is_default=False,
        )
        self.session.add(address)
        await self.session.flush()

        if is_default or not existing:
            await self._make_default(Address, user_id, address)

        logger.info("Address created", user_id=user_id, address_id=address.id, request_id=self.request_id)
        return address

    async def update_address(
        self,
        user_id: str,
        address_id: str,
        data: AddressInput,
        is_default: bool | None = None,
    ) -> Address:
        """Update an address; ``is_default=True`` makes it the default."""
        address = await self._get_owned(Address, user_id, address_id)
        for field in fields(AddressInput):
            value = getattr(data, field.name)
            if value is not None:
                setattr(address, field.name, value)

        if is_default:
            await self._make_default(Address, user_id, address)
        else:
            await self.session.flush()
        return address

    async def delete_address(self, user_id: str, address_id: str) -> None:
        """Delete an address, promoting another if it was the default."""
        address = await self._get_owned(Address, user_id, address_id)
        await self.session.delete(address)
        await self.session.flush()
        await self._promote_newest(Address, user_id)
        logger.info("Address deleted", user_id=user_id, address_id=address_id, request_id=self.request_id)

    # ------------------------------------------------------------------
    # Payment methods
    # ------------------------------------------------------------------

    async def list_payment_methods(self, user_id: str) -> list[PaymentMethod]:
        """Payment methods with the default first."""
        return _ordered(await self._rows(PaymentMethod, user_id))

    async def create_payment_method(self, user_id: str, data: CardInput, is_default: bool = False) -> PaymentMethod:
        """Save a card reference. The user's first card becomes the default.

        Raises:
            ValidationError: If the card number is missing or malformed.
        """
        digits = _NON_DIGITS.sub("", data.card_number or "")
        if not digits:
            raise ValidationError("Card number required")
        if not 12 <= len(digits) <= 19:
            raise ValidationError("Card number must be 12 to 19 digits")
        if data.exp_month is not None and not 1 <= data.exp_month <= 12:
            raise ValidationError("Expiry month must be 1-12")

        existing = await self._rows(PaymentMethod, user_id)
        method = PaymentMethod(
            user_id=user_id,
            name_on_card=data.name_on_card or None,
            brand=data.brand or detect_card_brand(digits),
            last4=digits[-4:],
            exp_month=data.exp_month,
            exp_year=data.exp_year,
            provider=data.provider,
            provider_payment_method_id=data.provider_payment_method_id,
            provider_customer_id=data.provider_customer_id,
            is_default=False,
        )
        self.session.add(method)
        await self.session.flush()

        if is_default or not existing:
            await self._make_default(PaymentMethod, user_id, method)

        logger.info("Payment method saved", user_id=user_id, payment_method_id=method.id, brand=method.brand)
        return method

    async def set_default_payment_method(self, user_id: str, method_id: str, is_default: bool) -> PaymentMethod:
        """Make a card the default, or clear its default flag."""
        method = await self._get_owned(PaymentMethod, user_id, method_id)
        if is_default:
            await self._make_default(PaymentMethod, user_id, method)
        else:
            method.is_default = False
            await self.session.flush()
        return method

    async def delete_payment_method(self, user_id: str, method_id: str) -> None:
        """Delete a card, promoting another if it was the default."""
        method = await self._get_owned(PaymentMethod, user_id, method_id)
        await self.session.delete(method)
        await self.session.flush()
        await self._promote_newest(PaymentMethod, user_id)
        logger.info("Payment method deleted", user_id=user_id, payment_method_id=method_id)

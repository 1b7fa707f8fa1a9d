"""Ticket price calculation.

A ticket's unit price starts at its base price. The active date-bound
ticket discount expiring soonest is applied first. A valid discount code
then replaces that reduction instead of stacking on top of it. Amounts are
``Decimal`` rounded to cents and never go below zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Protocol

from sqlalchemy.orm import Session

from cachao.db.models import DiscountCode, DiscountType, Ticket
from cachao.db.repositories import DiscountCodeRepository, TicketDiscountRepository
from cachao.utils.logging import get_logger

logger = get_logger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


class Discount(Protocol):
    discount_type: DiscountType
    discount_value: Decimal


@dataclass(frozen=True)
class AppliedDiscount:
    """The reduction that determined the final unit price."""

    type: str
    value: Decimal


@dataclass(frozen=True)
class PriceBreakdown:
    """Result of pricing ``quantity`` units of a ticket."""

    base_price: Decimal
    unit_price: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    quantity: int
    discount_code_id: Optional[int] = None
    applied_discount: Optional[AppliedDiscount] = None

    def to_dict(self) -> dict[str, Any]:
        applied = None
        if self.applied_discount is not None:
            applied = {
                "type": self.applied_discount.type,
                "value": self.applied_discount.value,
            }
        return {
            "base_price": self.base_price,
            "unit_price": self.unit_price,
            "discount_amount": self.discount_amount,
            "total_amount": self.total_amount,
            "quantity": self.quantity,
            "discount_code_id": self.discount_code_id,
            "applied_discount": applied,
        }


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _reduction(discount: Discount, reference_price: Decimal) -> Decimal:
    value = Decimal(discount.discount_value)
    if DiscountType(discount.discount_type) is DiscountType.PERCENTAGE:
        return _cents(reference_price * value / Decimal(100))
    return _cents(value)


def calculate_ticket_price(
    base_price: Decimal,
    quantity: int,
    date_discount: Optional[Discount] = None,
    code_discount: Optional[Discount] = None,
    code_id: Optional[int] = None,
) -> PriceBreakdown:
    """Price ``quantity`` tickets.

    Args:
        base_price: The ticket's list price.
        quantity: Number of tickets, at least 1.
        date_discount: Active early-bird discount, if any.
        code_discount: Already validated discount code, if any.
        code_id: Id stored on the order when ``code_discount`` applies.

    Returns:
        The price breakdown. ``unit_price`` is floored at zero and
        ``total_amount`` is exactly ``unit_price * quantity``.
    """
    if quantity < 1:
        raise ValueError("quantity must be at least 1")

    base = _cents(Decimal(base_price))
    unit_price = base
    discount_amount = ZERO
    applied: Optional[AppliedDiscount] = None

    if date_discount is not None:
        discount_amount = _reduction(date_discount, base)
        unit_price = max(ZERO, base - discount_amount)
        applied = AppliedDiscount(
            type=f"date_{DiscountType(date_discount.discount_type).value}",
            value=Decimal(date_discount.discount_value),
        )

    applied_code_id = None
    if code_discount is not None:
        # Percentage codes are taken from the current unit price but
        # subtracted from the base price, replacing the date discount.
        discount_amount = _reduction(code_discount, unit_price)
        unit_price = max(ZERO, base - discount_amount)
        applied = AppliedDiscount(
            type=f"code_{DiscountType(code_discount.discount_type).value}",
            value=Decimal(code_discount.discount_value),
        )
        applied_code_id = code_id

    unit_price = _cents(unit_price)
    return PriceBreakdown(
        base_price=base,
        unit_price=unit_price,
        discount_amount=discount_amount,
        total_amount=unit_price * quantity,
        quantity=quantity,
        discount_code_id=applied_code_id,
        applied_discount=applied,
    )


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_code_usable(code: DiscountCode, now: datetime) -> bool:
    """Return True when a code is active, in its window and under its cap."""
    if not code.is_active:
        return False
    valid_from = _as_utc(code.valid_from)
    valid_until = _as_utc(code.valid_until)
    if valid_from is not None and valid_from > now:
        return False
    if valid_until is not None and valid_until < now:
        return False
    if code.max_uses and (code.used_count or 0) >= code.max_uses:
        return False
    return True


def price_ticket(
    session: Session,
    ticket: Ticket,
    quantity: int,
    discount_code: Optional[str] = None,
    now: Optional[datetime] = None,
) -> PriceBreakdown:
    """Load the applicable discounts for ``ticket`` and price it.

    Unknown, inactive, expired or exhausted codes are ignored.
    """
    now = _as_utc(now) or datetime.now(timezone.utc)
    today: date = now.date()

    date_discount = TicketDiscountRepository(session).find_active(ticket.id, today)

    code = None
    if discount_code and discount_code.strip():
        candidate = DiscountCodeRepository(session).find_by_code(
            ticket.event_id,
            discount_code,
            active_only=True,
        )
        if candidate is not None and is_code_usable(candidate, now):
            code = candidate
        else:
            logger.info(
                "Discount code ignored",
                extra={"event_id": ticket.event_id, "found": candidate is not None},
            )

    return calculate_ticket_price(
        Decimal(ticket.price),
        quantity,
        date_discount=date_discount,
        code_discount=code,
        code_id=code.id if code is not None else None,
    )

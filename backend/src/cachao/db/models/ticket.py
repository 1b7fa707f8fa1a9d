"""Ticket, discount and order models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from cachao.db.base import Base, BigIntId
from cachao.db.models.enums import DiscountType, OrderStatus, enum_values


def _discount_type_column() -> sa.Enum:
    return sa.Enum(
        DiscountType,
        name="discount_type",
        values_callable=enum_values,
    )


class Ticket(Base):
    """A purchasable ticket type for an event."""

    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text(), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(sa.String(500), nullable=True)
    max_quantity: Mapped[Optional[int]] = mapped_column(
        sa.Integer(),
        nullable=True,
        comment="Total tickets on sale; NULL means unlimited",
    )
    sold_quantity: Mapped[int] = mapped_column(
        sa.Integer(),
        nullable=False,
        server_default="0",
    )
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean(),
        nullable=False,
        server_default=sa.true(),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )


class TicketDiscount(Base):
    """Date-bound early-bird reduction on one ticket."""

    __tablename__ = "ticket_discounts"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    discount_type: Mapped[DiscountType] = mapped_column(
        _discount_type_column(),
        nullable=False,
    )
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    valid_until: Mapped[date] = mapped_column(
        sa.Date(),
        nullable=False,
        comment="Last day (inclusive) the discount applies",
    )
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean(),
        nullable=False,
        server_default=sa.true(),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


class DiscountCode(Base):
    """Event-scoped promotional code with a usage cap and validity window."""

    __tablename__ = "discount_codes"
    __table_args__ = (
        sa.UniqueConstraint("event_id", "code", name="uq_discount_codes_event_code"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code: Mapped[str] = mapped_column(
        sa.String(50),
        nullable=False,
        comment="Stored upper-case",
    )
    discount_type: Mapped[DiscountType] = mapped_column(
        _discount_type_column(),
        nullable=False,
    )
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    max_uses: Mapped[Optional[int]] = mapped_column(sa.Integer(), nullable=True)
    used_count: Mapped[int] = mapped_column(
        sa.Integer(),
        nullable=False,
        server_default="0",
    )
    valid_from: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
    )
    valid_until: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean(),
        nullable=False,
        server_default=sa.true(),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


class TicketOrder(Base):
    """A ticket purchase and its payment status."""

    __tablename__ = "ticket_orders"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ticket_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cognito_sub: Mapped[Optional[str]] = mapped_column(
        sa.String(64),
        nullable=True,
        index=True,
        comment="Buyer subject; NULL for guest checkout",
    )
    email: Mapped[Optional[str]] = mapped_column(sa.String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(sa.Integer(), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        server_default="0",
    )
    discount_code_id: Mapped[Optional[int]] = mapped_column(
        BigIntId,
        ForeignKey("discount_codes.id", ondelete="SET NULL"),
        nullable=True,
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stripe_checkout_session_id: Mapped[Optional[str]] = mapped_column(
        sa.String(255),
        nullable=True,
        index=True,
    )
    stripe_payment_intent_id: Mapped[Optional[str]] = mapped_column(
        sa.String(255),
        nullable=True,
    )
    status: Mapped[OrderStatus] = mapped_column(
        sa.Enum(
            OrderStatus,
            name="order_status",
            values_callable=enum_values,
        ),
        nullable=False,
        server_default=OrderStatus.PENDING.value,
    )
    validated: Mapped[bool] = mapped_column(
        sa.Boolean(),
        nullable=False,
        server_default=sa.false(),
        comment="Set when the ticket is scanned at the door",
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )

"""Accommodation models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from cachao.db.base import Base, BigIntId


class Accommodation(Base):
    """A hotel or apartment booked for an event's staff."""

    __tablename__ = "event_accommodations"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(sa.String(500), nullable=True)
    check_in_date: Mapped[Optional[date]] = mapped_column(sa.Date(), nullable=True)
    check_out_date: Mapped[Optional[date]] = mapped_column(sa.Date(), nullable=True)
    room_type: Mapped[Optional[str]] = mapped_column(sa.String(100), nullable=True)
    max_guests: Mapped[Optional[int]] = mapped_column(sa.Integer(), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    booking_reference: Mapped[Optional[str]] = mapped_column(
        sa.String(100),
        nullable=True,
    )
    cost_per_night: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
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


class AccommodationAssignment(Base):
    """Join row placing a staff member in an accommodation."""

    __tablename__ = "staff_accommodations"
    __table_args__ = (
        sa.UniqueConstraint(
            "accommodation_id",
            "staff_id",
            name="uq_staff_accommodations_accommodation_staff",
        ),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    accommodation_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("event_accommodations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    staff_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("event_staff.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    check_in_date: Mapped[Optional[date]] = mapped_column(
        sa.Date(),
        nullable=True,
        comment="Overrides the accommodation check-in for this person",
    )
    check_out_date: Mapped[Optional[date]] = mapped_column(
        sa.Date(),
        nullable=True,
        comment="Overrides the accommodation check-out for this person",
    )
    notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )

"""Event staff and staff flight models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from cachao.db.base import Base, BigIntId
from cachao.db.models.enums import FlightType, StaffRole, enum_values


class EventStaff(Base):
    """A staff member or artist attached to an event."""

    __tablename__ = "event_staff"
    __table_args__ = (sa.Index("idx_event_staff_event_role", "event_id", "role"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(sa.String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(
        sa.String(50),
        nullable=True,
        comment="E.164 phone number",
    )
    role: Mapped[StaffRole] = mapped_column(
        sa.Enum(
            StaffRole,
            name="staff_role",
            values_callable=enum_values,
        ),
        nullable=False,
        server_default=StaffRole.STAFF.value,
    )
    is_public: Mapped[bool] = mapped_column(
        sa.Boolean(),
        nullable=False,
        server_default=sa.false(),
        comment="Whether the artist profile is listed publicly",
    )
    image_url: Mapped[Optional[str]] = mapped_column(sa.String(500), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    instagram_url: Mapped[Optional[str]] = mapped_column(sa.String(500), nullable=True)
    tiktok_url: Mapped[Optional[str]] = mapped_column(sa.String(500), nullable=True)
    youtube_url: Mapped[Optional[str]] = mapped_column(sa.String(500), nullable=True)
    website_url: Mapped[Optional[str]] = mapped_column(sa.String(500), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(sa.String(100), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(sa.String(100), nullable=True)
    partner_name: Mapped[Optional[str]] = mapped_column(
        sa.String(200),
        nullable=True,
        comment="Dance partner shown next to the artist",
    )
    partner_id: Mapped[Optional[int]] = mapped_column(
        BigIntId,
        nullable=True,
        comment="event_staff id of the dance partner, if listed",
    )
    styles: Mapped[Optional[list[Any]]] = mapped_column(
        sa.JSON(),
        nullable=True,
        comment="Dance styles the artist teaches or performs",
    )
    notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
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


class StaffFlight(Base):
    """A flight booked for a staff member travelling to or from an event."""

    __tablename__ = "staff_flights"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    staff_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("event_staff.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    flight_number: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    airline: Mapped[Optional[str]] = mapped_column(sa.String(100), nullable=True)
    flight_type: Mapped[FlightType] = mapped_column(
        sa.Enum(
            FlightType,
            name="flight_type",
            values_callable=enum_values,
        ),
        nullable=False,
        server_default=FlightType.ARRIVAL.value,
    )
    departure_airport: Mapped[Optional[str]] = mapped_column(
        sa.String(100),
        nullable=True,
        comment="IATA code or airport name",
    )
    arrival_airport: Mapped[Optional[str]] = mapped_column(
        sa.String(100),
        nullable=True,
        comment="IATA code or airport name",
    )
    departure_datetime: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
    )
    arrival_datetime: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
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

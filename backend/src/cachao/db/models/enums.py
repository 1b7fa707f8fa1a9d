"""Enum definitions for database models."""

from __future__ import annotations

import enum


class StaffRole(str, enum.Enum):
    """Role a person plays at an event."""

    STAFF = "staff"
    ARTIST = "artist"


class FlightType(str, enum.Enum):
    """Direction of a staff member's flight relative to the event."""

    ARRIVAL = "arrival"
    DEPARTURE = "departure"
    RETURN = "return"


class DiscountType(str, enum.Enum):
    """How a discount value is applied to a price."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class OrderStatus(str, enum.Enum):
    """Payment lifecycle of a ticket order."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


def enum_values(enum_type: type[enum.Enum]) -> list[str]:
    """Persist enum values rather than member names."""
    return [member.value for member in enum_type]

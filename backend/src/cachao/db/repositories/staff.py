"""Repositories for event staff and their flights."""

from __future__ import annotations

from typing import Optional
from typing import Sequence

from sqlalchemy import case, select
from sqlalchemy.orm import Session

from cachao.db.models import EventStaff, StaffFlight, StaffRole
from cachao.db.repositories.base import BaseRepository


class EventStaffRepository(BaseRepository[EventStaff]):
    """Repository for event staff and artists."""

    def __init__(self, session: Session):
        super().__init__(session, EventStaff)

    def find_by_event(self, event_id: int) -> Sequence[EventStaff]:
        """List an event's staff ordered by role then name."""
        role_order = case(
            (EventStaff.role == StaffRole.ARTIST, 0),
            else_=1,
        )
        query = (
            select(EventStaff)
            .where(EventStaff.event_id == event_id)
            .order_by(role_order, EventStaff.name)
        )
        return self._session.execute(query).scalars().all()

    def get_for_event(self, event_id: int, staff_id: int) -> Optional[EventStaff]:
        """Return a staff row only if it belongs to the event."""
        query = select(EventStaff).where(
            EventStaff.id == staff_id,
            EventStaff.event_id == event_id,
        )
        return self._session.execute(query).scalar_one_or_none()


class StaffFlightRepository(BaseRepository[StaffFlight]):
    """Repository for staff flights."""

    def __init__(self, session: Session):
        super().__init__(session, StaffFlight)

    def find_by_staff(self, event_id: int, staff_id: int) -> Sequence[StaffFlight]:
        """List a staff member's flights in departure order."""
        query = (
            select(StaffFlight)
            .where(
                StaffFlight.event_id == event_id,
                StaffFlight.staff_id == staff_id,
            )
            .order_by(StaffFlight.departure_datetime, StaffFlight.id)
        )
        return self._session.execute(query).scalars().all()

    def find_by_event_with_staff(
        self,
        event_id: int,
    ) -> Sequence[tuple[StaffFlight, str, StaffRole]]:
        """List all flights of an event with the traveller's name and role."""
        query = (
            select(StaffFlight, EventStaff.name, EventStaff.role)
            .join(EventStaff, EventStaff.id == StaffFlight.staff_id)
            .where(StaffFlight.event_id == event_id)
            .order_by(StaffFlight.departure_datetime, StaffFlight.id)
        )
        return [
            (row[0], row[1], row[2]) for row in self._session.execute(query).all()
        ]

    def get_for_event(
        self,
        event_id: int,
        flight_id: int,
        staff_id: Optional[int] = None,
    ) -> Optional[StaffFlight]:
        """Return a flight only if it belongs to the event (and staff member)."""
        query = select(StaffFlight).where(
            StaffFlight.id == flight_id,
            StaffFlight.event_id == event_id,
        )
        if staff_id is not None:
            query = query.where(StaffFlight.staff_id == staff_id)
        return self._session.execute(query).scalar_one_or_none()

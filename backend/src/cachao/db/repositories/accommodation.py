"""Repositories for accommodations and staff assignments."""

from __future__ import annotations

from typing import Optional
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from cachao.db.models import (
    Accommodation,
    AccommodationAssignment,
    EventStaff,
    StaffRole,
)
from cachao.db.repositories.base import BaseRepository


class AccommodationRepository(BaseRepository[Accommodation]):
    """Repository for event accommodations."""

    def __init__(self, session: Session):
        super().__init__(session, Accommodation)

    def find_by_event(self, event_id: int) -> Sequence[Accommodation]:
        """List an event's accommodations by name."""
        query = (
            select(Accommodation)
            .where(Accommodation.event_id == event_id)
            .order_by(Accommodation.name)
        )
        return self._session.execute(query).scalars().all()

    def get_for_event(
        self,
        event_id: int,
        accommodation_id: int,
    ) -> Optional[Accommodation]:
        """Return an accommodation only if it belongs to the event."""
        query = select(Accommodation).where(
            Accommodation.id == accommodation_id,
            Accommodation.event_id == event_id,
        )
        return self._session.execute(query).scalar_one_or_none()

    def find_for_staff(
        self,
        event_id: int,
        staff_id: int,
    ) -> Sequence[tuple[Accommodation, AccommodationAssignment]]:
        """List accommodations a staff member is assigned to."""
        query = (
            select(Accommodation, AccommodationAssignment)
            .join(
                AccommodationAssignment,
                AccommodationAssignment.accommodation_id == Accommodation.id,
            )
            .where(
                Accommodation.event_id == event_id,
                AccommodationAssignment.staff_id == staff_id,
            )
            .order_by(Accommodation.check_in_date, Accommodation.name)
        )
        return [(row[0], row[1]) for row in self._session.execute(query).all()]


class AssignmentRepository(BaseRepository[AccommodationAssignment]):
    """Repository for staff-to-accommodation assignments."""

    def __init__(self, session: Session):
        super().__init__(session, AccommodationAssignment)

    def find_by_accommodations(
        self,
        accommodation_ids: Sequence[int],
    ) -> Sequence[tuple[AccommodationAssignment, str, StaffRole]]:
        """Return assignments for the given accommodations with staff info."""
        if not accommodation_ids:
            return []
        query = (
            select(AccommodationAssignment, EventStaff.name, EventStaff.role)
            .join(EventStaff, EventStaff.id == AccommodationAssignment.staff_id)
            .where(AccommodationAssignment.accommodation_id.in_(accommodation_ids))
            .order_by(EventStaff.name)
        )
        return [
            (row[0], row[1], row[2]) for row in self._session.execute(query).all()
        ]

    def find_one(
        self,
        accommodation_id: int,
        staff_id: int,
    ) -> Optional[AccommodationAssignment]:
        query = select(AccommodationAssignment).where(
            AccommodationAssignment.accommodation_id == accommodation_id,
            AccommodationAssignment.staff_id == staff_id,
        )
        return self._session.execute(query).scalar_one_or_none()

    def delete_for_accommodation(self, accommodation_id: int) -> int:
        """Remove every assignment of an accommodation.

        Returns:
            Number of deleted rows.
        """
        result = self._session.execute(
            delete(AccommodationAssignment).where(
                AccommodationAssignment.accommodation_id == accommodation_id
            )
        )
        self._session.flush()
        return result.rowcount or 0

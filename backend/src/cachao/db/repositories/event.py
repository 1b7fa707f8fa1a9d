"""Repository for Event entities."""

from __future__ import annotations

from typing import Optional
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cachao.db.models import Event, EventStaff
from cachao.db.repositories.base import BaseRepository
from cachao.utils.validators import normalize_email


class EventRepository(BaseRepository[Event]):
    """Repository for Event CRUD operations."""

    def __init__(self, session: Session):
        """Initialize the repository.

        Args:
            session: SQLAlchemy session for database operations.
        """
        super().__init__(session, Event)

    def list_recent(self, limit: int = 100) -> Sequence[Event]:
        """Return events with the latest start date first."""
        query = (
            select(Event)
            .order_by(Event.start_date.desc(), Event.id.desc())
            .limit(limit)
        )
        return self._session.execute(query).scalars().all()

    def find_by_owner(self, cognito_sub: str) -> Sequence[Event]:
        """Find events created by a Cognito user.

        Args:
            cognito_sub: The owner's Cognito subject.

        Returns:
            Owned events, latest start date first.
        """
        query = (
            select(Event)
            .where(Event.cognito_sub == cognito_sub)
            .order_by(Event.start_date.desc())
        )
        return self._session.execute(query).scalars().all()

    def find_by_staff_email(
        self,
        email: str,
        exclude_owner: Optional[str] = None,
    ) -> Sequence[tuple[Event, EventStaff]]:
        """Find events where a staff row carries the given email.

        Emails are compared trimmed and case-insensitively. Events owned by
        ``exclude_owner`` are left out so callers can merge both lists.

        Returns:
            ``(event, staff)`` pairs.
        """
        normalized = normalize_email(email)
        query = (
            select(Event, EventStaff)
            .join(EventStaff, EventStaff.event_id == Event.id)
            .where(func.lower(func.trim(EventStaff.email)) == normalized)
            .order_by(Event.start_date.desc())
        )
        if exclude_owner:
            query = query.where(
                (Event.cognito_sub.is_(None)) | (Event.cognito_sub != exclude_owner)
            )
        return [(row[0], row[1]) for row in self._session.execute(query).all()]

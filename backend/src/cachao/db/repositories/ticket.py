"""Repositories for tickets, discounts and discount codes."""

from __future__ import annotations

from datetime import date
from typing import Optional
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from cachao.db.models import DiscountCode, Ticket, TicketDiscount
from cachao.db.repositories.base import BaseRepository


class TicketRepository(BaseRepository[Ticket]):
    """Repository for event tickets."""

    def __init__(self, session: Session):
        """Initialize the repository.

        Args:
            session: SQLAlchemy session for database operations.
        """
        super().__init__(session, Ticket)

    def find_by_event(self, event_id: int) -> Sequence[Ticket]:
        """List an event's tickets, newest first."""
        query = (
            select(Ticket)
            .where(Ticket.event_id == event_id)
            .order_by(Ticket.created_at.desc(), Ticket.id.desc())
        )
        return self._session.execute(query).scalars().all()

    def get_for_event(self, event_id: int, ticket_id: int) -> Optional[Ticket]:
        """Return a ticket only if it belongs to the event."""
        query = select(Ticket).where(
            Ticket.id == ticket_id,
            Ticket.event_id == event_id,
        )
        return self._session.execute(query).scalar_one_or_none()

    def increment_sold(self, ticket_id: int, quantity: int) -> None:
        """Add ``quantity`` to the ticket's sold counter in SQL."""
        self._session.execute(
            update(Ticket)
            .where(Ticket.id == ticket_id)
            .values(sold_quantity=Ticket.sold_quantity + quantity)
        )
        self._session.flush()


class TicketDiscountRepository(BaseRepository[TicketDiscount]):
    """Repository for date-bound ticket discounts."""

    def __init__(self, session: Session):
        super().__init__(session, TicketDiscount)

    def find_by_ticket(self, ticket_id: int) -> Sequence[TicketDiscount]:
        query = (
            select(TicketDiscount)
            .where(TicketDiscount.ticket_id == ticket_id)
            .order_by(TicketDiscount.valid_until, TicketDiscount.id)
        )
        return self._session.execute(query).scalars().all()

    def get_for_ticket(
        self,
        ticket_id: int,
        discount_id: int,
    ) -> Optional[TicketDiscount]:
        query = select(TicketDiscount).where(
            TicketDiscount.id == discount_id,
            TicketDiscount.ticket_id == ticket_id,
        )
        return self._session.execute(query).scalar_one_or_none()

    def find_active(self, ticket_id: int, today: date) -> Optional[TicketDiscount]:
        """Return the active discount expiring soonest on or after ``today``."""
        query = (
            select(TicketDiscount)
            .where(
                TicketDiscount.ticket_id == ticket_id,
                TicketDiscount.is_active.is_(True),
                TicketDiscount.valid_until >= today,
            )
            .order_by(TicketDiscount.valid_until.asc(), TicketDiscount.id)
            .limit(1)
        )
        return self._session.execute(query).scalars().first()


class DiscountCodeRepository(BaseRepository[DiscountCode]):
    """Repository for event discount codes."""

    def __init__(self, session: Session):
        super().__init__(session, DiscountCode)

    def find_by_event(self, event_id: int) -> Sequence[DiscountCode]:
        query = (
            select(DiscountCode)
            .where(DiscountCode.event_id == event_id)
            .order_by(DiscountCode.created_at.desc(), DiscountCode.id.desc())
        )
        return self._session.execute(query).scalars().all()

    def get_for_event(self, event_id: int, code_id: int) -> Optional[DiscountCode]:
        query = select(DiscountCode).where(
            DiscountCode.id == code_id,
            DiscountCode.event_id == event_id,
        )
        return self._session.execute(query).scalar_one_or_none()

    def find_by_code(
        self,
        event_id: int,
        code: str,
        active_only: bool = False,
    ) -> Optional[DiscountCode]:
        """Find a code for an event; ``code`` is upper-cased before matching."""
        query = select(DiscountCode).where(
            DiscountCode.event_id == event_id,
            DiscountCode.code == code.strip().upper(),
        )
        if active_only:
            query = query.where(DiscountCode.is_active.is_(True))
        return self._session.execute(query).scalar_one_or_none()

    def increment_used(self, code_id: int) -> None:
        """Add one to the code's usage counter in SQL."""
        self._session.execute(
            update(DiscountCode)
            .where(DiscountCode.id == code_id)
            .values(used_count=DiscountCode.used_count + 1)
        )
        self._session.flush()

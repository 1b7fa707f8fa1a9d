"""Repository for ticket orders."""

from __future__ import annotations

from typing import Any
from typing import Optional
from typing import Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from cachao.db.models import Event, Ticket, TicketOrder
from cachao.db.repositories.base import BaseRepository
from cachao.utils.validators import normalize_email


class TicketOrderRepository(BaseRepository[TicketOrder]):
    """Repository for ticket orders and their payment state."""

    def __init__(self, session: Session):
        """Initialize the repository.

        Args:
            session: SQLAlchemy session for database operations.
        """
        super().__init__(session, TicketOrder)

    def find_by_event(self, event_id: int) -> Sequence[tuple[TicketOrder, str]]:
        """List an event's orders, newest first, with the ticket name.

        Returns:
            ``(order, ticket_name)`` pairs.
        """
        query = (
            select(TicketOrder, Ticket.name)
            .join(Ticket, Ticket.id == TicketOrder.ticket_id)
            .where(TicketOrder.event_id == event_id)
            .order_by(TicketOrder.created_at.desc(), TicketOrder.id.desc())
        )
        return [(row[0], row[1]) for row in self._session.execute(query).all()]

    def get_for_event(self, event_id: int, order_id: int) -> Optional[TicketOrder]:
        query = select(TicketOrder).where(
            TicketOrder.id == order_id,
            TicketOrder.event_id == event_id,
        )
        return self._session.execute(query).scalar_one_or_none()

    def find_by_checkout_session(self, session_id: str) -> Optional[TicketOrder]:
        query = select(TicketOrder).where(
            TicketOrder.stripe_checkout_session_id == session_id
        )
        return self._session.execute(query).scalars().first()

    def find_for_buyer(
        self,
        cognito_sub: Optional[str],
        email: Optional[str],
    ) -> Sequence[dict[str, Any]]:
        """List orders placed by a subject or an email address.

        Email matching is trimmed and case-insensitive so guest purchases
        made before sign-up show up too.

        Returns:
            Order dicts extended with event and ticket fields.
        """
        conditions = []
        if cognito_sub:
            conditions.append(TicketOrder.cognito_sub == cognito_sub)
        if email:
            conditions.append(
                func.lower(func.trim(TicketOrder.email)) == normalize_email(email)
            )
        if not conditions:
            return []
        query = (
            select(
                TicketOrder,
                Event.name,
                Event.start_date,
                Event.end_date,
                Ticket.name,
                Ticket.price,
                Ticket.image_url,
            )
            .join(Event, Event.id == TicketOrder.event_id)
            .join(Ticket, Ticket.id == TicketOrder.ticket_id)
            .where(or_(*conditions))
            .order_by(TicketOrder.created_at.desc(), TicketOrder.id.desc())
        )
        results = []
        for row in self._session.execute(query).all():
            item = row[0].to_dict()
            item.update(
                {
                    "event_name": row[1],
                    "event_start_date": row[2],
                    "event_end_date": row[3],
                    "ticket_name": row[4],
                    "ticket_price": row[5],
                    "ticket_image_url": row[6],
                }
            )
            results.append(item)
        return results

    def list_with_details(
        self,
        limit: int = 50,
        cursor: Optional[int] = None,
    ) -> Sequence[dict[str, Any]]:
        """List all orders, newest id first, for the admin dashboard.

        Args:
            limit: Page size.
            cursor: Id of the last order on the previous page.
        """
        query = (
            select(TicketOrder, Event.name, Ticket.name, Ticket.price)
            .outerjoin(Event, Event.id == TicketOrder.event_id)
            .outerjoin(Ticket, Ticket.id == TicketOrder.ticket_id)
            .order_by(TicketOrder.id.desc())
            .limit(limit)
        )
        if cursor is not None:
            query = query.where(TicketOrder.id < cursor)
        return [
            {
                **row[0].to_dict(),
                "event_name": row[1],
                "ticket_name": row[2],
                "ticket_price": row[3],
            }
            for row in self._session.execute(query).all()
        ]

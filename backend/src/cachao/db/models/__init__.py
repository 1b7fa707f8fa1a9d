"""SQLAlchemy models for events, staff, tickets and media."""

from cachao.db.models.accommodation import Accommodation, AccommodationAssignment
from cachao.db.models.enums import DiscountType, FlightType, OrderStatus, StaffRole
from cachao.db.models.event import Event
from cachao.db.models.media import Album, Video
from cachao.db.models.staff import EventStaff, StaffFlight
from cachao.db.models.ticket import DiscountCode, Ticket, TicketDiscount, TicketOrder
from cachao.db.models.user import User

__all__ = [
    "Accommodation",
    "AccommodationAssignment",
    "Album",
    "DiscountCode",
    "DiscountType",
    "Event",
    "EventStaff",
    "FlightType",
    "OrderStatus",
    "StaffFlight",
    "StaffRole",
    "Ticket",
    "TicketDiscount",
    "TicketOrder",
    "User",
    "Video",
]

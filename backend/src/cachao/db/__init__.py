"""Database utilities and models."""

from cachao.db.base import Base
from cachao.db.models import Accommodation
from cachao.db.models import AccommodationAssignment
from cachao.db.models import Album
from cachao.db.models import DiscountCode
from cachao.db.models import Event
from cachao.db.models import EventStaff
from cachao.db.models import StaffFlight
from cachao.db.models import Ticket
from cachao.db.models import TicketDiscount
from cachao.db.models import TicketOrder
from cachao.db.models import User
from cachao.db.models import Video

__all__ = [
    "Accommodation",
    "AccommodationAssignment",
    "Album",
    "Base",
    "DiscountCode",
    "Event",
    "EventStaff",
    "StaffFlight",
    "Ticket",
    "TicketDiscount",
    "TicketOrder",
    "User",
    "Video",
]

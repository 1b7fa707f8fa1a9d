"""Repository pattern implementations for database operations.

Repositories provide a clean abstraction over database operations,
making business logic independent of the persistence layer.
"""

from cachao.db.repositories.base import BaseRepository
from cachao.db.repositories.accommodation import AccommodationRepository
from cachao.db.repositories.accommodation import AssignmentRepository
from cachao.db.repositories.event import EventRepository
from cachao.db.repositories.media import AlbumRepository
from cachao.db.repositories.media import VideoRepository
from cachao.db.repositories.order import TicketOrderRepository
from cachao.db.repositories.staff import EventStaffRepository
from cachao.db.repositories.staff import StaffFlightRepository
from cachao.db.repositories.ticket import DiscountCodeRepository
from cachao.db.repositories.ticket import TicketDiscountRepository
from cachao.db.repositories.ticket import TicketRepository
from cachao.db.repositories.user import UserRepository

__all__ = [
    "AccommodationRepository",
    "AlbumRepository",
    "AssignmentRepository",
    "BaseRepository",
    "DiscountCodeRepository",
    "EventRepository",
    "EventStaffRepository",
    "StaffFlightRepository",
    "TicketDiscountRepository",
    "TicketOrderRepository",
    "TicketRepository",
    "UserRepository",
    "VideoRepository",
]

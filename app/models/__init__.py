"""Database models"""

from app.models.table import DiningTable, TableStatus
from app.models.reservation import (
    Reservation,
    ReservationStatus,
    ReservationSource,
    ReservationPriority,
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
)
from app.models.customer import Customer

__all__ = [
    "DiningTable",
    "TableStatus",
    "Reservation",
    "ReservationStatus",
    "ReservationSource",
    "ReservationPriority",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "Customer",
]

"""Data access for tables and reservations"""

from app.repositories.tables import TableDirectory
from app.repositories.reservations import ReservationStore

__all__ = ["TableDirectory", "ReservationStore"]

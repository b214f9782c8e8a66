"""
Conflict evaluation: is a table free for a given interval?

`DaySchedule` holds one date's live reservations and answers the question
synchronously, so slot listings can ask it hundreds of times off a single
query. Booking creation, booking updates and availability views all go
through `DaySchedule.is_free`.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional
from uuid import UUID

from app.core.clock import SiteClock, combine
from app.models.reservation import Reservation
from app.models.table import DiningTable, TableStatus
from app.repositories.reservations import ReservationStore


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open [start, end) overlap test; touching intervals do not overlap"""
    return start_a < end_b and start_b < end_a


def table_rejection(
    table: DiningTable,
    party_size: int,
    exclude_reservation_id: Optional[UUID] = None,
) -> Optional[str]:
    """Reason the table cannot take the party at any time, or None"""
    if not table.fits(party_size):
        return f"Table {table.number} seats {table.capacity}, party of {party_size} requested"
    if table.is_out_of_service:
        return f"Table {table.number} is {table.status.value}"
    if table.status == TableStatus.OCCUPIED and (
        exclude_reservation_id is None or table.current_reservation_id != exclude_reservation_id
    ):
        return f"Table {table.number} is occupied"
    return None


@dataclass
class DaySchedule:
    """Live (non-terminal, not yet ended) reservations for one date, by table"""
    day: date
    by_table: Dict[UUID, List[Reservation]] = field(default_factory=dict)

    def reservations_for(self, table_id: UUID, exclude_reservation_id: Optional[UUID] = None) -> List[Reservation]:
        return [
            r for r in self.by_table.get(table_id, [])
            if exclude_reservation_id is None or r.id != exclude_reservation_id
        ]

    def find_conflict(
        self,
        table: DiningTable,
        start: time,
        duration_minutes: int,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> Optional[Reservation]:
        """First reservation whose interval overlaps the candidate one"""
        candidate_start = combine(self.day, start)
        candidate_end = candidate_start + timedelta(minutes=duration_minutes)
        for reservation in self.reservations_for(table.id, exclude_reservation_id):
            if intervals_overlap(candidate_start, candidate_end, reservation.starts_at, reservation.ends_at):
                return reservation
        return None

    def is_free(
        self,
        table: DiningTable,
        start: time,
        duration_minutes: int,
        party_size: int,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> bool:
        if table_rejection(table, party_size, exclude_reservation_id):
            return False
        return self.find_conflict(table, start, duration_minutes, exclude_reservation_id) is None

    def gap_after(
        self,
        table: DiningTable,
        start: time,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> Optional[int]:
        """Free minutes from `start` until the next reservation on the table.

        Returns None when no reservation starts later that day, and 0 when
        `start` itself falls inside a reservation.
        """
        instant = combine(self.day, start)
        next_start = None
        for reservation in self.reservations_for(table.id, exclude_reservation_id):
            if reservation.starts_at <= instant < reservation.ends_at:
                return 0
            if reservation.starts_at > instant and (next_start is None or reservation.starts_at < next_start):
                next_start = reservation.starts_at
        if next_start is None:
            return None
        return int((next_start - instant).total_seconds() // 60)


class ConflictEvaluator:
    """Builds day schedules from the reservation store"""

    def __init__(self, reservations: ReservationStore, clock: SiteClock):
        self.reservations = reservations
        self.clock = clock

    async def schedule_for(self, day: date) -> DaySchedule:
        schedule = DaySchedule(day=day)
        for reservation in await self.reservations.list_by_date(day, active_only=True):
            if reservation.table_id is None:
                continue
            if self.clock.has_ended(reservation.reservation_date, reservation.reservation_time, reservation.duration_minutes):
                continue
            schedule.by_table.setdefault(reservation.table_id, []).append(reservation)
        return schedule

    async def is_free(
        self,
        table: DiningTable,
        day: date,
        start: time,
        duration_minutes: int,
        party_size: int,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> bool:
        schedule = await self.schedule_for(day)
        return schedule.is_free(table, start, duration_minutes, party_size, exclude_reservation_id)

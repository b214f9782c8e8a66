"""Table allocation for a booking request"""

from dataclasses import dataclass
from datetime import date, time
from typing import List, Optional
from uuid import UUID

import structlog

from app.core.clock import format_time
from app.core.errors import (
    AllocationFailedError,
    BookingValidationError,
    ConflictError,
    NotFoundError,
)
from app.models.table import DiningTable
from app.repositories.tables import TableDirectory
from app.services.conflicts import ConflictEvaluator, DaySchedule, table_rejection

logger = structlog.get_logger()


@dataclass
class AllocationRequest:
    day: date
    start: time
    duration_minutes: int
    party_size: int
    table_id: Optional[UUID] = None
    table_number: Optional[int] = None
    preferred_area: Optional[str] = None

    @property
    def is_explicit(self) -> bool:
        return self.table_id is not None or self.table_number is not None


def area_matches(table: DiningTable, preferred_area: Optional[str]) -> bool:
    """Case-insensitive substring match on the seating area"""
    if not preferred_area:
        return True
    return preferred_area.strip().lower() in (table.seating_area or "").lower()


def rank_candidates(tables: List[DiningTable], party_size: int, preferred_area: Optional[str] = None) -> List[DiningTable]:
    """Eligible tables, closest capacity fit first.

    sorted() is stable, so ties keep the directory order.
    """
    eligible = [
        t for t in tables
        if t.fits(party_size) and not t.is_out_of_service and area_matches(t, preferred_area)
    ]
    return sorted(eligible, key=lambda t: t.capacity - party_size)


class TableAllocator:
    """Picks the table a request is granted on"""

    def __init__(self, tables: TableDirectory, evaluator: ConflictEvaluator):
        self.tables = tables
        self.evaluator = evaluator

    async def allocate(
        self,
        request: AllocationRequest,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> DiningTable:
        schedule = await self.evaluator.schedule_for(request.day)
        if request.is_explicit:
            return await self._allocate_explicit(request, schedule, exclude_reservation_id)
        return await self._allocate_automatic(request, schedule, exclude_reservation_id)

    async def find_table(self, table_id: Optional[UUID] = None, table_number: Optional[int] = None) -> DiningTable:
        if table_id is not None:
            table = await self.tables.get(table_id)
            key = table_id
        else:
            table = await self.tables.get_by_number(table_number)
            key = table_number
        if table is None:
            raise NotFoundError("Table", key)
        return table

    async def _allocate_explicit(
        self,
        request: AllocationRequest,
        schedule: DaySchedule,
        exclude_reservation_id: Optional[UUID],
    ) -> DiningTable:
        table = await self.find_table(request.table_id, request.table_number)

        if not table.fits(request.party_size):
            raise BookingValidationError(
                f"Table {table.number} seats {table.capacity}, party of {request.party_size} requested",
                {"table_number": table.number, "capacity": table.capacity},
            )

        reason = table_rejection(table, request.party_size, exclude_reservation_id)
        if reason:
            raise ConflictError(reason, {"table_number": table.number, "status": table.status.value})

        conflict = schedule.find_conflict(table, request.start, request.duration_minutes, exclude_reservation_id)
        if conflict is not None:
            raise ConflictError(
                f"Table {table.number} is already booked on "
                f"{conflict.reservation_date.isoformat()} at {format_time(conflict.reservation_time)}",
                {
                    "table_number": table.number,
                    "conflicting_date": conflict.reservation_date.isoformat(),
                    "conflicting_time": format_time(conflict.reservation_time),
                },
            )

        logger.info("Allocated requested table", table_number=table.number, date=request.day.isoformat())
        return table

    async def _allocate_automatic(
        self,
        request: AllocationRequest,
        schedule: DaySchedule,
        exclude_reservation_id: Optional[UUID],
    ) -> DiningTable:
        tables = await self.tables.list()
        for table in rank_candidates(tables, request.party_size, request.preferred_area):
            if schedule.is_free(table, request.start, request.duration_minutes, request.party_size, exclude_reservation_id):
                logger.info(
                    "Allocated table",
                    table_number=table.number,
                    capacity=table.capacity,
                    party_size=request.party_size,
                    date=request.day.isoformat(),
                    time=format_time(request.start),
                )
                return table

        raise AllocationFailedError(
            f"No table available for {request.party_size} guests on "
            f"{request.day.isoformat()} at {format_time(request.start)}",
            {
                "date": request.day.isoformat(),
                "time": format_time(request.start),
                "party_size": request.party_size,
            },
        )

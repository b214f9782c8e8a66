"""
Availability views: a single-time check, per-table time slots for a date and
a per-day calendar of table counts.

All three go through `DaySchedule` so they agree with what booking creation
would accept. None of them writes anything besides the expiration sweep.
"""

import calendar as month_calendar
from datetime import date, time, timedelta
from typing import Dict, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.config import settings
from app.core.clock import SiteClock, combine, format_time, operating_slots, parse_time
from app.core.errors import (
    AllocationFailedError,
    BookingValidationError,
    ConflictError,
)
from app.models.reservation import Reservation
from app.repositories.reservations import ReservationStore
from app.repositories.tables import TableDirectory
from app.schemas.availability import (
    AvailabilityCheckResponse,
    CalendarDay,
    CalendarResponse,
    SlotOption,
    TableSlots,
    TimeSlotsResponse,
)
from app.services.allocator import AllocationRequest, TableAllocator, rank_candidates
from app.services.conflicts import ConflictEvaluator
from app.services.sweeper import ExpirationSweeper
from app.services.validation import ScheduleRules

logger = structlog.get_logger()

MAX_ALTERNATIVES = 6


def parse_month(value: str) -> Tuple[date, date]:
    """First and last day of a "YYYY-MM" month"""
    try:
        year, month = (int(part) for part in value.split("-"))
        last_day = month_calendar.monthrange(year, month)[1]
    except (ValueError, month_calendar.IllegalMonthError):
        raise BookingValidationError("Month must be formatted as YYYY-MM", {"month": value})
    return date(year, month, 1), date(year, month, last_day)


class AvailabilityService:
    """Read-side queries over the table calendar"""

    def __init__(
        self,
        db: AsyncSession,
        clock: Optional[SiteClock] = None,
        slot_interval_minutes: Optional[int] = None,
        min_gap_minutes: Optional[int] = None,
    ):
        self.db = db
        self.clock = clock or SiteClock()
        self.tables = TableDirectory(db)
        self.reservations = ReservationStore(db)
        self.evaluator = ConflictEvaluator(self.reservations, self.clock)
        self.allocator = TableAllocator(self.tables, self.evaluator)
        self.sweeper = ExpirationSweeper(db, self.reservations, self.tables, self.clock)
        self.rules = ScheduleRules(self.clock)
        self.slot_interval_minutes = slot_interval_minutes or settings.slot_interval_minutes
        self.min_gap_minutes = min_gap_minutes if min_gap_minutes is not None else settings.min_slot_gap_minutes

    async def check(
        self,
        day: date,
        start: time,
        party_size: int,
        duration_minutes: Optional[int] = None,
        preferred_area: Optional[str] = None,
        table_number: Optional[int] = None,
    ) -> AvailabilityCheckResponse:
        """Would a booking with these parameters be granted right now?"""
        duration_minutes = duration_minutes or settings.default_duration_minutes
        await self.sweeper.sweep()
        self.rules.check_booking(day, start, duration_minutes, party_size)

        response = AvailabilityCheckResponse(
            date=day,
            time=format_time(start),
            party_size=party_size,
            duration_minutes=duration_minutes,
            available=False,
        )
        try:
            table = await self.allocator.allocate(
                AllocationRequest(
                    day=day,
                    start=start,
                    duration_minutes=duration_minutes,
                    party_size=party_size,
                    table_number=table_number,
                    preferred_area=preferred_area,
                )
            )
        except (AllocationFailedError, ConflictError, BookingValidationError) as e:
            response.reason = e.message
            slots = await self._build_slots(day, party_size, duration_minutes, preferred_area)
            response.alternatives = self._nearest_alternatives(slots, start)
            return response

        response.available = True
        response.table_number = table.number
        return response

    async def time_slots(
        self,
        day: date,
        party_size: int,
        duration_minutes: Optional[int] = None,
        preferred_area: Optional[str] = None,
    ) -> TimeSlotsResponse:
        duration_minutes = duration_minutes or settings.default_duration_minutes
        await self.sweeper.sweep()
        self.rules.check_party_size(party_size)
        self.rules.check_duration(duration_minutes)
        self.rules.check_date(day)

        tables = await self._build_slots(day, party_size, duration_minutes, preferred_area)
        return TimeSlotsResponse(
            date=day,
            party_size=party_size,
            duration_minutes=duration_minutes,
            min_gap_minutes=self.min_gap_minutes,
            tables=tables,
        )

    async def calendar(
        self,
        start: Optional[date] = None,
        days: Optional[int] = None,
        month: Optional[str] = None,
    ) -> CalendarResponse:
        """Per-day table counts over the booking window, `days` from `start`, or one month"""
        await self.sweeper.sweep()

        if month:
            first, last = parse_month(month)
        elif days is not None:
            first = start or self.clock.today()
            last = first + timedelta(days=days - 1)
        elif start is not None:
            first = start
            last = first + timedelta(days=settings.booking_window_days)
        else:
            first, last = self.clock.valid_booking_range()

        tables = await self.tables.list(include_out_of_service=False)
        in_service = {t.id for t in tables}
        live_by_day: Dict[date, List[Reservation]] = {}
        for reservation in await self.reservations.list_between(first, last, active_only=True):
            if self.clock.has_ended(reservation.reservation_date, reservation.reservation_time, reservation.duration_minutes):
                continue
            live_by_day.setdefault(reservation.reservation_date, []).append(reservation)

        result = []
        day = first
        while day <= last:
            live = live_by_day.get(day, [])
            reserved: Set[UUID] = {r.table_id for r in live if r.table_id in in_service}
            available = len(tables) - len(reserved)
            result.append(
                CalendarDay(
                    date=day,
                    total_tables=len(tables),
                    reserved_tables=len(reserved),
                    available_tables=available,
                    reservations=len(live),
                    bookable=self.clock.is_in_booking_window(day) and available > 0,
                )
            )
            day += timedelta(days=1)

        return CalendarResponse(start=first, end=last, days=result)

    async def _build_slots(
        self,
        day: date,
        party_size: int,
        duration_minutes: int,
        preferred_area: Optional[str] = None,
    ) -> List[TableSlots]:
        """Offered start times per table.

        A start is offered when the full duration is free, or when nothing is
        running at that instant and at least `min_gap_minutes` remain before
        the next reservation. Occupancy status is ignored here; only the
        calendar decides.
        """
        schedule = await self.evaluator.schedule_for(day)
        starts = operating_slots(
            parse_time(settings.opening_time),
            parse_time(settings.closing_time),
            self.slot_interval_minutes,
        )
        now = self.clock.now()
        starts = [s for s in starts if combine(day, s) > now]

        result = []
        for table in rank_candidates(await self.tables.list(), party_size, preferred_area):
            slots = []
            for start in starts:
                gap = schedule.gap_after(table, start)
                if schedule.find_conflict(table, start, duration_minutes) is None:
                    slots.append(SlotOption(time=format_time(start), available_minutes=gap, full_duration=True))
                elif gap and gap >= self.min_gap_minutes:
                    slots.append(SlotOption(time=format_time(start), available_minutes=gap, full_duration=False))
            if not slots:
                continue
            result.append(
                TableSlots(
                    table_id=table.id,
                    table_number=table.number,
                    capacity=table.capacity,
                    seating_area=table.seating_area,
                    features=table.features or [],
                    is_accessible=bool(table.is_accessible),
                    slots=slots,
                )
            )

        result.sort(key=lambda t: t.table_number)
        logger.debug("Built time slots", date=day.isoformat(), tables=len(result))
        return result

    def _nearest_alternatives(self, tables: List[TableSlots], requested: time) -> List[str]:
        """Full-duration start times closest to the requested one"""
        offered = {s.time for t in tables for s in t.slots if s.full_duration}
        target = combine(date.min, requested)

        def distance(value: str) -> Tuple[float, str]:
            delta = combine(date.min, parse_time(value)) - target
            return abs(delta.total_seconds()), value

        return sorted(offered, key=distance)[:MAX_ALTERNATIVES]

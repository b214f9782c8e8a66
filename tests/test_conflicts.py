"""Tests for interval overlap and table availability"""

from datetime import date, datetime, time
from uuid import uuid4

import pytest

from app.models.reservation import Reservation, ReservationStatus
from app.models.table import DiningTable, TableStatus
from app.services.conflicts import ConflictEvaluator, DaySchedule, intervals_overlap, table_rejection
from app.repositories.reservations import ReservationStore

DAY = date(2025, 12, 15)


def make_table(number=1, capacity=4, status=TableStatus.AVAILABLE, current_reservation_id=None):
    return DiningTable(
        id=uuid4(),
        number=number,
        capacity=capacity,
        status=status,
        current_reservation_id=current_reservation_id,
    )


def make_booking(table, start, duration=120, day=DAY):
    return Reservation(
        id=uuid4(),
        table_id=table.id,
        reservation_date=day,
        reservation_time=start,
        duration_minutes=duration,
        party_size=2,
        status=ReservationStatus.CONFIRMED,
    )


def at(hour, minute=0):
    return datetime(2025, 12, 15, hour, minute)


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((at(20), at(22)), (at(19), at(21)), True),   # partial overlap
        ((at(18), at(20)), (at(20), at(22)), False),  # adjacency
        ((at(20), at(22)), (at(18), at(20)), False),  # adjacency, other side
        ((at(18), at(23)), (at(19), at(20)), True),   # containment
        ((at(19), at(20)), (at(18), at(23)), True),   # contained
        ((at(12), at(13)), (at(20), at(22)), False),  # disjoint
    ],
)
def test_intervals_overlap(a, b, expected):
    """Test the half-open overlap rule"""
    assert intervals_overlap(a[0], a[1], b[0], b[1]) is expected
    assert intervals_overlap(b[0], b[1], a[0], a[1]) is expected


def test_capacity_gate_ignores_calendar():
    """Test a too-small table is never free, even with an empty calendar"""
    table = make_table(capacity=2)
    schedule = DaySchedule(day=DAY)

    assert not schedule.is_free(table, time(12, 0), 120, party_size=3)
    assert schedule.is_free(table, time(12, 0), 120, party_size=2)


@pytest.mark.parametrize("status", [TableStatus.MAINTENANCE, TableStatus.BLOCKED, TableStatus.OCCUPIED])
def test_status_gate(status):
    """Test out-of-service and occupied tables are rejected before interval math"""
    table = make_table(status=status)
    schedule = DaySchedule(day=DAY)

    assert table_rejection(table, 2) is not None
    assert not schedule.is_free(table, time(12, 0), 60, party_size=2)


def test_occupied_table_free_for_its_own_reservation():
    """Test the seated reservation itself is not blocked by its own occupancy"""
    holder = uuid4()
    table = make_table(status=TableStatus.OCCUPIED, current_reservation_id=holder)

    assert table_rejection(table, 2, exclude_reservation_id=holder) is None
    assert table_rejection(table, 2, exclude_reservation_id=uuid4()) is not None


def test_reserved_status_does_not_block():
    """Test a table reserved for a later slot is still free earlier in the day"""
    table = make_table(status=TableStatus.RESERVED)
    booking = make_booking(table, time(20, 0))
    schedule = DaySchedule(day=DAY, by_table={table.id: [booking]})

    assert schedule.is_free(table, time(12, 0), 120, party_size=4)
    assert schedule.is_free(table, time(18, 0), 120, party_size=4)
    assert not schedule.is_free(table, time(19, 0), 120, party_size=4)


def test_find_conflict_and_exclusion():
    """Test the overlapping reservation is reported unless it is the one excluded"""
    table = make_table()
    booking = make_booking(table, time(20, 0))
    schedule = DaySchedule(day=DAY, by_table={table.id: [booking]})

    assert schedule.find_conflict(table, time(19, 0), 120) is booking
    assert schedule.find_conflict(table, time(19, 0), 120, exclude_reservation_id=booking.id) is None


def test_gap_after():
    """Test free minutes until the next reservation"""
    table = make_table()
    booking = make_booking(table, time(20, 0))
    schedule = DaySchedule(day=DAY, by_table={table.id: [booking]})

    assert schedule.gap_after(table, time(18, 30)) == 90
    assert schedule.gap_after(table, time(20, 30)) == 0
    assert schedule.gap_after(table, time(22, 0)) is None


@pytest.mark.asyncio
async def test_schedule_skips_terminal_and_ended(test_db, clock, test_tables, make_reservation):
    """Test ended and terminal reservations do not block"""
    table = test_tables[2]
    today = clock.today()
    ended = await make_reservation(table, today, time(8, 0), duration_minutes=60)
    await make_reservation(table, DAY, time(20, 0), status=ReservationStatus.CANCELLED)
    live = await make_reservation(table, DAY, time(12, 0))

    evaluator = ConflictEvaluator(ReservationStore(test_db), clock)

    today_schedule = await evaluator.schedule_for(today)
    assert ended.id not in [r.id for r in today_schedule.reservations_for(table.id)]

    schedule = await evaluator.schedule_for(DAY)
    assert [r.id for r in schedule.reservations_for(table.id)] == [live.id]
    assert await evaluator.is_free(table, DAY, time(20, 0), 120, 4)
    assert not await evaluator.is_free(table, DAY, time(13, 0), 60, 4)

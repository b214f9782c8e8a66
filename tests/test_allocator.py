"""Tests for table allocation"""

from datetime import date, time
from uuid import uuid4

import pytest

from app.core.errors import AllocationFailedError, BookingValidationError, ConflictError, NotFoundError
from app.models.table import DiningTable, TableStatus
from app.repositories.reservations import ReservationStore
from app.repositories.tables import TableDirectory
from app.services.allocator import AllocationRequest, TableAllocator, area_matches, rank_candidates
from app.services.conflicts import ConflictEvaluator

DAY = date(2025, 12, 15)


@pytest.fixture
def allocator(test_db, clock):
    reservations = ReservationStore(test_db)
    return TableAllocator(TableDirectory(test_db), ConflictEvaluator(reservations, clock))


def test_rank_candidates_closest_fit_is_stable():
    """Test closest capacity first, ties keep input order"""
    tables = [
        DiningTable(id=uuid4(), number=n, capacity=c, status=TableStatus.AVAILABLE, seating_area="main")
        for n, c in [(1, 8), (2, 4), (3, 2), (4, 4), (5, 6)]
    ]
    ranked = rank_candidates(tables, party_size=3)

    assert [t.number for t in ranked] == [2, 4, 5, 1]
    assert [t.number for t in rank_candidates(list(tables), party_size=3)] == [2, 4, 5, 1]


def test_rank_candidates_excludes_out_of_service_and_area():
    tables = [
        DiningTable(id=uuid4(), number=1, capacity=4, status=TableStatus.MAINTENANCE, seating_area="main"),
        DiningTable(id=uuid4(), number=2, capacity=4, status=TableStatus.AVAILABLE, seating_area="Patio"),
        DiningTable(id=uuid4(), number=3, capacity=4, status=TableStatus.OCCUPIED, seating_area="main"),
    ]

    assert [t.number for t in rank_candidates(tables, 2)] == [2, 3]
    assert [t.number for t in rank_candidates(tables, 2, "pat")] == [2]


def test_area_matches_case_insensitive_substring():
    table = DiningTable(number=1, capacity=2, seating_area="Outdoor Patio")
    assert area_matches(table, "patio")
    assert area_matches(table, None)
    assert not area_matches(table, "bar")


@pytest.mark.asyncio
async def test_automatic_picks_smallest_fitting_table(allocator, test_tables):
    """Test a party of 3 gets the first 4-top"""
    table = await allocator.allocate(AllocationRequest(DAY, time(20, 0), 120, 3))
    assert table.number == 2


@pytest.mark.asyncio
async def test_automatic_is_deterministic(allocator, test_tables):
    picks = [
        (await allocator.allocate(AllocationRequest(DAY, time(19, 0), 90, 2))).number
        for _ in range(3)
    ]
    assert picks == [1, 1, 1]


@pytest.mark.asyncio
async def test_automatic_skips_booked_table(allocator, test_tables, make_reservation):
    """Test a busy closest fit falls through to the next candidate"""
    await make_reservation(test_tables[2], DAY, time(20, 0), party_size=4)

    table = await allocator.allocate(AllocationRequest(DAY, time(19, 0), 120, 4))
    assert table.number == 3


@pytest.mark.asyncio
async def test_automatic_respects_preferred_area(allocator, test_tables):
    table = await allocator.allocate(AllocationRequest(DAY, time(13, 0), 120, 2, preferred_area="PATIO"))
    assert table.number == 3


@pytest.mark.asyncio
async def test_automatic_fails_when_nothing_fits(allocator, test_tables):
    with pytest.raises(AllocationFailedError):
        await allocator.allocate(AllocationRequest(DAY, time(13, 0), 120, 12))


@pytest.mark.asyncio
async def test_explicit_table_conflict_names_booking(allocator, test_tables, make_reservation):
    """Test an overlapping request on a named table reports the conflicting slot"""
    await make_reservation(test_tables[2], DAY, time(20, 0), party_size=4)

    with pytest.raises(ConflictError) as exc_info:
        await allocator.allocate(AllocationRequest(DAY, time(19, 0), 120, 4, table_number=2))

    assert "2025-12-15" in exc_info.value.message
    assert "20:00" in exc_info.value.message
    assert exc_info.value.details["conflicting_time"] == "20:00"


@pytest.mark.asyncio
async def test_explicit_table_capacity(allocator, test_tables):
    with pytest.raises(BookingValidationError):
        await allocator.allocate(AllocationRequest(DAY, time(19, 0), 120, 5, table_number=2))


@pytest.mark.asyncio
async def test_explicit_table_does_not_apply_closest_fit(allocator, test_tables):
    """Test a large table can be requested for a small party"""
    table = await allocator.allocate(AllocationRequest(DAY, time(19, 0), 120, 2, table_id=test_tables[5].id))
    assert table.number == 5


@pytest.mark.asyncio
async def test_explicit_table_in_maintenance(allocator, test_tables):
    with pytest.raises(ConflictError):
        await allocator.allocate(AllocationRequest(DAY, time(19, 0), 120, 2, table_number=6))


@pytest.mark.asyncio
async def test_explicit_unknown_table(allocator, test_tables):
    with pytest.raises(NotFoundError):
        await allocator.allocate(AllocationRequest(DAY, time(19, 0), 120, 2, table_number=99))

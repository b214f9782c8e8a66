"""Tests for availability checks, time slots and the calendar"""

from datetime import date, time

import pytest

from app.core.errors import BookingValidationError
from app.models.reservation import ReservationStatus
from app.models.table import TableStatus
from app.services.availability import parse_month

DAY = date(2025, 12, 15)


def slots_for(response, table_number):
    for table in response.tables:
        if table.table_number == table_number:
            return {s.time: s for s in table.slots}
    return None


@pytest.mark.asyncio
async def test_time_slots_around_booking(availability, test_tables, make_reservation):
    """Test full and squeeze-in slots before a 20:00 booking"""
    await make_reservation(test_tables[2], DAY, time(20, 0), party_size=4)

    response = await availability.time_slots(DAY, party_size=4, duration_minutes=120)
    slots = slots_for(response, 2)

    assert slots["08:00"].full_duration
    assert slots["18:00"].full_duration
    assert slots["18:00"].available_minutes == 120
    assert not slots["18:30"].full_duration
    assert slots["18:30"].available_minutes == 90
    assert not slots["19:00"].full_duration
    assert slots["19:00"].available_minutes == 60
    for taken in ("19:30", "20:00", "20:30", "21:00", "21:30"):
        assert taken not in slots

    # Nothing booked after the last start
    assert slots_for(response, 3)["21:30"].available_minutes is None
    assert response.min_gap_minutes == 60


@pytest.mark.asyncio
async def test_time_slots_gap_is_configurable(test_db, clock, test_tables, make_reservation):
    from app.services.availability import AvailabilityService

    await make_reservation(test_tables[2], DAY, time(20, 0), party_size=4)
    service = AvailabilityService(test_db, clock=clock, min_gap_minutes=90)

    slots = slots_for(await service.time_slots(DAY, 4, 120), 2)
    assert "18:30" in slots
    assert "19:00" not in slots


@pytest.mark.asyncio
async def test_time_slots_table_filtering(availability, test_tables):
    """Test too-small and out-of-service tables are left out, occupancy is not"""
    test_tables[3].status = TableStatus.OCCUPIED

    response = await availability.time_slots(DAY, party_size=4)
    numbers = [t.table_number for t in response.tables]

    assert numbers == [2, 3, 4, 5]
    assert all(t.status == "available" for t in response.tables)

    response = await availability.time_slots(DAY, party_size=2)
    assert 6 not in [t.table_number for t in response.tables]


@pytest.mark.asyncio
async def test_time_slots_skip_past_starts_today(availability, clock, test_tables):
    response = await availability.time_slots(clock.today(), party_size=2)
    slots = slots_for(response, 1)

    assert "10:00" not in slots
    assert min(slots) == "10:30"


@pytest.mark.asyncio
async def test_time_slots_validation(availability, test_tables):
    with pytest.raises(BookingValidationError):
        await availability.time_slots(date(2026, 1, 15), party_size=2)
    with pytest.raises(BookingValidationError):
        await availability.time_slots(DAY, party_size=0)


@pytest.mark.asyncio
async def test_check_available(availability, test_tables):
    response = await availability.check(DAY, time(20, 0), party_size=3)

    assert response.available
    assert response.table_number == 2
    assert response.time == "20:00"
    assert response.duration_minutes == 120


@pytest.mark.asyncio
async def test_check_unavailable_with_alternatives(availability, test_tables, make_reservation):
    await make_reservation(test_tables[2], DAY, time(20, 0), party_size=4)

    response = await availability.check(DAY, time(19, 0), party_size=4, table_number=2)

    assert not response.available
    assert "20:00" in response.reason
    assert 0 < len(response.alternatives) <= 6
    assert response.alternatives[0] == "19:00"


@pytest.mark.asyncio
async def test_check_matches_booking(availability, service, test_tables):
    """Test a positive check is followed by a granted booking on the same table"""
    from app.schemas.reservation import ReservationCreate

    response = await availability.check(DAY, time(20, 0), party_size=2, preferred_area="bar")
    reservation = await service.create(ReservationCreate(
        customer_name="Sofia Ruiz",
        customer_phone="+5491155550103",
        reservation_date=DAY,
        reservation_time=time(20, 0),
        party_size=2,
        preferred_seating_area="bar",
    ))

    assert response.table_number == reservation.table_number == 7


@pytest.mark.asyncio
async def test_check_no_table_large_enough(availability, test_tables):
    response = await availability.check(DAY, time(20, 0), party_size=12)

    assert not response.available
    assert response.reason
    assert response.alternatives == []


@pytest.mark.asyncio
async def test_calendar_default_window(availability, clock, test_tables, make_reservation):
    await make_reservation(test_tables[2], DAY, time(20, 0), party_size=4)
    await make_reservation(test_tables[3], DAY, time(13, 0), status=ReservationStatus.CANCELLED)

    response = await availability.calendar()

    assert response.start == clock.today()
    assert response.end == date(2025, 12, 24)
    assert len(response.days) == 15

    by_day = {d.date: d for d in response.days}
    assert by_day[DAY].total_tables == 6
    assert by_day[DAY].reserved_tables == 1
    assert by_day[DAY].available_tables == 5
    assert by_day[DAY].reservations == 1
    assert by_day[DAY].bookable
    assert by_day[date(2025, 12, 16)].reserved_tables == 0


@pytest.mark.asyncio
async def test_calendar_month(availability, test_tables):
    response = await availability.calendar(month="2025-12")

    assert response.start == date(2025, 12, 1)
    assert response.end == date(2025, 12, 31)
    by_day = {d.date: d for d in response.days}
    assert not by_day[date(2025, 12, 1)].bookable
    assert by_day[date(2025, 12, 20)].bookable
    assert not by_day[date(2025, 12, 31)].bookable


@pytest.mark.asyncio
async def test_calendar_days_from_start(availability, clock, test_tables):
    response = await availability.calendar(start=DAY, days=7)

    assert response.start == DAY
    assert response.end == date(2025, 12, 21)
    assert [d.date for d in response.days][-1] == date(2025, 12, 21)
    assert len(response.days) == 7

    response = await availability.calendar(days=1)
    assert [d.date for d in response.days] == [clock.today()]


def test_parse_month_rejects_garbage():
    assert parse_month("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    for value in ("2025", "2025-13", "december"):
        with pytest.raises(BookingValidationError):
            parse_month(value)

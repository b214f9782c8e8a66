"""Tests for per-customer booking limits"""

from datetime import date, time

import pytest

from app.core.errors import ConflictError, LimitExceededError
from app.models.reservation import ReservationStatus
from app.repositories.reservations import ReservationStore
from app.services.limits import BookingLimitGuard

PHONE = "+5491155550199"


@pytest.fixture
def guard(test_db, clock):
    return BookingLimitGuard(ReservationStore(test_db), clock)


@pytest.mark.asyncio
async def test_no_reservations_passes(guard, test_tables):
    await guard.check(None, PHONE, date(2025, 12, 15), time(20, 0))


@pytest.mark.asyncio
async def test_max_active(guard, test_tables, make_reservation):
    """Test a third active booking is refused"""
    await make_reservation(test_tables[1], date(2025, 12, 15), time(20, 0), phone=PHONE)
    await make_reservation(test_tables[2], date(2025, 12, 16), time(20, 0), phone=PHONE)

    with pytest.raises(LimitExceededError) as exc_info:
        await guard.check(None, PHONE, date(2025, 12, 17), time(20, 0))

    assert exc_info.value.rule == "max_active"
    assert exc_info.value.details["rule"] == "max_active"


@pytest.mark.asyncio
async def test_same_day(guard, test_tables, make_reservation):
    await make_reservation(test_tables[1], date(2025, 12, 15), time(13, 0), phone=PHONE)

    with pytest.raises(LimitExceededError) as exc_info:
        await guard.check(None, PHONE, date(2025, 12, 15), time(20, 0))

    assert exc_info.value.rule == "same_day"


@pytest.mark.asyncio
async def test_exact_duplicate_is_conflict(test_db, clock, test_tables, make_reservation):
    """Test a repeated date and time is a conflict once the count rules allow it"""
    guard = BookingLimitGuard(ReservationStore(test_db), clock, max_per_day=2)
    await make_reservation(test_tables[1], date(2025, 12, 15), time(20, 0), phone=PHONE)

    with pytest.raises(ConflictError) as exc_info:
        await guard.check(None, PHONE, date(2025, 12, 15), time(20, 0))

    assert exc_info.value.details["rule"] == "duplicate"


@pytest.mark.asyncio
async def test_count_rules_win_over_duplicate(guard, test_tables, make_reservation):
    """Test a repeat of an existing booking reports the limit it breaks"""
    await make_reservation(test_tables[1], date(2025, 12, 15), time(20, 0), phone=PHONE)

    with pytest.raises(LimitExceededError) as exc_info:
        await guard.check(None, PHONE, date(2025, 12, 15), time(20, 0))
    assert exc_info.value.rule == "same_day"

    await make_reservation(test_tables[2], date(2025, 12, 16), time(20, 0), phone=PHONE)

    with pytest.raises(LimitExceededError) as exc_info:
        await guard.check(None, PHONE, date(2025, 12, 15), time(20, 0))
    assert exc_info.value.rule == "max_active"


@pytest.mark.asyncio
async def test_terminal_and_ended_do_not_count(guard, clock, test_tables, make_reservation):
    """Test cancelled bookings and ones already over are ignored"""
    await make_reservation(test_tables[1], date(2025, 12, 15), time(20, 0), phone=PHONE, status=ReservationStatus.CANCELLED)
    await make_reservation(test_tables[2], clock.today(), time(8, 0), duration_minutes=60, phone=PHONE)

    await guard.check(None, PHONE, date(2025, 12, 15), time(20, 0))


@pytest.mark.asyncio
async def test_matches_by_customer_id(guard, test_tables, test_customer, make_reservation):
    """Test bookings are grouped by customer id as well as phone"""
    await make_reservation(
        test_tables[1], date(2025, 12, 15), time(20, 0), phone="+5491100000001", customer_id=test_customer.id
    )

    with pytest.raises(LimitExceededError):
        await guard.check(test_customer.id, test_customer.phone, date(2025, 12, 15), time(13, 0))


@pytest.mark.asyncio
async def test_exclude_own_reservation(guard, test_tables, make_reservation):
    """Test rescheduling a booking does not count the booking itself"""
    own = await make_reservation(test_tables[1], date(2025, 12, 15), time(20, 0), phone=PHONE)

    await guard.check(None, PHONE, date(2025, 12, 15), time(21, 0), exclude_reservation_id=own.id)

"""Test configuration and fixtures"""

from datetime import date, datetime, time
from typing import List, Optional
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db
from app.core.clock import SiteClock, get_clock
from app.models.customer import Customer
from app.models.reservation import Reservation, ReservationStatus
from app.models.table import DiningTable, TableStatus
from app.services.availability import AvailabilityService
from app.services.customers import BaseCustomerStatsUpdater, get_stats_updater
from app.services.lifecycle import ReservationService
from app.services.notifications import BaseNotificationScheduler, get_notification_scheduler


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite://"

# Fixed "now" for every test: two weeks of bookable dates ahead of it
NOW = datetime(2025, 12, 10, 10, 0)


class FixedClock(SiteClock):
    """Site clock pinned to a settable instant"""

    def __init__(self, current: datetime = NOW):
        super().__init__()
        self.current = current

    def now(self) -> datetime:
        return self.current


class RecordingNotifier(BaseNotificationScheduler):
    """Keeps (kind, reservation_id, countdown) for every queued notification"""

    def __init__(self, clock: SiteClock, fail: bool = False):
        super().__init__(clock)
        self.sent = []
        self.fail = fail

    def _enqueue(self, kind, reservation, countdown=0):
        if self.fail:
            raise ConnectionError("broker unreachable")
        self.sent.append((kind, reservation.id, countdown))

    def kinds(self) -> List[str]:
        return [kind for kind, _, _ in self.sent]


class RecordingStats(BaseCustomerStatsUpdater):
    def __init__(self, fail: bool = False):
        self.visits = []
        self.fail = fail

    def _record(self, customer_id, spend_cents):
        if self.fail:
            raise ConnectionError("broker unreachable")
        self.visits.append((customer_id, spend_cents))


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def notifier(clock):
    return RecordingNotifier(clock)


@pytest.fixture
def failing_notifier(clock):
    return RecordingNotifier(clock, fail=True)


@pytest.fixture
def stats():
    return RecordingStats()


@pytest.fixture
async def test_tables(test_db):
    """Dining room: two 2-tops, three 4-tops (one on the patio, one in maintenance), a 6 and an 8"""
    specs = [
        (1, 2, "main", TableStatus.AVAILABLE),
        (2, 4, "main", TableStatus.AVAILABLE),
        (3, 4, "patio", TableStatus.AVAILABLE),
        (4, 6, "main", TableStatus.AVAILABLE),
        (5, 8, "terrace", TableStatus.AVAILABLE),
        (6, 4, "main", TableStatus.MAINTENANCE),
        (7, 2, "bar", TableStatus.AVAILABLE),
    ]
    tables = {}
    for number, capacity, area, status in specs:
        table = DiningTable(
            id=uuid4(),
            number=number,
            capacity=capacity,
            seating_area=area,
            features=[],
            status=status,
        )
        test_db.add(table)
        tables[number] = table
    await test_db.commit()
    return tables


@pytest.fixture
async def test_customer(test_db):
    customer = Customer(id=uuid4(), name="Lucia Fernandez", phone="+5491155550101", email="lucia@example.com")
    test_db.add(customer)
    await test_db.commit()
    return customer


@pytest.fixture
def service(test_db, clock, notifier, stats):
    return ReservationService(test_db, clock=clock, notifier=notifier, stats=stats)


@pytest.fixture
def availability(test_db, clock):
    return AvailabilityService(test_db, clock=clock)


async def add_reservation(
    db: AsyncSession,
    table: Optional[DiningTable],
    day: date,
    start: time,
    duration_minutes: int = 120,
    party_size: int = 2,
    status: ReservationStatus = ReservationStatus.CONFIRMED,
    phone: str = "+5491100000000",
    customer_id=None,
) -> Reservation:
    """Insert a reservation directly, bypassing validation (for past or prepared state)"""
    reservation = Reservation(
        id=uuid4(),
        confirmation_code=uuid4().hex[:6].upper(),
        customer_id=customer_id,
        customer_name="Prepared Guest",
        customer_phone=phone,
        table_id=table.id if table else None,
        table_number=table.number if table else None,
        reservation_date=day,
        reservation_time=start,
        duration_minutes=duration_minutes,
        party_size=party_size,
        status=status,
        special_requests=[],
        allergies=[],
        dietary_restrictions=[],
        tags=[],
        internal_notes=[],
        reminders_sent=[],
    )
    db.add(reservation)
    if table is not None and status in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
        table.status = TableStatus.RESERVED
        table.current_reservation_id = reservation.id
    elif table is not None and status == ReservationStatus.SEATED:
        table.status = TableStatus.OCCUPIED
        table.current_reservation_id = reservation.id
    await db.commit()
    return reservation


@pytest.fixture
def make_reservation(test_db):
    async def _make(table, day, start, **kwargs):
        return await add_reservation(test_db, table, day, start, **kwargs)
    return _make


@pytest.fixture
async def client(test_db, clock, notifier, stats):
    """Create test client with overridden database, clock and side effects"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notification_scheduler] = lambda: notifier
    app.dependency_overrides[get_stats_updater] = lambda: stats

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

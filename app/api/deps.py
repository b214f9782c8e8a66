"""Service dependencies shared by the routers"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import SiteClock, get_clock
from app.database import get_db
from app.services.availability import AvailabilityService
from app.services.customers import BaseCustomerStatsUpdater, get_stats_updater
from app.services.lifecycle import ReservationService
from app.services.notifications import BaseNotificationScheduler, get_notification_scheduler


async def get_reservation_service(
    db: AsyncSession = Depends(get_db),
    clock: SiteClock = Depends(get_clock),
    notifier: BaseNotificationScheduler = Depends(get_notification_scheduler),
    stats: BaseCustomerStatsUpdater = Depends(get_stats_updater),
) -> ReservationService:
    return ReservationService(db, clock=clock, notifier=notifier, stats=stats)


async def get_availability_service(
    db: AsyncSession = Depends(get_db),
    clock: SiteClock = Depends(get_clock),
) -> AvailabilityService:
    return AvailabilityService(db, clock=clock)

"""Lazy expiration of reservations whose time window has passed"""

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.core.clock import SiteClock
from app.models.reservation import Reservation, ReservationStatus
from app.repositories.reservations import ReservationStore
from app.repositories.tables import TableDirectory

logger = structlog.get_logger()


class ExpirationSweeper:
    """Completes elapsed reservations and frees their tables.

    Runs at the start of every availability read, allocation, status
    transition and today/upcoming listing. Only non-terminal reservations
    are selected, so a second pass over the same data changes nothing.
    """

    def __init__(
        self,
        db: AsyncSession,
        reservations: ReservationStore,
        tables: TableDirectory,
        clock: SiteClock,
    ):
        self.db = db
        self.reservations = reservations
        self.tables = tables
        self.clock = clock

    async def sweep(self) -> List[Reservation]:
        now = self.clock.now()
        expired = [
            r for r in await self.reservations.list_active_on_or_before(now.date())
            if self.clock.has_ended(r.reservation_date, r.reservation_time, r.duration_minutes)
        ]
        if not expired:
            return []

        for reservation in expired:
            reservation.status = ReservationStatus.COMPLETED
            reservation.completed_at = now
            reservation.updated_by = "system"
            if reservation.table_id is not None:
                table = await self.tables.get(reservation.table_id)
                if table is not None:
                    self.tables.release(table, reservation.id)

        await self.db.commit()
        logger.info("Expired elapsed reservations", count=len(expired))
        return expired

"""Table directory: read/write access to the table inventory"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.models.table import DiningTable, TableStatus, OUT_OF_SERVICE_STATUSES

logger = structlog.get_logger()


class TableDirectory:
    """Inventory of dining tables.

    Status changes go through `set_status` / `release` so that every write
    carries the reservation id responsible for it.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, include_out_of_service: bool = True) -> List[DiningTable]:
        """Tables ordered by number"""
        query = select(DiningTable).order_by(DiningTable.number)
        if not include_out_of_service:
            query = query.where(DiningTable.status.not_in(list(OUT_OF_SERVICE_STATUSES)))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, table_id: UUID) -> Optional[DiningTable]:
        return await self.db.get(DiningTable, table_id)

    async def get_by_number(self, number: int) -> Optional[DiningTable]:
        result = await self.db.execute(
            select(DiningTable).where(DiningTable.number == number)
        )
        return result.scalar_one_or_none()

    async def create(self, **fields) -> DiningTable:
        table = DiningTable(**fields)
        self.db.add(table)
        await self.db.flush()
        return table

    def set_status(
        self,
        table: DiningTable,
        status: TableStatus,
        reservation_id: Optional[UUID] = None,
    ) -> None:
        table.status = status
        table.current_reservation_id = reservation_id
        logger.info(
            "Table status changed",
            table_number=table.number,
            status=status.value,
            reservation_id=str(reservation_id) if reservation_id else None,
        )

    def release(self, table: DiningTable, reservation_id: UUID) -> bool:
        """Make the table available if this reservation is what holds it.

        A back-reference pointing at a different reservation means another
        booking has claimed the table since; it is left untouched.
        """
        if table.current_reservation_id not in (None, reservation_id):
            return False
        if table.status in OUT_OF_SERVICE_STATUSES:
            table.current_reservation_id = None
            return False
        self.set_status(table, TableStatus.AVAILABLE, None)
        return True

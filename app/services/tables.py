"""Table inventory management"""

from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
import structlog

from app.core.errors import BookingValidationError, ConflictError, NotFoundError
from app.models.table import DiningTable, TableStatus
from app.repositories.reservations import ReservationStore
from app.repositories.tables import TableDirectory
from app.schemas.table import TableCreate, TableStatusUpdate

logger = structlog.get_logger()

# Statuses staff may set by hand; reserved/occupied follow reservations
MANUAL_STATUSES = {TableStatus.AVAILABLE, TableStatus.MAINTENANCE, TableStatus.BLOCKED}


class TableService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.tables = TableDirectory(db)
        self.reservations = ReservationStore(db)

    async def list(self, include_out_of_service: bool = True) -> List[DiningTable]:
        return await self.tables.list(include_out_of_service)

    async def get(self, table_id: UUID) -> DiningTable:
        table = await self.tables.get(table_id)
        if table is None:
            raise NotFoundError("Table", table_id)
        return table

    async def create(self, data: TableCreate) -> DiningTable:
        if await self.tables.get_by_number(data.number) is not None:
            raise ConflictError(f"Table {data.number} already exists", {"table_number": data.number})
        if data.max_capacity is not None and data.max_capacity < data.capacity:
            raise BookingValidationError("max_capacity must not be below capacity")

        table = await self.tables.create(**data.model_dump())
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Table {data.number} already exists", {"table_number": data.number})

        logger.info("Table created", table_number=table.number, capacity=table.capacity)
        return table

    async def update_status(self, table_id: UUID, data: TableStatusUpdate) -> DiningTable:
        """Take a table out of service or put it back"""
        table = await self.get(table_id)
        if data.status not in MANUAL_STATUSES:
            raise BookingValidationError(
                f"Status {data.status.value} is set by reservations, not by hand",
                {"status": data.status.value},
            )

        if table.status == TableStatus.OCCUPIED and table.current_reservation_id is not None:
            holder = await self.reservations.get(table.current_reservation_id)
            if holder is not None and holder.is_active:
                raise ConflictError(
                    f"Table {table.number} is occupied by an active reservation",
                    {"table_number": table.number, "reservation_id": str(holder.id)},
                )

        keep_reference = None if data.status == TableStatus.AVAILABLE else table.current_reservation_id
        self.tables.set_status(table, data.status, keep_reference)
        if data.notes is not None:
            table.notes = data.notes

        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            raise ConflictError("The table was changed by another request, please retry")
        return table

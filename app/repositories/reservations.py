"""Reservation store: read/write access to reservation records"""

from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reservation import Reservation, ReservationStatus, ACTIVE_STATUSES

_ACTIVE = list(ACTIVE_STATUSES)


class ReservationStore:
    """Queries over reservations by id, code, date, table and customer"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, reservation_id: UUID) -> Optional[Reservation]:
        return await self.db.get(Reservation, reservation_id)

    async def get_by_confirmation_code(self, code: str) -> Optional[Reservation]:
        result = await self.db.execute(
            select(Reservation).where(Reservation.confirmation_code == code.strip().upper())
        )
        return result.scalars().first()

    async def code_exists(self, code: str) -> bool:
        result = await self.db.execute(
            select(func.count(Reservation.id)).where(Reservation.confirmation_code == code)
        )
        return result.scalar() > 0

    async def list_by_date(
        self,
        day: date,
        table_id: Optional[UUID] = None,
        active_only: bool = False,
    ) -> List[Reservation]:
        query = select(Reservation).where(Reservation.reservation_date == day)
        if table_id is not None:
            query = query.where(Reservation.table_id == table_id)
        if active_only:
            query = query.where(Reservation.status.in_(_ACTIVE))
        query = query.order_by(Reservation.reservation_time, Reservation.created_at)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_between(
        self,
        start: date,
        end: date,
        active_only: bool = False,
    ) -> List[Reservation]:
        """Reservations with start <= date <= end"""
        query = select(Reservation).where(Reservation.reservation_date.between(start, end))
        if active_only:
            query = query.where(Reservation.status.in_(_ACTIVE))
        query = query.order_by(Reservation.reservation_date, Reservation.reservation_time)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_by_customer(
        self,
        customer_id: Optional[UUID] = None,
        phone: Optional[str] = None,
        active_only: bool = False,
        from_date: Optional[date] = None,
    ) -> List[Reservation]:
        """Reservations matching the customer id or the phone number"""
        clauses = []
        if customer_id is not None:
            clauses.append(Reservation.customer_id == customer_id)
        if phone:
            clauses.append(Reservation.customer_phone == phone)
        if not clauses:
            return []

        query = select(Reservation).where(or_(*clauses))
        if active_only:
            query = query.where(Reservation.status.in_(_ACTIVE))
        if from_date is not None:
            query = query.where(Reservation.reservation_date >= from_date)
        query = query.order_by(Reservation.reservation_date, Reservation.reservation_time)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_active_on_or_before(self, day: date) -> List[Reservation]:
        """Non-terminal reservations that could have elapsed by `day`"""
        result = await self.db.execute(
            select(Reservation).where(
                Reservation.status.in_(_ACTIVE),
                Reservation.reservation_date <= day,
            )
        )
        return list(result.scalars().all())

    async def list(
        self,
        status: Optional[ReservationStatus] = None,
        day: Optional[date] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        table_id: Optional[UUID] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[Reservation], int]:
        """Filtered, paginated listing; returns (items, total)"""
        query = select(Reservation)
        count_query = select(func.count(Reservation.id))

        filters = []
        if status:
            filters.append(Reservation.status == status)
        if day:
            filters.append(Reservation.reservation_date == day)
        if from_date:
            filters.append(Reservation.reservation_date >= from_date)
        if to_date:
            filters.append(Reservation.reservation_date <= to_date)
        if table_id:
            filters.append(Reservation.table_id == table_id)

        if filters:
            query = query.where(*filters)
            count_query = count_query.where(*filters)

        total_result = await self.db.execute(count_query)
        total = total_result.scalar()

        offset = (page - 1) * page_size
        query = (
            query.order_by(Reservation.reservation_date.desc(), Reservation.reservation_time.desc())
            .offset(offset)
            .limit(page_size)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    def put(self, reservation: Reservation) -> Reservation:
        self.db.add(reservation)
        return reservation

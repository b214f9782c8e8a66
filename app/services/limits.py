"""Per-customer booking limits, enforced before any table is allocated"""

from datetime import date, time
from typing import List, Optional
from uuid import UUID

import structlog

from app.config import settings
from app.core.clock import SiteClock, format_time
from app.core.errors import ConflictError, LimitExceededError
from app.models.reservation import Reservation
from app.repositories.reservations import ReservationStore

logger = structlog.get_logger()


class BookingLimitGuard:
    """Caps how many live bookings one customer may hold"""

    def __init__(
        self,
        reservations: ReservationStore,
        clock: SiteClock,
        max_active: Optional[int] = None,
        max_per_day: Optional[int] = None,
    ):
        self.reservations = reservations
        self.clock = clock
        self.max_active = max_active if max_active is not None else settings.max_active_reservations_per_customer
        self.max_per_day = max_per_day if max_per_day is not None else settings.max_reservations_per_customer_per_day

    async def active_reservations(
        self,
        customer_id: Optional[UUID],
        phone: Optional[str],
        exclude_reservation_id: Optional[UUID] = None,
    ) -> List[Reservation]:
        """Non-terminal reservations of the customer that have not ended yet"""
        found = await self.reservations.list_by_customer(
            customer_id=customer_id,
            phone=phone,
            active_only=True,
            from_date=self.clock.today(),
        )
        return [
            r for r in found
            if r.id != exclude_reservation_id
            and not self.clock.has_ended(r.reservation_date, r.reservation_time, r.duration_minutes)
        ]

    async def check(
        self,
        customer_id: Optional[UUID],
        phone: Optional[str],
        day: date,
        start: time,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> None:
        active = await self.active_reservations(customer_id, phone, exclude_reservation_id)
        log = logger.bind(
            customer_id=str(customer_id) if customer_id else None,
            date=day.isoformat(),
            active=len(active),
        )

        if len(active) >= self.max_active:
            log.info("Booking rejected", rule="max_active")
            raise LimitExceededError(
                f"Customer already has {len(active)} active reservations (limit {self.max_active})",
                rule="max_active",
                details={"limit": self.max_active},
            )

        same_day = [r for r in active if r.reservation_date == day]
        if len(same_day) >= self.max_per_day:
            log.info("Booking rejected", rule="same_day")
            raise LimitExceededError(
                f"Customer already has a reservation on {day.isoformat()}",
                rule="same_day",
                details={"limit": self.max_per_day},
            )

        for r in active:
            if r.reservation_date == day and r.reservation_time == start:
                log.info("Booking rejected", rule="duplicate")
                raise ConflictError(
                    f"A reservation already exists on {day.isoformat()} at {format_time(start)}",
                    {"rule": "duplicate", "confirmation_code": r.confirmation_code},
                )

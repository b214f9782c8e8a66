"""
Reservation lifecycle: create, reschedule, confirm, seat, complete, cancel,
no-show.

Every operation validates and allocates first, then mutates the reservation
and its table(s) in the session and commits once. A business-rule failure is
raised before anything is written. Notifications and customer statistics are
fired after the commit and never fail the operation.
"""

import secrets
import string
import uuid
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
import structlog

from app.config import settings
from app.core.clock import SiteClock, format_time
from app.core.errors import (
    BookingValidationError,
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
)
from app.models.customer import Customer
from app.models.reservation import (
    Reservation,
    ReservationStatus,
    ACTIVE_STATUSES,
)
from app.models.table import DiningTable, TableStatus
from app.repositories.reservations import ReservationStore
from app.repositories.tables import TableDirectory
from app.schemas.reservation import ReservationCreate, ReservationUpdate
from app.services.allocator import AllocationRequest, TableAllocator
from app.services.conflicts import ConflictEvaluator, table_rejection
from app.services.customers import BaseCustomerStatsUpdater, CeleryCustomerStatsUpdater
from app.services.limits import BookingLimitGuard
from app.services.notifications import BaseNotificationScheduler, CeleryNotificationScheduler
from app.services.sweeper import ExpirationSweeper
from app.services.validation import ScheduleRules

logger = structlog.get_logger()

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6

# Fields whose change re-runs table allocation
SCHEDULE_FIELDS = ("reservation_date", "reservation_time", "duration_minutes", "party_size", "table_id", "table_number")

# Which statuses each action may start from
ALLOWED_FROM = {
    "confirm": {ReservationStatus.PENDING},
    "seat": {ReservationStatus.PENDING, ReservationStatus.CONFIRMED},
    "complete": set(ACTIVE_STATUSES),
    "cancel": set(ACTIVE_STATUSES),
    "no_show": {ReservationStatus.PENDING, ReservationStatus.CONFIRMED},
    "reschedule": set(ACTIVE_STATUSES),
}


def generate_confirmation_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


class ReservationService:
    """State machine over reservations and the tables they hold"""

    def __init__(
        self,
        db: AsyncSession,
        clock: Optional[SiteClock] = None,
        notifier: Optional[BaseNotificationScheduler] = None,
        stats: Optional[BaseCustomerStatsUpdater] = None,
        auto_confirm: Optional[bool] = None,
    ):
        self.db = db
        self.clock = clock or SiteClock()
        self.tables = TableDirectory(db)
        self.reservations = ReservationStore(db)
        self.evaluator = ConflictEvaluator(self.reservations, self.clock)
        self.allocator = TableAllocator(self.tables, self.evaluator)
        self.limits = BookingLimitGuard(self.reservations, self.clock)
        self.sweeper = ExpirationSweeper(db, self.reservations, self.tables, self.clock)
        self.rules = ScheduleRules(self.clock)
        self.notifier = notifier or CeleryNotificationScheduler(self.clock)
        self.stats = stats or CeleryCustomerStatsUpdater()
        self.auto_confirm = settings.auto_confirm_reservations if auto_confirm is None else auto_confirm

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, reservation_id: UUID) -> Reservation:
        reservation = await self.reservations.get(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation", reservation_id)
        return reservation

    async def get_by_code(self, code: str) -> Reservation:
        reservation = await self.reservations.get_by_confirmation_code(code)
        if reservation is None:
            raise NotFoundError("Reservation with code", code.strip().upper())
        return reservation

    async def list_reservations(
        self,
        status: Optional[ReservationStatus] = None,
        day: Optional[date] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        table_id: Optional[UUID] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[Reservation], int]:
        return await self.reservations.list(
            status=status,
            day=day,
            from_date=from_date,
            to_date=to_date,
            table_id=table_id,
            page=page,
            page_size=page_size,
        )

    async def list_today(self) -> List[Reservation]:
        await self.sweeper.sweep()
        return await self.reservations.list_by_date(self.clock.today())

    async def list_upcoming(self, days: int = 7) -> List[Reservation]:
        await self.sweeper.sweep()
        today = self.clock.today()
        return await self.reservations.list_between(today, today + timedelta(days=days), active_only=True)

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------

    async def create(self, data: ReservationCreate) -> Reservation:
        await self.sweeper.sweep()

        name, phone, email = await self._resolve_customer(data)
        self.rules.check_booking(
            data.reservation_date, data.reservation_time, data.duration_minutes, data.party_size
        )
        await self.limits.check(data.customer_id, phone, data.reservation_date, data.reservation_time)

        table = await self.allocator.allocate(
            AllocationRequest(
                day=data.reservation_date,
                start=data.reservation_time,
                duration_minutes=data.duration_minutes,
                party_size=data.party_size,
                table_id=data.table_id,
                table_number=data.table_number,
                preferred_area=data.preferred_seating_area,
            )
        )
        code = await self._new_confirmation_code()
        author = data.created_by or "system"

        reservation = Reservation(
            id=uuid.uuid4(),
            confirmation_code=code,
            customer_id=data.customer_id,
            customer_name=name,
            customer_phone=phone,
            customer_email=email,
            table_id=table.id,
            table_number=table.number,
            reservation_date=data.reservation_date,
            reservation_time=data.reservation_time,
            duration_minutes=data.duration_minutes,
            party_size=data.party_size,
            preferred_seating_area=data.preferred_seating_area,
            status=ReservationStatus.CONFIRMED if self.auto_confirm else ReservationStatus.PENDING,
            source=data.source,
            priority=data.priority,
            occasion=data.occasion,
            special_requests=list(data.special_requests),
            allergies=list(data.allergies),
            dietary_restrictions=list(data.dietary_restrictions),
            tags=[],
            estimated_spend_cents=data.estimated_spend_cents,
            actual_spend_cents=0,
            notes=data.notes,
            internal_notes=[],
            reminders_sent=[],
            created_by=author,
            updated_by=author,
        )
        self.reservations.put(reservation)
        self.tables.set_status(table, TableStatus.RESERVED, reservation.id)
        await self._commit()

        logger.info(
            "Reservation created",
            reservation_id=str(reservation.id),
            confirmation_code=code,
            table_number=table.number,
            date=reservation.reservation_date.isoformat(),
            time=format_time(reservation.reservation_time),
            party_size=reservation.party_size,
        )

        if reservation.status == ReservationStatus.CONFIRMED:
            self.notifier.schedule_confirmation(reservation)
        self._schedule_reminders(reservation)
        return reservation

    async def update(self, reservation_id: UUID, data: ReservationUpdate) -> Reservation:
        reservation = await self.get(reservation_id)
        changes = data.model_dump(exclude_unset=True)

        if self._schedule_changed(reservation, changes):
            await self._reschedule(reservation, changes)

        for field, value in changes.items():
            if field in SCHEDULE_FIELDS or field == "updated_by":
                continue
            setattr(reservation, field, value)
        reservation.updated_by = changes.get("updated_by") or "system"

        await self._commit()
        logger.info("Reservation updated", reservation_id=str(reservation.id), fields=sorted(changes))
        return reservation

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def confirm(self, reservation_id: UUID) -> Reservation:
        await self.sweeper.sweep()
        reservation = await self.get(reservation_id)
        self._require(reservation, "confirm")

        reservation.status = ReservationStatus.CONFIRMED
        reservation.updated_by = "system"
        await self._commit()

        self._log_transition(reservation, "confirm")
        self.notifier.schedule_confirmation(reservation)
        return reservation

    async def seat(
        self,
        reservation_id: UUID,
        table_id: Optional[UUID] = None,
        table_number: Optional[int] = None,
    ) -> Reservation:
        await self.sweeper.sweep()
        reservation = await self.get(reservation_id)
        self._require(reservation, "seat")

        if table_id is not None or table_number is not None:
            target = await self.allocator.find_table(table_id, table_number)
        elif reservation.table_id is not None:
            target = await self.allocator.find_table(reservation.table_id)
        else:
            raise BookingValidationError("A table is required to seat this reservation")

        await self._check_table_for(reservation, target)

        previous_id = reservation.table_id
        if previous_id is not None and previous_id != target.id:
            await self._release_table(reservation, previous_id)

        self.tables.set_status(target, TableStatus.OCCUPIED, reservation.id)
        reservation.table_id = target.id
        reservation.table_number = target.number
        reservation.status = ReservationStatus.SEATED
        reservation.seated_at = self.clock.now()
        reservation.updated_by = "system"
        await self._commit()

        self._log_transition(reservation, "seat", table_number=target.number)
        return reservation

    async def complete(self, reservation_id: UUID, actual_spend_cents: Optional[int] = None) -> Reservation:
        await self.sweeper.sweep()
        reservation = await self.get(reservation_id)
        self._require(reservation, "complete")

        reservation.status = ReservationStatus.COMPLETED
        reservation.completed_at = self.clock.now()
        reservation.actual_spend_cents = actual_spend_cents or 0
        reservation.updated_by = "system"
        await self._release_table(reservation)
        await self._commit()

        self._log_transition(reservation, "complete", actual_spend_cents=reservation.actual_spend_cents)
        self.stats.record_completed_visit(reservation.customer_id, reservation.actual_spend_cents)
        self.notifier.schedule_follow_up(reservation)
        return reservation

    async def cancel(self, reservation_id: UUID, reason: Optional[str] = None) -> Reservation:
        await self.sweeper.sweep()
        reservation = await self.get(reservation_id)
        self._require(reservation, "cancel")

        reservation.status = ReservationStatus.CANCELLED
        reservation.cancelled_at = self.clock.now()
        reservation.cancellation_reason = reason
        reservation.updated_by = "system"
        await self._release_table(reservation)
        await self._commit()

        self._log_transition(reservation, "cancel", reason=reason)
        self.notifier.schedule_cancellation(reservation)
        return reservation

    async def mark_no_show(self, reservation_id: UUID) -> Reservation:
        await self.sweeper.sweep()
        reservation = await self.get(reservation_id)
        self._require(reservation, "no_show")

        reservation.status = ReservationStatus.NO_SHOW
        reservation.no_show_at = self.clock.now()
        reservation.updated_by = "system"
        await self._release_table(reservation)
        await self._commit()

        self._log_transition(reservation, "no_show")
        return reservation

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resolve_customer(self, data: ReservationCreate) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """Snapshot (name, phone, email) for the booking"""
        name, phone, email = data.customer_name, data.customer_phone, data.customer_email
        if data.customer_id is not None:
            customer = await self.db.get(Customer, data.customer_id)
            if customer is None:
                raise NotFoundError("Customer", data.customer_id)
            name = name or customer.name
            phone = phone or customer.phone
            email = email or customer.email
        elif not (name and phone):
            raise BookingValidationError("Either customer_id or customer_name and customer_phone are required")
        return name, phone, email

    async def _new_confirmation_code(self) -> str:
        for _ in range(settings.confirmation_code_attempts):
            code = generate_confirmation_code()
            if not await self.reservations.code_exists(code):
                return code
        raise ConflictError("Could not generate a unique confirmation code, please retry")

    def _schedule_changed(self, reservation: Reservation, changes: Dict[str, Any]) -> bool:
        for field in SCHEDULE_FIELDS:
            if field not in changes or changes[field] is None:
                continue
            if field == "table_number" and changes[field] == reservation.table_number:
                continue
            if getattr(reservation, field, None) != changes[field]:
                return True
        return False

    async def _reschedule(self, reservation: Reservation, changes: Dict[str, Any]) -> None:
        self._require(reservation, "reschedule")
        await self.sweeper.sweep()
        self._require(reservation, "reschedule")

        day = changes.get("reservation_date") or reservation.reservation_date
        start = changes.get("reservation_time") or reservation.reservation_time
        duration = changes.get("duration_minutes") or reservation.duration_minutes
        party_size = changes.get("party_size") or reservation.party_size
        preferred_area = changes.get("preferred_seating_area", reservation.preferred_seating_area)

        self.rules.check_booking(day, start, duration, party_size)
        if day != reservation.reservation_date or start != reservation.reservation_time:
            await self.limits.check(
                reservation.customer_id,
                reservation.customer_phone,
                day,
                start,
                exclude_reservation_id=reservation.id,
            )

        table = await self.allocator.allocate(
            AllocationRequest(
                day=day,
                start=start,
                duration_minutes=duration,
                party_size=party_size,
                table_id=changes.get("table_id"),
                table_number=changes.get("table_number"),
                preferred_area=preferred_area,
            ),
            exclude_reservation_id=reservation.id,
        )

        if reservation.table_id is not None and reservation.table_id != table.id:
            await self._release_table(reservation)
        held_status = TableStatus.OCCUPIED if reservation.status == ReservationStatus.SEATED else TableStatus.RESERVED
        self.tables.set_status(table, held_status, reservation.id)

        moved_in_time = day != reservation.reservation_date or start != reservation.reservation_time
        reservation.table_id = table.id
        reservation.table_number = table.number
        reservation.reservation_date = day
        reservation.reservation_time = start
        reservation.duration_minutes = duration
        reservation.party_size = party_size

        logger.info(
            "Reservation rescheduled",
            reservation_id=str(reservation.id),
            table_number=table.number,
            date=day.isoformat(),
            time=format_time(start),
        )
        if moved_in_time:
            # Reminders already sent were for the old start time
            reservation.reminders_sent = [
                kind for kind in (reservation.reminders_sent or []) if not kind.startswith("reminder_")
            ]
            self._schedule_reminders(reservation)

    async def _check_table_for(self, reservation: Reservation, table: DiningTable) -> None:
        """Seating check: the reservation's own interval must be free on `table`"""
        if not table.fits(reservation.party_size):
            raise BookingValidationError(
                f"Table {table.number} seats {table.capacity}, party of {reservation.party_size}",
                {"table_number": table.number, "capacity": table.capacity},
            )
        reason = table_rejection(table, reservation.party_size, reservation.id)
        if reason:
            raise ConflictError(reason, {"table_number": table.number, "status": table.status.value})

        schedule = await self.evaluator.schedule_for(reservation.reservation_date)
        conflict = schedule.find_conflict(
            table, reservation.reservation_time, reservation.duration_minutes, reservation.id
        )
        if conflict is not None:
            raise ConflictError(
                f"Table {table.number} is booked at {format_time(conflict.reservation_time)}",
                {"table_number": table.number, "conflicting_time": format_time(conflict.reservation_time)},
            )

    async def _release_table(self, reservation: Reservation, table_id: Optional[UUID] = None) -> None:
        table_id = table_id or reservation.table_id
        if table_id is None:
            return
        table = await self.tables.get(table_id)
        if table is not None:
            self.tables.release(table, reservation.id)

    def _require(self, reservation: Reservation, action: str) -> None:
        if reservation.status not in ALLOWED_FROM[action]:
            raise InvalidStateTransitionError(reservation.status.value, action)

    def _schedule_reminders(self, reservation: Reservation, offsets: Iterable[str] = ("24h", "2h")) -> None:
        for offset in offsets:
            self.notifier.schedule_reminder(reservation, offset)

    def _log_transition(self, reservation: Reservation, action: str, **extra) -> None:
        logger.info(
            "Reservation transition",
            action=action,
            reservation_id=str(reservation.id),
            status=reservation.status.value,
            **extra,
        )

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            raise ConflictError("The table was changed by another request, please retry")
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("Reservation write rejected", error=str(e.orig))
            raise ConflictError("The reservation conflicts with an existing record")

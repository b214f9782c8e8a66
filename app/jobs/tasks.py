"""Background job tasks"""

from datetime import datetime
from typing import Optional
from uuid import UUID
import asyncio
import structlog

from app.jobs.celery_app import celery_app
from app.config import settings
from app.core.clock import format_time
from app.models.reservation import Reservation

logger = structlog.get_logger()

REMINDER_TOLERANCE_SECONDS = 15 * 60


def run_async(coro):
    """Helper to run async functions in sync context"""
    async def _run():
        from app.database import engine

        try:
            return await coro
        finally:
            # Pooled connections are bound to this loop
            await engine.dispose()

    return asyncio.run(_run())


def build_message(kind: str, reservation: Reservation) -> Optional[str]:
    """SMS body for a notification kind, or None if the kind is unknown"""
    when = reservation.reservation_date.strftime("%A, %B %d") + " at " + format_time(reservation.reservation_time)
    name = settings.restaurant_name

    if kind == "confirmation":
        message = f"Your reservation at {name} is confirmed! "
        message += f"{reservation.party_size} guests on {when}. "
        message += f"Confirmation code: {reservation.confirmation_code}."
        return message
    if kind == "reminder_24h":
        return f"Reminder: see you tomorrow at {name}, {reservation.party_size} guests on {when}."
    if kind == "reminder_2h":
        message = f"Reminder: your table at {name} is ready in 2 hours "
        message += f"({format_time(reservation.reservation_time)}, {reservation.party_size} guests)."
        return message
    if kind == "cancellation":
        return f"Your reservation at {name} on {when} ({reservation.confirmation_code}) has been cancelled."
    if kind == "follow_up":
        return f"Thanks for dining at {name}! We hope to see you again soon."
    return None


def send_sms(to: Optional[str], body: str) -> bool:
    """Send one SMS through Twilio; failures are logged, not raised"""
    from twilio.rest import Client as TwilioClient

    if not to:
        return False
    try:
        client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
        client.messages.create(
            body=body,
            from_=settings.twilio_phone_number,
            to=to,
        )
        return True
    except Exception as e:
        logger.error("Failed to send SMS", to=to, error=str(e))
        return False


async def _notify(reservation_id: str, kind: str, require_active: bool = True) -> bool:
    from app.database import SessionLocal
    from app.core.clock import SiteClock
    from app.services.notifications import REMINDER_OFFSETS

    async with SessionLocal() as db:
        reservation = await db.get(Reservation, UUID(reservation_id))
        if reservation is None:
            logger.warning("Notification for unknown reservation", reservation_id=reservation_id, kind=kind)
            return False
        if require_active and not reservation.is_active:
            logger.info("Skipping notification", reservation_id=reservation_id, kind=kind, status=reservation.status.value)
            return False
        if kind in (reservation.reminders_sent or []):
            logger.info("Notification already sent", reservation_id=reservation_id, kind=kind)
            return False
        offset = REMINDER_OFFSETS.get(kind.replace("reminder_", ""))
        if offset is not None:
            due = reservation.starts_at - offset
            if abs((SiteClock().now() - due).total_seconds()) > REMINDER_TOLERANCE_SECONDS:
                # Rescheduled since this reminder was queued
                logger.info("Reminder no longer due", reservation_id=reservation_id, kind=kind)
                return False

        body = build_message(kind, reservation)
        if body is None or not send_sms(reservation.customer_phone, body):
            return False

        reservation.reminders_sent = list(reservation.reminders_sent or []) + [kind]
        await db.commit()
        logger.info("Sent reservation notification", reservation_id=reservation_id, kind=kind)
        return True


@celery_app.task(name="send_reservation_confirmation")
def send_reservation_confirmation(reservation_id: str):
    """Send the booking confirmation SMS"""
    return run_async(_notify(reservation_id, "confirmation"))


@celery_app.task(name="send_reservation_reminder")
def send_reservation_reminder(reservation_id: str, kind: str):
    """Send a 24h or 2h reminder, unless the booking was cancelled or moved"""
    return run_async(_notify(reservation_id, kind))


@celery_app.task(name="send_reservation_cancellation")
def send_reservation_cancellation(reservation_id: str):
    return run_async(_notify(reservation_id, "cancellation", require_active=False))


@celery_app.task(name="send_reservation_follow_up")
def send_reservation_follow_up(reservation_id: str):
    return run_async(_notify(reservation_id, "follow_up", require_active=False))


@celery_app.task(name="record_completed_visit")
def record_completed_visit(customer_id: str, spend_cents: int):
    """Fold a completed visit into the customer's aggregates"""
    logger.info("Recording completed visit", customer_id=customer_id)

    async def _record():
        from app.database import SessionLocal
        from app.models.customer import Customer
        from app.services.customers import apply_completed_visit

        async with SessionLocal() as db:
            customer = await db.get(Customer, UUID(customer_id))
            if customer is None:
                logger.warning("Unknown customer", customer_id=customer_id)
                return
            apply_completed_visit(customer, spend_cents, datetime.utcnow())
            await db.commit()
            logger.info("Customer stats updated", customer_id=customer_id, total_visits=customer.total_visits)

    run_async(_record())


@celery_app.task(name="expire_elapsed_reservations")
def expire_elapsed_reservations():
    """Complete reservations whose time window has passed"""

    async def _expire():
        from app.database import SessionLocal
        from app.core.clock import SiteClock
        from app.repositories.reservations import ReservationStore
        from app.repositories.tables import TableDirectory
        from app.services.sweeper import ExpirationSweeper

        async with SessionLocal() as db:
            sweeper = ExpirationSweeper(db, ReservationStore(db), TableDirectory(db), SiteClock())
            expired = await sweeper.sweep()
            return len(expired)

    return run_async(_expire())

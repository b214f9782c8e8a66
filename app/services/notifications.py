"""Notification scheduling hooks fired by reservation transitions"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Optional

import structlog

from app.config import settings
from app.core.clock import SiteClock
from app.models.reservation import Reservation

logger = structlog.get_logger()

REMINDER_OFFSETS = {
    "24h": timedelta(hours=24),
    "2h": timedelta(hours=2),
}


class BaseNotificationScheduler(ABC):
    """Fire-and-forget notification hooks.

    Failures are logged and swallowed; a broken broker must never fail the
    lifecycle operation that triggered the notification.
    """

    def __init__(self, clock: Optional[SiteClock] = None):
        self.clock = clock or SiteClock()

    @abstractmethod
    def _enqueue(self, kind: str, reservation: Reservation, countdown: float = 0) -> None:
        """Hand the notification to the delivery backend"""
        pass

    def _safe_enqueue(self, kind: str, reservation: Reservation, countdown: float = 0) -> bool:
        try:
            self._enqueue(kind, reservation, countdown)
            return True
        except Exception as e:
            logger.error(
                "Failed to schedule notification",
                kind=kind,
                reservation_id=str(reservation.id),
                error=str(e),
            )
            return False

    def schedule_confirmation(self, reservation: Reservation) -> bool:
        return self._safe_enqueue("confirmation", reservation)

    def schedule_reminder(self, reservation: Reservation, offset: str) -> bool:
        """Queue a reminder `offset` ("24h" or "2h") before the start time"""
        if offset not in REMINDER_OFFSETS:
            logger.warning("Unknown reminder offset", offset=offset)
            return False
        send_at = reservation.starts_at - REMINDER_OFFSETS[offset]
        countdown = (send_at - self.clock.now()).total_seconds()
        if countdown <= 0:
            return False
        return self._safe_enqueue(f"reminder_{offset}", reservation, countdown)

    def schedule_cancellation(self, reservation: Reservation) -> bool:
        return self._safe_enqueue("cancellation", reservation)

    def schedule_follow_up(self, reservation: Reservation) -> bool:
        countdown = timedelta(hours=settings.follow_up_delay_hours).total_seconds()
        return self._safe_enqueue("follow_up", reservation, countdown)


class CeleryNotificationScheduler(BaseNotificationScheduler):
    """Queues SMS notifications as Celery tasks"""

    def _enqueue(self, kind: str, reservation: Reservation, countdown: float = 0) -> None:
        from app.jobs import tasks

        task_by_kind = {
            "confirmation": tasks.send_reservation_confirmation,
            "reminder_24h": tasks.send_reservation_reminder,
            "reminder_2h": tasks.send_reservation_reminder,
            "cancellation": tasks.send_reservation_cancellation,
            "follow_up": tasks.send_reservation_follow_up,
        }
        task = task_by_kind[kind]
        args = [str(reservation.id)]
        if task is tasks.send_reservation_reminder:
            args.append(kind)

        task.apply_async(args=args, countdown=max(countdown, 0))
        logger.info(
            "Notification scheduled",
            kind=kind,
            reservation_id=str(reservation.id),
            countdown=int(countdown),
        )


def get_notification_scheduler() -> BaseNotificationScheduler:
    """FastAPI dependency for the notification hooks"""
    return CeleryNotificationScheduler()

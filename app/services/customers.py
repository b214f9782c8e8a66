"""Customer visit statistics"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog

from app.models.customer import Customer

logger = structlog.get_logger()


def apply_completed_visit(customer: Customer, spend_cents: int, visited_at: Optional[datetime] = None) -> Customer:
    """Fold one completed visit into the customer's aggregates"""
    customer.total_visits = (customer.total_visits or 0) + 1
    customer.total_spent_cents = (customer.total_spent_cents or 0) + (spend_cents or 0)
    customer.last_visit_at = visited_at or datetime.utcnow()
    return customer


class BaseCustomerStatsUpdater(ABC):
    """Best-effort statistics hook; never raises to the caller"""

    @abstractmethod
    def _record(self, customer_id: UUID, spend_cents: int) -> None:
        pass

    def record_completed_visit(self, customer_id: Optional[UUID], spend_cents: int) -> bool:
        if customer_id is None:
            return False
        try:
            self._record(customer_id, spend_cents)
            return True
        except Exception as e:
            logger.error(
                "Failed to record customer visit",
                customer_id=str(customer_id),
                error=str(e),
            )
            return False


class CeleryCustomerStatsUpdater(BaseCustomerStatsUpdater):
    """Updates the aggregates in a background task"""

    def _record(self, customer_id: UUID, spend_cents: int) -> None:
        from app.jobs.tasks import record_completed_visit

        record_completed_visit.delay(str(customer_id), spend_cents)


def get_stats_updater() -> BaseCustomerStatsUpdater:
    """FastAPI dependency for the statistics hook"""
    return CeleryCustomerStatsUpdater()

"""
Site clock and calendar helpers.

All booking arithmetic happens on naive local wall-clock datetimes for the
site's timezone; nothing is converted between zones after `now()`.
"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from app.config import settings

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def combine(day: date, start: time) -> datetime:
    """Start of a reservation as a local datetime"""
    return datetime.combine(day, start)


def interval_end(day: date, start: time, duration_minutes: int) -> datetime:
    """End (exclusive) of the derived interval"""
    return combine(day, start) + timedelta(minutes=duration_minutes)


def parse_date(value: str) -> date:
    return datetime.strptime(value, DATE_FORMAT).date()


def parse_time(value: str) -> time:
    return datetime.strptime(value, TIME_FORMAT).time()


def format_time(value: time) -> str:
    return value.strftime(TIME_FORMAT)


def operating_slots(opening: time, closing: time, step_minutes: int) -> List[time]:
    """Candidate start times in [opening, closing) at a fixed granularity"""
    slots = []
    cursor = datetime.combine(date.min, opening)
    end = datetime.combine(date.min, closing)
    while cursor < end:
        slots.append(cursor.time())
        cursor += timedelta(minutes=step_minutes)
    return slots


class SiteClock:
    """Timezone-aware "now" for the site, exposed as local wall-clock time"""

    def __init__(self, timezone: Optional[str] = None, window_days: Optional[int] = None):
        self.tz = ZoneInfo(timezone or settings.site_timezone)
        self.window_days = window_days if window_days is not None else settings.booking_window_days

    def now(self) -> datetime:
        return datetime.now(self.tz).replace(tzinfo=None)

    def today(self) -> date:
        return self.now().date()

    def valid_booking_range(self) -> Tuple[date, date]:
        """Inclusive [today, today + window] range of bookable dates"""
        today = self.today()
        return today, today + timedelta(days=self.window_days)

    def is_in_booking_window(self, day: date) -> bool:
        first, last = self.valid_booking_range()
        return first <= day <= last

    def has_ended(self, day: date, start: time, duration_minutes: int) -> bool:
        return self.now() > interval_end(day, start, duration_minutes)


def get_clock() -> SiteClock:
    """FastAPI dependency for the site clock"""
    return SiteClock()

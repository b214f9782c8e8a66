"""Range checks shared by booking and availability requests"""

from datetime import date, time
from typing import Optional

from app.config import settings
from app.core.clock import SiteClock, combine, format_time, parse_time
from app.core.errors import BookingValidationError


class ScheduleRules:
    """Bounds on party size, duration, date window and opening hours"""

    def __init__(self, clock: SiteClock, opening: Optional[str] = None, closing: Optional[str] = None):
        self.clock = clock
        self.opening = parse_time(opening or settings.opening_time)
        self.closing = parse_time(closing or settings.closing_time)

    def check_party_size(self, party_size: int) -> None:
        if not settings.min_party_size <= party_size <= settings.max_party_size:
            raise BookingValidationError(
                f"Party size must be between {settings.min_party_size} and {settings.max_party_size}",
                {"party_size": party_size},
            )

    def check_duration(self, duration_minutes: int) -> None:
        if not settings.min_duration_minutes <= duration_minutes <= settings.max_duration_minutes:
            raise BookingValidationError(
                f"Duration must be between {settings.min_duration_minutes} and "
                f"{settings.max_duration_minutes} minutes",
                {"duration_minutes": duration_minutes},
            )

    def check_date(self, day: date) -> None:
        first, last = self.clock.valid_booking_range()
        if not first <= day <= last:
            raise BookingValidationError(
                f"Date must be between {first.isoformat()} and {last.isoformat()}",
                {"date": day.isoformat()},
            )

    def check_time(self, start: time) -> None:
        if not self.opening <= start < self.closing:
            raise BookingValidationError(
                f"Time must be between {format_time(self.opening)} and {format_time(self.closing)}",
                {"time": format_time(start)},
            )

    def check_not_past(self, day: date, start: time) -> None:
        if combine(day, start) <= self.clock.now():
            raise BookingValidationError(
                "Reservation time has already passed",
                {"date": day.isoformat(), "time": format_time(start)},
            )

    def check_booking(self, day: date, start: time, duration_minutes: int, party_size: int) -> None:
        self.check_party_size(party_size)
        self.check_duration(duration_minutes)
        self.check_date(day)
        self.check_time(start)
        self.check_not_past(day, start)

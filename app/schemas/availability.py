"""Availability schemas"""

from datetime import date
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel


class SlotOption(BaseModel):
    """Bookable start time on one table"""
    time: str
    available_minutes: Optional[int]  # None when nothing follows later that day
    full_duration: bool  # False marks a squeeze-in slot shorter than requested


class TableSlots(BaseModel):
    """Slots offered on one table"""
    table_id: UUID
    table_number: int
    capacity: int
    seating_area: Optional[str]
    features: List[str] = []
    is_accessible: bool = False
    status: str = "available"
    slots: List[SlotOption] = []


class TimeSlotsResponse(BaseModel):
    """Per-table time slots for a date"""
    date: date
    party_size: int
    duration_minutes: int
    min_gap_minutes: int
    tables: List[TableSlots] = []


class AvailabilityCheckResponse(BaseModel):
    """Availability check response"""
    date: date
    time: str
    party_size: int
    duration_minutes: int
    available: bool
    table_number: Optional[int] = None
    reason: Optional[str] = None
    alternatives: List[str] = []


class CalendarDay(BaseModel):
    """Table counts for one date"""
    date: date
    total_tables: int
    reserved_tables: int
    available_tables: int
    reservations: int
    bookable: bool


class CalendarResponse(BaseModel):
    """Calendar view over a date range"""
    start: date
    end: date
    days: List[CalendarDay] = []

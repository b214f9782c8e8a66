"""Pydantic schemas for request/response validation"""

from app.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationResponse,
    ReservationListResponse,
    SeatRequest,
    CompleteRequest,
    CancelRequest,
)
from app.schemas.availability import (
    SlotOption,
    TableSlots,
    TimeSlotsResponse,
    AvailabilityCheckResponse,
    CalendarDay,
    CalendarResponse,
)
from app.schemas.table import (
    TableCreate,
    TableStatusUpdate,
    TableResponse,
)

__all__ = [
    "ReservationCreate",
    "ReservationUpdate",
    "ReservationResponse",
    "ReservationListResponse",
    "SeatRequest",
    "CompleteRequest",
    "CancelRequest",
    "SlotOption",
    "TableSlots",
    "TimeSlotsResponse",
    "AvailabilityCheckResponse",
    "CalendarDay",
    "CalendarResponse",
    "TableCreate",
    "TableStatusUpdate",
    "TableResponse",
]

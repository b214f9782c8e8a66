"""Reservation schemas"""

from datetime import date, datetime, time
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field, field_serializer

from app.config import settings
from app.models.reservation import ReservationStatus, ReservationSource, ReservationPriority


class ReservationCreate(BaseModel):
    """Create reservation request"""
    customer_id: Optional[UUID] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None

    reservation_date: date
    reservation_time: time
    duration_minutes: int = Field(
        default=settings.default_duration_minutes,
        ge=settings.min_duration_minutes,
        le=settings.max_duration_minutes,
    )
    party_size: int = Field(ge=settings.min_party_size, le=settings.max_party_size)

    table_id: Optional[UUID] = None
    table_number: Optional[int] = None
    preferred_seating_area: Optional[str] = None

    source: ReservationSource = ReservationSource.PHONE
    priority: ReservationPriority = ReservationPriority.NORMAL
    occasion: Optional[str] = None
    special_requests: List[str] = []
    allergies: List[str] = []
    dietary_restrictions: List[str] = []
    estimated_spend_cents: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    created_by: Optional[str] = None


class ReservationUpdate(BaseModel):
    """Update reservation request"""
    reservation_date: Optional[date] = None
    reservation_time: Optional[time] = None
    duration_minutes: Optional[int] = Field(
        default=None,
        ge=settings.min_duration_minutes,
        le=settings.max_duration_minutes,
    )
    party_size: Optional[int] = Field(default=None, ge=settings.min_party_size, le=settings.max_party_size)
    table_id: Optional[UUID] = None
    table_number: Optional[int] = None
    preferred_seating_area: Optional[str] = None

    priority: Optional[ReservationPriority] = None
    occasion: Optional[str] = None
    special_requests: Optional[List[str]] = None
    allergies: Optional[List[str]] = None
    dietary_restrictions: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    estimated_spend_cents: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    internal_notes: Optional[List[str]] = None
    updated_by: Optional[str] = None


class SeatRequest(BaseModel):
    """Seat a party, optionally at a different table"""
    table_id: Optional[UUID] = None
    table_number: Optional[int] = None


class CompleteRequest(BaseModel):
    """Close a visit"""
    actual_spend_cents: Optional[int] = Field(default=None, ge=0)


class CancelRequest(BaseModel):
    """Cancel a reservation"""
    reason: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response"""
    id: UUID
    confirmation_code: str
    customer_id: Optional[UUID]
    customer_name: Optional[str]
    customer_phone: Optional[str]
    customer_email: Optional[str]
    table_id: Optional[UUID]
    table_number: Optional[int]
    reservation_date: date
    reservation_time: time
    duration_minutes: int
    party_size: int
    preferred_seating_area: Optional[str]
    status: ReservationStatus
    source: Optional[ReservationSource]
    priority: Optional[ReservationPriority]
    occasion: Optional[str]
    special_requests: Optional[List[str]]
    allergies: Optional[List[str]]
    dietary_restrictions: Optional[List[str]]
    tags: Optional[List[str]]
    estimated_spend_cents: Optional[int]
    actual_spend_cents: Optional[int]
    notes: Optional[str]
    internal_notes: Optional[List[str]]
    cancellation_reason: Optional[str]
    seated_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    no_show_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @field_serializer("reservation_time")
    def serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")

    class Config:
        from_attributes = True


class ReservationListResponse(BaseModel):
    """Paginated reservation list"""
    items: List[ReservationResponse]
    total: int
    page: int
    page_size: int

"""Reservation management API endpoints"""

from datetime import date, time
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from app.api.deps import get_availability_service, get_reservation_service
from app.models.reservation import ReservationStatus
from app.schemas.availability import (
    AvailabilityCheckResponse,
    CalendarResponse,
    TimeSlotsResponse,
)
from app.schemas.reservation import (
    CancelRequest,
    CompleteRequest,
    ReservationCreate,
    ReservationListResponse,
    ReservationResponse,
    ReservationUpdate,
    SeatRequest,
)
from app.services.availability import AvailabilityService
from app.services.lifecycle import ReservationService

router = APIRouter()


@router.get("", response_model=ReservationListResponse)
async def list_reservations(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[ReservationStatus] = None,
    day: Optional[date] = Query(None, alias="date"),
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    table_id: Optional[UUID] = None,
    service: ReservationService = Depends(get_reservation_service),
):
    """List reservations with pagination"""
    items, total = await service.list_reservations(
        status=status,
        day=day,
        from_date=from_date,
        to_date=to_date,
        table_id=table_id,
        page=page,
        page_size=page_size,
    )
    return ReservationListResponse(items=items, total=total, page=page, page_size=page_size)


@router.post("", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    reservation_data: ReservationCreate,
    service: ReservationService = Depends(get_reservation_service),
):
    """Create a new reservation"""
    return await service.create(reservation_data)


@router.get("/today", response_model=List[ReservationResponse])
async def list_today(service: ReservationService = Depends(get_reservation_service)):
    """Today's reservations, by time"""
    return await service.list_today()


@router.get("/upcoming", response_model=List[ReservationResponse])
async def list_upcoming(
    days: int = Query(7, ge=1, le=60),
    service: ReservationService = Depends(get_reservation_service),
):
    """Active reservations over the next `days` days"""
    return await service.list_upcoming(days)


@router.get("/availability/check", response_model=AvailabilityCheckResponse)
async def check_availability(
    day: date = Query(..., alias="date"),
    start: time = Query(..., alias="time"),
    party_size: int = Query(..., ge=1),
    duration_minutes: Optional[int] = Query(None, ge=1),
    preferred_area: Optional[str] = None,
    table_number: Optional[int] = None,
    service: AvailabilityService = Depends(get_availability_service),
):
    """Check reservation availability"""
    return await service.check(
        day,
        start,
        party_size,
        duration_minutes=duration_minutes,
        preferred_area=preferred_area,
        table_number=table_number,
    )


@router.get("/availability/slots", response_model=TimeSlotsResponse)
async def time_slots(
    day: date = Query(..., alias="date"),
    party_size: int = Query(..., ge=1),
    duration_minutes: Optional[int] = Query(None, ge=1),
    preferred_area: Optional[str] = None,
    service: AvailabilityService = Depends(get_availability_service),
):
    """Bookable start times per table for a date"""
    return await service.time_slots(day, party_size, duration_minutes, preferred_area)


@router.get("/availability/calendar", response_model=CalendarResponse)
async def calendar(
    start: Optional[date] = None,
    days: Optional[int] = Query(None, ge=1, le=62),
    month: Optional[str] = None,
    service: AvailabilityService = Depends(get_availability_service),
):
    """Table counts per day"""
    return await service.calendar(start=start, days=days, month=month)


@router.get("/code/{code}", response_model=ReservationResponse)
async def get_by_confirmation_code(
    code: str,
    service: ReservationService = Depends(get_reservation_service),
):
    """Look up a reservation by its confirmation code"""
    return await service.get_by_code(code)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
):
    """Get reservation details"""
    return await service.get(reservation_id)


@router.patch("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: UUID,
    reservation_data: ReservationUpdate,
    service: ReservationService = Depends(get_reservation_service),
):
    """Update reservation details or reschedule it"""
    return await service.update(reservation_id, reservation_data)


@router.post("/{reservation_id}/confirm", response_model=ReservationResponse)
async def confirm_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
):
    return await service.confirm(reservation_id)


@router.post("/{reservation_id}/seat", response_model=ReservationResponse)
async def seat_reservation(
    reservation_id: UUID,
    request: Optional[SeatRequest] = None,
    service: ReservationService = Depends(get_reservation_service),
):
    """Seat the party, optionally moving it to another table"""
    request = request or SeatRequest()
    return await service.seat(reservation_id, table_id=request.table_id, table_number=request.table_number)


@router.post("/{reservation_id}/complete", response_model=ReservationResponse)
async def complete_reservation(
    reservation_id: UUID,
    request: Optional[CompleteRequest] = None,
    service: ReservationService = Depends(get_reservation_service),
):
    request = request or CompleteRequest()
    return await service.complete(reservation_id, request.actual_spend_cents)


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: UUID,
    request: Optional[CancelRequest] = None,
    service: ReservationService = Depends(get_reservation_service),
):
    request = request or CancelRequest()
    return await service.cancel(reservation_id, request.reason)


@router.post("/{reservation_id}/no-show", response_model=ReservationResponse)
async def mark_no_show(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
):
    return await service.mark_no_show(reservation_id)


@router.delete("/{reservation_id}", status_code=204)
async def delete_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
):
    """Cancel a reservation on behalf of the restaurant"""
    await service.cancel(reservation_id, "Deleted by admin")
    return Response(status_code=204)

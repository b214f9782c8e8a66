"""Reservation model"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Date, Time, DateTime, Enum, ForeignKey, JSON, Text, Uuid, Index,
)
from sqlalchemy.orm import relationship

from app.database import Base
from app.core.clock import combine, interval_end


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SEATED = "seated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


ACTIVE_STATUSES = frozenset({
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
    ReservationStatus.SEATED,
})
TERMINAL_STATUSES = frozenset({
    ReservationStatus.COMPLETED,
    ReservationStatus.CANCELLED,
    ReservationStatus.NO_SHOW,
})


class ReservationSource(str, enum.Enum):
    PHONE = "phone"
    WEBSITE = "website"
    WALK_IN = "walk_in"
    THIRD_PARTY = "third_party"
    MOBILE_APP = "mobile_app"


class ReservationPriority(str, enum.Enum):
    NORMAL = "normal"
    HIGH = "high"
    VIP = "vip"


class Reservation(Base):
    """Table reservations"""
    __tablename__ = "reservations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    confirmation_code = Column(String(6), unique=True, nullable=False)

    # Customer linkage: internal id and/or a snapshot taken at booking time
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customers.id"))
    customer_name = Column(String(255))
    customer_phone = Column(String(20), index=True)
    customer_email = Column(String(255))

    # Table assignment (number denormalized for display)
    table_id = Column(Uuid(as_uuid=True), ForeignKey("dining_tables.id"))
    table_number = Column(Integer)

    # Schedule
    reservation_date = Column(Date, nullable=False)
    reservation_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=120)
    party_size = Column(Integer, nullable=False)
    preferred_seating_area = Column(String(100))

    # Status
    status = Column(Enum(ReservationStatus), nullable=False, default=ReservationStatus.CONFIRMED)
    source = Column(Enum(ReservationSource), default=ReservationSource.PHONE)
    priority = Column(Enum(ReservationPriority), default=ReservationPriority.NORMAL)

    # Guest details
    occasion = Column(String(100))  # birthday, anniversary, business
    special_requests = Column(JSON, default=list)
    allergies = Column(JSON, default=list)
    dietary_restrictions = Column(JSON, default=list)
    tags = Column(JSON, default=list)

    # Spend
    estimated_spend_cents = Column(Integer)
    actual_spend_cents = Column(Integer)

    # Notes
    notes = Column(Text)
    internal_notes = Column(JSON, default=list)
    cancellation_reason = Column(Text)

    # Notifications already queued ("confirmation", "reminder_24h", ...)
    reminders_sent = Column(JSON, default=list)

    # Lifecycle timestamps
    seated_at = Column(DateTime)
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    no_show_at = Column(DateTime)

    # Metadata
    created_by = Column(String(100), default="system")
    updated_by = Column(String(100), default="system")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = relationship("Customer", back_populates="reservations")

    __table_args__ = (
        Index("ix_reservations_date_status", "reservation_date", "status"),
        Index("ix_reservations_table_date", "table_id", "reservation_date"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def starts_at(self) -> datetime:
        return combine(self.reservation_date, self.reservation_time)

    @property
    def ends_at(self) -> datetime:
        return interval_end(self.reservation_date, self.reservation_time, self.duration_minutes)

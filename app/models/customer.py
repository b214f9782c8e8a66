"""Customer model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Uuid
from sqlalchemy.orm import relationship

from app.database import Base


class Customer(Base):
    """Known guests with aggregate visit statistics"""
    __tablename__ = "customers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), unique=True, nullable=False)
    email = Column(String(255))

    # Aggregates, updated when a visit completes
    total_visits = Column(Integer, nullable=False, default=0)
    total_spent_cents = Column(Integer, nullable=False, default=0)
    last_visit_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    reservations = relationship("Reservation", back_populates="customer")

    @property
    def average_spent_cents(self) -> int:
        if not self.total_visits:
            return 0
        return self.total_spent_cents // self.total_visits

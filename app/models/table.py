"""Dining table model"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Enum, JSON, Text, Uuid

from app.database import Base


class TableStatus(str, enum.Enum):
    """Operating status of a table"""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    MAINTENANCE = "maintenance"
    BLOCKED = "blocked"


OUT_OF_SERVICE_STATUSES = frozenset({TableStatus.MAINTENANCE, TableStatus.BLOCKED})


class DiningTable(Base):
    """A bookable table in the dining room"""
    __tablename__ = "dining_tables"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    number = Column(Integer, unique=True, nullable=False)

    # Seating
    capacity = Column(Integer, nullable=False)
    min_capacity = Column(Integer, default=1)
    max_capacity = Column(Integer)
    seating_area = Column(String(100))  # main, patio, terrace, bar
    features = Column(JSON, default=list)  # ["window", "booth"]
    is_accessible = Column(Boolean, default=False)

    # Operating state
    status = Column(Enum(TableStatus), nullable=False, default=TableStatus.AVAILABLE)
    current_reservation_id = Column(Uuid(as_uuid=True))  # lookup only, not a foreign key
    notes = Column(Text)

    # Optimistic concurrency token
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_out_of_service(self) -> bool:
        return self.status in OUT_OF_SERVICE_STATUSES

    def fits(self, party_size: int) -> bool:
        return self.capacity >= party_size

"""Dining table schemas"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field

from app.models.table import TableStatus


class TableCreate(BaseModel):
    """Register a table"""
    number: int = Field(ge=1)
    capacity: int = Field(ge=1)
    min_capacity: int = Field(default=1, ge=1)
    max_capacity: Optional[int] = Field(default=None, ge=1)
    seating_area: Optional[str] = None
    features: List[str] = []
    is_accessible: bool = False
    notes: Optional[str] = None


class TableStatusUpdate(BaseModel):
    """Take a table out of service or put it back"""
    status: TableStatus
    notes: Optional[str] = None


class TableResponse(BaseModel):
    """Table response"""
    id: UUID
    number: int
    capacity: int
    min_capacity: Optional[int]
    max_capacity: Optional[int]
    seating_area: Optional[str]
    features: Optional[List[str]]
    is_accessible: Optional[bool]
    status: TableStatus
    current_reservation_id: Optional[UUID]
    notes: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True

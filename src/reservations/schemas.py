from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from enum import Enum

class ReservationStatus(str, Enum):
    """Reservation status enumeration"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    VALIDATED = "validated"
    CANCELLED = "cancelled"

ACTIVE_STATUSES = (ReservationStatus.CONFIRMED.value, ReservationStatus.VALIDATED.value)

class SegmentChoice(BaseModel):
    """Sub-route the passenger wants to travel on"""
    origin: str
    destination: str

class ReservationCreate(BaseModel):
    trip_id: int
    seat: int
    segment: Optional[SegmentChoice] = None

class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True

class Reservation(BaseModel):
    id: int
    user_id: int
    trip_id: int
    company: str
    origin: str
    destination: str
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    price: int
    seat: int
    status: ReservationStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ReservationWithUser(Reservation):
    user: Optional[UserSummary] = None

class ReservationSearchFilters(BaseModel):
    """Admin listing filters"""
    status: Optional[ReservationStatus] = None
    company: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    email: Optional[str] = None
    departure_date: Optional[date] = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    all: bool = False

class ReservationListResponse(BaseModel):
    success: bool = True
    current_page: int
    total_pages: int
    total: int
    data: List[ReservationWithUser]

class ActionResponse(BaseModel):
    success: bool = True
    message: str
    data: Optional[Reservation] = None

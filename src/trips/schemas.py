from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from enum import Enum

HHMM_PATTERN = r"^\d{2}:\d{2}$"

class VehicleType(str, Enum):
    """Vehicle types operated on a trip"""
    AUTOCAR = "Autocar"
    MINIBUS = "Minibus"
    BUS_VIP = "Bus VIP"
    OTHER = "Autre"

class SegmentBase(BaseModel):
    """Sub-route of a trip with its own fare"""
    origin: Optional[str] = None
    destination: Optional[str] = None
    price: Optional[int] = None

class SegmentCreate(SegmentBase):
    pass

class SegmentUpdate(SegmentBase):
    pass

class Segment(BaseModel):
    id: int
    position: int
    origin: str
    destination: str
    price: int

    class Config:
        from_attributes = True

class TripCreate(BaseModel):
    """Operator request to schedule a trip"""
    company: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    departure_date: date
    departure_time: str = Field(..., pattern=HHMM_PATTERN, description="Departure time, HH:MM")
    arrival_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    price: Optional[int] = None
    total_seats: int = 10
    vehicle_type: Optional[str] = None
    segments: List[SegmentCreate] = []

class TripUpdate(BaseModel):
    """Partial trip edit; omitted fields are left untouched"""
    company: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    departure_date: Optional[date] = None
    departure_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    arrival_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    price: Optional[int] = None
    total_seats: Optional[int] = None
    vehicle_type: Optional[str] = None
    segments: Optional[List[SegmentCreate]] = None

class Trip(BaseModel):
    id: int
    company: str
    origin: str
    destination: str
    departure_date: date
    departure_time: str
    arrival_time: Optional[str] = None
    price: int
    total_price: int
    total_seats: int
    remaining_seats: int
    vehicle_type: str
    is_active: bool
    segments: List[Segment] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TripListResponse(BaseModel):
    success: bool = True
    total: int
    data: List[Trip]

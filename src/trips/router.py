from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from src.database import get_db
from src.auth.dependencies import get_current_user, require_admin
from src.trips.schemas import (
    Trip, TripCreate, TripUpdate, TripListResponse, SegmentCreate, SegmentUpdate
)
from src.trips.ledger import TripLedger
from src.activity.schemas import ActivityType
from src.activity.service import ActivityLogService

router = APIRouter()

# Trip catalogue
@router.post("", response_model=Trip, status_code=status.HTTP_201_CREATED)
def create_trip(
    trip: TripCreate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Schedule a new trip (main route plus optional segments)"""
    return TripLedger(db).create(trip)

@router.get("", response_model=TripListResponse)
def list_trips(
    origin: Optional[str] = Query(None, description="Filter by departure city"),
    destination: Optional[str] = Query(None, description="Filter by arrival city"),
    include_inactive: bool = Query(False, description="Include retired trips"),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List trips with optional filters"""
    trips = TripLedger(db).list(
        origin=origin,
        destination=destination,
        include_inactive=include_inactive and current_user.is_admin
    )
    return TripListResponse(total=len(trips), data=trips)

@router.get("/{trip_id}", response_model=Trip)
def get_trip(
    trip_id: int,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get trip details by ID"""
    return TripLedger(db).get(trip_id)

@router.put("/{trip_id}", response_model=Trip)
def update_trip(
    trip_id: int,
    patch: TripUpdate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Edit a trip; capacity can shrink but never silently grows availability"""
    trip = TripLedger(db).update(trip_id, patch)
    ActivityLogService.record(
        db, ActivityType.TRIP_UPDATE, "Trip updated",
        f"{admin_user.name} updated trip {trip.id} ({trip.origin} -> {trip.destination}, {trip.departure_date})",
        user=admin_user
    )
    return trip

@router.delete("/{trip_id}", response_model=Trip)
def deactivate_trip(
    trip_id: int,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Retire a trip (soft delete)"""
    trip = TripLedger(db).deactivate(trip_id)
    ActivityLogService.record(
        db, ActivityType.TRIP_DELETE, "Trip retired",
        f"{admin_user.name} retired trip {trip.id} ({trip.origin} -> {trip.destination}, {trip.departure_date})",
        user=admin_user
    )
    return trip

# Segments
@router.post("/{trip_id}/segments", response_model=Trip, status_code=status.HTTP_201_CREATED)
def add_segment(
    trip_id: int,
    segment: SegmentCreate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Add a priced segment to a trip"""
    return TripLedger(db).add_segment(trip_id, segment)

@router.put("/{trip_id}/segments/{segment_id}", response_model=Trip)
def update_segment(
    trip_id: int,
    segment_id: int,
    segment: SegmentUpdate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return TripLedger(db).update_segment(trip_id, segment_id, segment)

@router.delete("/{trip_id}/segments/{segment_id}", response_model=Trip)
def remove_segment(
    trip_id: int,
    segment_id: int,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return TripLedger(db).remove_segment(trip_id, segment_id)

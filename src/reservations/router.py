from fastapi import APIRouter, Depends, Query, Response, status
from typing import List, Optional
from datetime import date

from src.activity.schemas import ActivityType
from src.activity.service import ActivityLogService
from src.auth.dependencies import get_current_user, require_admin
from src.reservations.allocator import ReservationAllocator
from src.reservations.dependencies import get_allocator
from src.reservations.schemas import (
    Reservation, ReservationCreate, ReservationStatus, ReservationSearchFilters,
    ReservationListResponse, ActionResponse
)

router = APIRouter()

# Passenger endpoints
@router.post("", response_model=Reservation, status_code=status.HTTP_201_CREATED)
def create_reservation(
    request: ReservationCreate,
    current_user = Depends(get_current_user),
    allocator: ReservationAllocator = Depends(get_allocator)
):
    """Reserve a seat on a trip, optionally on one of its segments"""
    return allocator.reserve(
        trip_id=request.trip_id,
        user_id=current_user.id,
        seat=request.seat,
        segment=request.segment
    )

@router.get("", response_model=List[Reservation])
def list_my_reservations(
    current_user = Depends(get_current_user),
    allocator: ReservationAllocator = Depends(get_allocator)
):
    """Reservations of the authenticated user, newest first"""
    return allocator.list_for_user(current_user.id)

@router.get("/trip/{trip_id}/seats", response_model=List[int])
def list_reserved_seats(
    trip_id: int,
    current_user = Depends(get_current_user),
    allocator: ReservationAllocator = Depends(get_allocator)
):
    """Seat numbers already held on a trip"""
    return allocator.list_seats(trip_id)

# Admin endpoints
@router.get("/admin", response_model=ReservationListResponse)
def search_reservations(
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    company: Optional[str] = Query(None),
    origin: Optional[str] = Query(None),
    destination: Optional[str] = Query(None),
    email: Optional[str] = Query(None, description="Matches passenger email or name"),
    departure_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    all: bool = Query(False, description="Return every match on one page"),
    admin_user = Depends(require_admin),
    allocator: ReservationAllocator = Depends(get_allocator)
):
    """Filtered, paginated listing of all reservations"""
    filters = ReservationSearchFilters(
        status=status_filter,
        company=company,
        origin=origin,
        destination=destination,
        email=email,
        departure_date=departure_date,
        page=page,
        limit=limit,
        all=all
    )
    items, total = allocator.search(filters)

    return ReservationListResponse(
        current_page=1 if filters.all else filters.page,
        total_pages=1 if filters.all else allocator.total_pages(total, filters.limit),
        total=total,
        data=items
    )

@router.put("/admin/{reservation_id}/cancel", response_model=ActionResponse)
def cancel_reservation(
    reservation_id: int,
    admin_user = Depends(require_admin),
    allocator: ReservationAllocator = Depends(get_allocator)
):
    reservation = allocator.cancel(reservation_id)
    ActivityLogService.record(
        allocator.db, ActivityType.RESERVATION_CANCEL, "Reservation cancelled",
        f"{admin_user.name} cancelled reservation {reservation.id} (seat {reservation.seat}, trip {reservation.trip_id})",
        user=admin_user
    )
    return ActionResponse(message="Reservation cancelled", data=reservation)

@router.put("/admin/{reservation_id}/validate", response_model=ActionResponse)
def validate_reservation(
    reservation_id: int,
    admin_user = Depends(require_admin),
    allocator: ReservationAllocator = Depends(get_allocator)
):
    reservation = allocator.validate(reservation_id)
    return ActionResponse(message="Reservation validated", data=reservation)

@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reservation(
    reservation_id: int,
    current_user = Depends(get_current_user),
    allocator: ReservationAllocator = Depends(get_allocator)
):
    """Delete a reservation; passengers may only delete their own"""
    allocator.delete(reservation_id, user_id=None if current_user.is_admin else current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

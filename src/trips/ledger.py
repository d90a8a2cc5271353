from typing import List, Optional
from datetime import date
from sqlalchemy import update, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from src.config import settings
from src.exceptions import (
    TripNotFound, SegmentNotFound, CapacityExhausted, DuplicateTrip,
    InconsistentRoute, InvalidTrip
)
from src.logger import logger
from src.models import Trip, TripSegment
from src.trips.schemas import TripCreate, TripUpdate, SegmentCreate, SegmentUpdate, VehicleType


def normalize_place(name: Optional[str]) -> str:
    return (name or "").strip().lower()


class TripLedger:
    """Trip catalogue and seat-capacity ledger.

    Owns total and remaining seat counts and the trip's price segments.
    Derived fields (``total_price``, ``remaining_seats``) are always computed
    here and never taken from caller input. ``remaining_seats`` only moves
    through :meth:`adjust_remaining`, which is a single conditional UPDATE so
    concurrent callers cannot push it below zero or above ``total_seats``.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get(self, trip_id: int, active_only: bool = False) -> Trip:
        trip = self.db.query(Trip).options(selectinload(Trip.segments)).filter(Trip.id == trip_id).first()
        if not trip or (active_only and not trip.is_active):
            raise TripNotFound(trip_id)
        return trip

    def list(
        self,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        include_inactive: bool = False
    ) -> List[Trip]:
        """List trips, newest first, with optional substring filters on the endpoints"""
        query = self.db.query(Trip).options(selectinload(Trip.segments))

        if not include_inactive:
            query = query.filter(Trip.is_active == True)
        if origin:
            query = query.filter(Trip.origin_key.contains(normalize_place(origin)))
        if destination:
            query = query.filter(Trip.destination_key.contains(normalize_place(destination)))

        return query.order_by(Trip.created_at.desc(), Trip.id.desc()).all()

    @staticmethod
    def find_segment(trip: Trip, origin: Optional[str], destination: Optional[str]) -> Optional[TripSegment]:
        """Case-insensitive match of a segment on both endpoint names"""
        origin_key, destination_key = normalize_place(origin), normalize_place(destination)
        for segment in trip.segments:
            if (normalize_place(segment.origin) == origin_key and
                    normalize_place(segment.destination) == destination_key):
                return segment
        return None

    # ------------------------------------------------------------------
    # Trip lifecycle
    # ------------------------------------------------------------------
    def create(self, spec: TripCreate) -> Trip:
        origin, destination = self._validate_route(spec.origin, spec.destination)
        price = self._validate_price(spec.price)
        total_seats = self._validate_seats(spec.total_seats)
        segments = [self._build_segment(position, seg) for position, seg in enumerate(spec.segments)]

        self._ensure_not_duplicate(origin, destination, spec.departure_date)

        trip = Trip(
            company=(spec.company or "").strip() or settings.DEFAULT_COMPANY,
            origin=origin,
            destination=destination,
            origin_key=normalize_place(origin),
            destination_key=normalize_place(destination),
            departure_date=spec.departure_date,
            departure_time=spec.departure_time,
            arrival_time=spec.arrival_time,
            price=price,
            total_price=price,
            total_seats=total_seats,
            remaining_seats=total_seats,
            vehicle_type=self._normalize_vehicle(spec.vehicle_type),
            is_active=True,
            segments=segments
        )
        self.db.add(trip)
        self._commit_schedule(trip)

        logger.info(f"Trip {trip.id} scheduled: {trip.origin} -> {trip.destination} on {trip.departure_date}")
        return trip

    def update(self, trip_id: int, patch: TripUpdate) -> Trip:
        trip = self.get(trip_id)
        data = patch.model_dump(exclude_unset=True)

        if "origin" in data or "destination" in data:
            origin, destination = self._validate_route(
                data.get("origin", trip.origin), data.get("destination", trip.destination)
            )
        else:
            origin, destination = trip.origin, trip.destination
        departure_date = data.get("departure_date") or trip.departure_date

        price = self._validate_price(data["price"]) if "price" in data else trip.price
        total_seats = (
            self._validate_seats(data["total_seats"])
            if data.get("total_seats") is not None else trip.total_seats
        )
        vehicle_type = (
            self._normalize_vehicle(data["vehicle_type"]) if "vehicle_type" in data else trip.vehicle_type
        )
        segments = None
        if patch.segments is not None:
            segments = [self._build_segment(position, seg) for position, seg in enumerate(patch.segments)]

        if trip.is_active and any(field in data for field in ("origin", "destination", "departure_date")):
            self._ensure_not_duplicate(origin, destination, departure_date, exclude_id=trip.id)

        # Everything is validated; apply the patch
        trip.origin, trip.destination = origin, destination
        trip.origin_key, trip.destination_key = normalize_place(origin), normalize_place(destination)
        trip.departure_date = departure_date
        if data.get("company"):
            trip.company = data["company"].strip()
        if data.get("departure_time"):
            trip.departure_time = data["departure_time"]
        if "arrival_time" in data:
            trip.arrival_time = data["arrival_time"]
        trip.vehicle_type = vehicle_type
        trip.price = price
        trip.total_price = price

        trip.total_seats = total_seats
        # Shrinking capacity clamps availability; growing it never adds seats
        if trip.remaining_seats > total_seats:
            trip.remaining_seats = total_seats

        if segments is not None:
            trip.segments = segments

        self._commit_schedule(trip)

        logger.info(f"Trip {trip.id} updated")
        return trip

    def deactivate(self, trip_id: int) -> Trip:
        """Soft-retire a trip; reservations keep their snapshot"""
        trip = self.get(trip_id)
        trip.is_active = False
        self.db.commit()
        self.db.refresh(trip)

        logger.info(f"Trip {trip.id} deactivated")
        return trip

    def adjust_remaining(self, trip_id: int, delta: int) -> Trip:
        """Apply ``delta`` to the remaining-seat counter in one conditional UPDATE.

        Decrements only apply while enough seats remain and raise
        ``CapacityExhausted`` otherwise. Increments are clamped to
        ``total_seats``. The caller owns the transaction.
        """
        stmt = update(Trip).where(Trip.id == trip_id)
        if delta < 0:
            stmt = stmt.where(Trip.remaining_seats >= -delta).values(
                remaining_seats=Trip.remaining_seats + delta
            )
        else:
            stmt = stmt.where(Trip.remaining_seats < Trip.total_seats).values(
                remaining_seats=case(
                    (Trip.remaining_seats + delta > Trip.total_seats, Trip.total_seats),
                    else_=Trip.remaining_seats + delta
                )
            )

        result = self.db.execute(stmt.execution_options(synchronize_session=False))
        trip = self.db.get(Trip, trip_id, populate_existing=True)
        if trip is None:
            raise TripNotFound(trip_id)
        if result.rowcount == 0 and delta < 0:
            raise CapacityExhausted(trip_id)
        return trip

    # ------------------------------------------------------------------
    # Segments
    # ------------------------------------------------------------------
    def add_segment(self, trip_id: int, segment: SegmentCreate) -> Trip:
        trip = self.get(trip_id)
        position = max((s.position for s in trip.segments), default=-1) + 1
        trip.segments.append(self._build_segment(position, segment))
        trip.total_price = trip.price
        self.db.commit()
        self.db.refresh(trip)
        return trip

    def update_segment(self, trip_id: int, segment_id: int, patch: SegmentUpdate) -> Trip:
        trip = self.get(trip_id)
        segment = self._get_segment(trip, segment_id)

        origin, destination = self._validate_route(
            patch.origin if patch.origin is not None else segment.origin,
            patch.destination if patch.destination is not None else segment.destination
        )
        segment.origin, segment.destination = origin, destination
        if patch.price is not None:
            segment.price = self._validate_segment_price(patch.price)

        trip.total_price = trip.price
        self.db.commit()
        self.db.refresh(trip)
        return trip

    def remove_segment(self, trip_id: int, segment_id: int) -> Trip:
        trip = self.get(trip_id)
        trip.segments.remove(self._get_segment(trip, segment_id))
        trip.total_price = trip.price
        self.db.commit()
        self.db.refresh(trip)
        return trip

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _validate_route(origin: Optional[str], destination: Optional[str]):
        origin, destination = (origin or "").strip(), (destination or "").strip()
        if not origin or not destination:
            raise InconsistentRoute("Origin and destination are required")
        if origin.lower() == destination.lower():
            raise InconsistentRoute("Origin and destination must be different")
        return origin, destination

    @staticmethod
    def _validate_price(price: Optional[int]) -> int:
        if price is None:
            raise InvalidTrip("Trip price is required")
        if price < settings.MIN_TRIP_PRICE:
            raise InvalidTrip(f"Trip price must be at least {settings.MIN_TRIP_PRICE}")
        return price

    @staticmethod
    def _validate_segment_price(price: Optional[int]) -> int:
        if price is None:
            raise InvalidTrip("Segment price is required")
        if price < settings.MIN_SEGMENT_PRICE:
            raise InvalidTrip(f"Segment price must be at least {settings.MIN_SEGMENT_PRICE}")
        return price

    @staticmethod
    def _validate_seats(total_seats: int) -> int:
        if not settings.MIN_SEATS <= total_seats <= settings.MAX_SEATS:
            raise InvalidTrip(
                f"Seat count must be between {settings.MIN_SEATS} and {settings.MAX_SEATS}"
            )
        return total_seats

    @staticmethod
    def _normalize_vehicle(vehicle_type: Optional[str]) -> str:
        if not vehicle_type:
            return VehicleType.AUTOCAR.value
        for option in VehicleType:
            if option.value.lower() == vehicle_type.strip().lower():
                return option.value
        raise InvalidTrip(f"Unknown vehicle type '{vehicle_type}'")

    def _build_segment(self, position: int, segment: SegmentCreate) -> TripSegment:
        origin, destination = self._validate_route(segment.origin, segment.destination)
        return TripSegment(
            position=position,
            origin=origin,
            destination=destination,
            price=self._validate_segment_price(segment.price)
        )

    @staticmethod
    def _get_segment(trip: Trip, segment_id: int) -> TripSegment:
        for segment in trip.segments:
            if segment.id == segment_id:
                return segment
        raise SegmentNotFound(segment_id)

    def _ensure_not_duplicate(
        self,
        origin: str,
        destination: str,
        departure_date: date,
        exclude_id: Optional[int] = None
    ):
        query = self.db.query(Trip).filter(
            Trip.origin_key == normalize_place(origin),
            Trip.destination_key == normalize_place(destination),
            Trip.departure_date == departure_date,
            Trip.is_active == True
        )
        if exclude_id is not None:
            query = query.filter(Trip.id != exclude_id)

        if query.first():
            raise self._duplicate_error(origin, destination, departure_date)

    def _commit_schedule(self, trip: Trip):
        """Commit a trip write; the route/day unique index is the final arbiter"""
        error = self._duplicate_error(trip.origin, trip.destination, trip.departure_date)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise error
        self.db.refresh(trip)

    @staticmethod
    def _duplicate_error(origin: str, destination: str, departure_date: date) -> DuplicateTrip:
        return DuplicateTrip(
            f"A trip {origin} → {destination} is already scheduled on {departure_date:%d/%m/%Y}"
        )

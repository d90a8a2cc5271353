from typing import List, Optional, Tuple
from dataclasses import dataclass
import math

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from src.exceptions import (
    TripNotFound, ReservationNotFound, CapacityExhausted, SeatTaken,
    InvalidSeat, InvalidStatusTransition
)
from src.logger import logger
from src.models import Reservation, Trip, User
from src.reservations.events import EventSink, NullEventSink, ReservationEvent, build_event_payload
from src.reservations.schemas import (
    ReservationStatus, ReservationSearchFilters, SegmentChoice, ACTIVE_STATUSES
)
from src.trips.ledger import TripLedger, normalize_place

# Scope of a booking that covers the whole route; it overlaps every segment
FULL_ROUTE_SCOPE = "*"


@dataclass
class CommercialTerms:
    """Snapshot of what the passenger pays for and where they travel"""
    company: str
    origin: str
    destination: str
    departure_time: Optional[str]
    arrival_time: Optional[str]
    price: int
    full_route: bool = True

    @property
    def scope_key(self) -> str:
        if self.full_route:
            return FULL_ROUTE_SCOPE
        return f"{normalize_place(self.origin)}|{normalize_place(self.destination)}"


class ReservationAllocator:
    """Assigns seats on trips and keeps the trip capacity counter in step.

    Reservation status and ``Trip.remaining_seats`` change together here and
    nowhere else. A seat held on the full route blocks it on every segment,
    and a seat held on a segment blocks it on that segment and on the full
    route. Distinct segments may share a seat number.

    The booking transaction decrements the trip counter first. That UPDATE
    locks the trip row, so competing bookings on the same trip run their seat
    check one after the other. The partial unique index on active
    ``(trip_id, scope_key, seat)`` still rejects a second holder in the same
    scope, and the conditional decrement refuses to go below zero.
    """

    def __init__(self, db: Session, event_sink: Optional[EventSink] = None, ledger: Optional[TripLedger] = None):
        self.db = db
        self.ledger = ledger or TripLedger(db)
        self.event_sink = event_sink or NullEventSink()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def reserve(
        self,
        trip_id: int,
        user_id: int,
        seat: int,
        segment: Optional[SegmentChoice] = None
    ) -> Reservation:
        """Book ``seat`` on a trip (or one of its segments) for a user"""
        if seat is None or seat <= 0:
            raise InvalidSeat(seat)

        trip = self.ledger.get(trip_id, active_only=True)
        if trip.remaining_seats <= 0:
            raise CapacityExhausted(trip_id)

        terms = self._resolve_terms(trip, segment)
        reservation = Reservation(
            user_id=user_id,
            trip_id=trip.id,
            company=terms.company,
            origin=terms.origin,
            destination=terms.destination,
            departure_time=terms.departure_time,
            arrival_time=terms.arrival_time,
            price=terms.price,
            scope_key=terms.scope_key,
            seat=seat,
            status=ReservationStatus.CONFIRMED.value
        )

        try:
            trip = self.ledger.adjust_remaining(trip.id, -1)
            if self._seat_is_held(trip.id, terms.scope_key, seat):
                raise SeatTaken(seat)
            self.db.add(reservation)
            self.db.flush()
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if not self._same_scope_holder_exists(trip_id, terms.scope_key, seat):
                raise
            logger.warning(f"Seat {seat} on trip {trip_id} was taken by a concurrent booking")
            raise SeatTaken(seat)
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(reservation)
        logger.info(
            f"Reservation {reservation.id}: user {user_id} took seat {seat} on trip {trip.id} "
            f"({terms.origin} -> {terms.destination}), {trip.remaining_seats} seats left"
        )
        self._notify(ReservationEvent.CREATED, build_event_payload(trip, seat=seat, user_id=user_id))
        return reservation

    def cancel(self, reservation_id: int) -> Reservation:
        """Admin cancellation: the record is kept with status ``cancelled``"""
        reservation = self.get(reservation_id)
        was_active = reservation.status in ACTIVE_STATUSES
        if reservation.status == ReservationStatus.CANCELLED.value:
            return reservation

        reservation.status = ReservationStatus.CANCELLED.value
        self.db.commit()
        self.db.refresh(reservation)
        logger.info(f"Reservation {reservation.id} cancelled (seat {reservation.seat}, trip {reservation.trip_id})")

        if was_active:
            self._release_seat(reservation.trip_id, reservation.id)
        return reservation

    def validate(self, reservation_id: int) -> Reservation:
        """Mark a confirmed reservation as boarded; capacity is untouched"""
        reservation = self.get(reservation_id)
        if reservation.status == ReservationStatus.VALIDATED.value:
            return reservation
        if reservation.status != ReservationStatus.CONFIRMED.value:
            raise InvalidStatusTransition(
                f"Reservation {reservation.id} is {reservation.status} and cannot be validated"
            )

        reservation.status = ReservationStatus.VALIDATED.value
        self.db.commit()
        self.db.refresh(reservation)
        logger.info(f"Reservation {reservation.id} validated")
        return reservation

    def delete(self, reservation_id: int, user_id: Optional[int] = None) -> None:
        """Remove a reservation; ``user_id`` restricts the delete to its owner"""
        reservation = self.get(reservation_id)
        if user_id is not None and reservation.user_id != user_id:
            raise ReservationNotFound(reservation_id)

        trip_id, was_active = reservation.trip_id, reservation.status in ACTIVE_STATUSES
        self.db.delete(reservation)
        self.db.commit()
        logger.info(f"Reservation {reservation_id} deleted")

        if was_active:
            self._release_seat(trip_id, reservation_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get(self, reservation_id: int) -> Reservation:
        reservation = self.db.query(Reservation).filter(Reservation.id == reservation_id).first()
        if not reservation:
            raise ReservationNotFound(reservation_id)
        return reservation

    def list_seats(self, trip_id: int) -> List[int]:
        """Seat numbers held by active reservations on a trip"""
        self.ledger.get(trip_id)
        rows = self.db.query(Reservation.seat).filter(
            Reservation.trip_id == trip_id,
            Reservation.status.in_(ACTIVE_STATUSES)
        ).distinct().order_by(Reservation.seat).all()
        return [row.seat for row in rows]

    def list_for_user(self, user_id: int) -> List[Reservation]:
        return self.db.query(Reservation).filter(
            Reservation.user_id == user_id
        ).order_by(Reservation.created_at.desc(), Reservation.id.desc()).all()

    def search(self, filters: ReservationSearchFilters) -> Tuple[List[Reservation], int]:
        """Admin listing with filters and pagination"""
        query = self.db.query(Reservation).options(joinedload(Reservation.user))

        if filters.status:
            query = query.filter(Reservation.status == filters.status.value)
        if filters.company:
            query = query.filter(Reservation.company.ilike(f"%{filters.company}%"))
        if filters.origin:
            query = query.filter(Reservation.origin.ilike(f"%{filters.origin}%"))
        if filters.destination:
            query = query.filter(Reservation.destination.ilike(f"%{filters.destination}%"))
        if filters.email:
            query = query.join(User, Reservation.user_id == User.id).filter(
                or_(User.email.ilike(f"%{filters.email}%"), User.name.ilike(f"%{filters.email}%"))
            )
        if filters.departure_date:
            query = query.join(Trip, Reservation.trip_id == Trip.id).filter(
                Trip.departure_date == filters.departure_date
            )

        total = query.count()
        query = query.order_by(Reservation.created_at.desc(), Reservation.id.desc())
        if not filters.all:
            query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)

        return query.all(), total

    def recent_confirmed(self, limit: int = 10) -> List[Reservation]:
        return self.db.query(Reservation).options(joinedload(Reservation.user)).filter(
            Reservation.status == ReservationStatus.CONFIRMED.value
        ).order_by(Reservation.created_at.desc(), Reservation.id.desc()).limit(limit).all()

    @staticmethod
    def total_pages(total: int, limit: int) -> int:
        return max(math.ceil(total / limit), 1)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _resolve_terms(self, trip: Trip, segment: Optional[SegmentChoice]) -> CommercialTerms:
        matched = self.ledger.find_segment(trip, segment.origin, segment.destination) if segment else None
        if matched:
            covers_route = (
                normalize_place(matched.origin) == trip.origin_key
                and normalize_place(matched.destination) == trip.destination_key
            )
            return CommercialTerms(
                company=trip.company,
                origin=matched.origin,
                destination=matched.destination,
                departure_time=trip.departure_time,
                arrival_time=trip.arrival_time,
                price=matched.price,
                full_route=covers_route
            )
        return CommercialTerms(
            company=trip.company,
            origin=trip.origin,
            destination=trip.destination,
            departure_time=trip.departure_time,
            arrival_time=trip.arrival_time,
            price=trip.price
        )

    def _seat_is_held(self, trip_id: int, scope_key: str, seat: int) -> bool:
        """Whether an active reservation overlapping ``scope_key`` holds the seat"""
        query = self.db.query(Reservation.id).filter(
            Reservation.trip_id == trip_id,
            Reservation.seat == seat,
            Reservation.status.in_(ACTIVE_STATUSES)
        )
        if scope_key != FULL_ROUTE_SCOPE:
            query = query.filter(Reservation.scope_key.in_((scope_key, FULL_ROUTE_SCOPE)))
        return query.first() is not None

    def _same_scope_holder_exists(self, trip_id: int, scope_key: str, seat: int) -> bool:
        # The rows covered by uq_active_seat_per_scope
        return self.db.query(Reservation.id).filter(
            Reservation.trip_id == trip_id,
            Reservation.scope_key == scope_key,
            Reservation.seat == seat,
            Reservation.status.in_(ACTIVE_STATUSES)
        ).first() is not None

    def _release_seat(self, trip_id: int, reservation_id: int) -> Optional[Trip]:
        """Give one seat back after the status change or removal is committed.

        A failure here leaves the trip under-counted, never overbooked, so it
        is logged rather than propagated.
        """
        try:
            trip = self.ledger.adjust_remaining(trip_id, 1)
            self.db.commit()
        except (SQLAlchemyError, TripNotFound):
            self.db.rollback()
            logger.exception(
                f"Could not restore a seat on trip {trip_id} after reservation {reservation_id}; "
                "remaining seats are under-counted"
            )
            return None

        self._notify(ReservationEvent.DELETED, build_event_payload(trip))
        return trip

    def _notify(self, event: ReservationEvent, payload: dict):
        try:
            self.event_sink.emit(event.value, payload)
        except Exception:
            logger.exception(f"Failed to emit {event.value}")

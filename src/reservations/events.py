"""Reservation change notifications.

The allocator is handed an ``EventSink`` at construction and calls
``emit(event_name, payload)`` after each committed change. Delivery is
best-effort: sinks may fail, and the allocator only logs such failures.
"""

from enum import Enum
from typing import Iterable, List, Optional, Protocol

from src.logger import logger
from src.models import Trip


class ReservationEvent(str, Enum):
    CREATED = "reservation_created"
    DELETED = "reservation_deleted"


class EventSink(Protocol):
    def emit(self, event_name: str, payload: dict) -> None:
        ...


class NullEventSink:
    """Sink used when nobody listens"""

    def emit(self, event_name: str, payload: dict) -> None:
        return None


class CompositeEventSink:
    """Fan an event out to several sinks; one failing sink does not starve the others"""

    def __init__(self, sinks: Iterable[EventSink]):
        self.sinks: List[EventSink] = list(sinks)

    def emit(self, event_name: str, payload: dict) -> None:
        for sink in self.sinks:
            try:
                sink.emit(event_name, payload)
            except Exception:
                logger.exception(f"{type(sink).__name__} failed to deliver {event_name}")


def build_event_payload(trip: Trip, seat: Optional[int] = None, user_id: Optional[int] = None) -> dict:
    payload = {
        "trip": {
            "id": trip.id,
            "origin": trip.origin,
            "destination": trip.destination,
            "company": trip.company,
            "remaining_seats": trip.remaining_seats,
        }
    }
    if seat is not None:
        payload["seat"] = seat
    if user_id is not None:
        payload["user_id"] = user_id
    return payload

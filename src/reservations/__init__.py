"""
Reservation Allocator Module

Seat allocation on trips and the reservation lifecycle:

- allocator.py: ReservationAllocator, reserve / cancel / validate / delete
  kept in step with the trip capacity ledger
- events.py: event names, sink protocol and payload builder
- schemas.py: Pydantic models for reservation requests and responses
- router.py, dependencies.py: FastAPI endpoints and their wiring
"""

from .allocator import ReservationAllocator
from .events import EventSink, NullEventSink, CompositeEventSink, ReservationEvent
from .schemas import ReservationStatus, ACTIVE_STATUSES

__all__ = [
    "ReservationAllocator",
    "EventSink",
    "NullEventSink",
    "CompositeEventSink",
    "ReservationEvent",
    "ReservationStatus",
    "ACTIVE_STATUSES"
]

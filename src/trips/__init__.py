"""
Trip Catalogue & Capacity Ledger Module

Scheduling of coach trips and ownership of their seat capacity:

- ledger.py: TripLedger, trip creation/edition with duplicate-day checks,
  segment management and the remaining-seat counter
- router.py: FastAPI endpoints for trip and segment management
- schemas.py: Pydantic models for trip requests and responses
"""

from .router import router
from .ledger import TripLedger
from .schemas import Trip, TripCreate, TripUpdate, Segment, SegmentCreate, SegmentUpdate, VehicleType

__all__ = [
    "router",
    "TripLedger",
    "Trip",
    "TripCreate",
    "TripUpdate",
    "Segment",
    "SegmentCreate",
    "SegmentUpdate",
    "VehicleType"
]

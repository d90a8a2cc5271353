from datetime import date, timedelta
from typing import List, Tuple

from src.auth.schemas import UserCreate
from src.auth.service import UserService
from src.auth.utils import create_access_token
from src.trips.schemas import TripCreate, SegmentCreate


class RecordingEventSink:
    """Keeps every emitted event for assertions"""

    def __init__(self):
        self.events: List[Tuple[str, dict]] = []

    def emit(self, event_name: str, payload: dict) -> None:
        self.events.append((event_name, payload))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.events]


class FailingEventSink:
    def emit(self, event_name: str, payload: dict) -> None:
        raise ConnectionError("dashboard unreachable")


def make_trip_spec(**overrides) -> TripCreate:
    data = {
        "company": "Kocrou Transport & Frères",
        "origin": "Abidjan",
        "destination": "Yamoussoukro",
        "departure_date": date.today() + timedelta(days=3),
        "departure_time": "07:00",
        "arrival_time": "10:30",
        "price": 5000,
        "total_seats": 10,
        "vehicle_type": "Autocar",
        "segments": [],
    }
    data.update(overrides)
    return TripCreate(**data)


def segment(origin: str, destination: str, price: int) -> SegmentCreate:
    return SegmentCreate(origin=origin, destination=destination, price=price)


def create_user(db, email: str, is_admin: bool = False, name: str = "Test User"):
    return UserService.create_user(
        db, UserCreate(name=name, email=email, password="secret123"), is_admin=is_admin
    )


def token_for(user) -> str:
    return create_access_token({"sub": str(user.id), "is_admin": user.is_admin})


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


class TrackingSessionFactory:
    """Wraps a sessionmaker and counts opened and closed sessions"""

    def __init__(self, factory):
        self.factory = factory
        self.opened = 0
        self.closed = 0

    def __call__(self):
        session = self.factory()
        self.opened += 1
        close = session.close

        def tracked_close():
            self.closed += 1
            close()

        session.close = tracked_close
        return session

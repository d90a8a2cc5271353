from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.logger import logger
from src.models import Notification, User
from src.notifications.schemas import NotificationType
from src.reservations.events import ReservationEvent


class NotificationEventSink:
    """Persist reservation events as admin notifications.

    Uses its own session so a failed write can never touch the booking
    transaction that produced the event.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def emit(self, event_name: str, payload: dict) -> None:
        notification_type, message = self._describe(event_name, payload)
        if notification_type is None:
            return

        db = self.session_factory()
        try:
            user_name = self._user_name(db, payload.get("user_id"))
            db.add(Notification(type=notification_type.value, message=message, user_name=user_name))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    @staticmethod
    def _describe(event_name: str, payload: dict):
        trip = payload.get("trip", {})
        route = f"{trip.get('origin')} → {trip.get('destination')}"

        if event_name == ReservationEvent.CREATED.value:
            return NotificationType.RESERVATION, f"Seat {payload.get('seat')} booked on {route}"
        if event_name == ReservationEvent.DELETED.value:
            return NotificationType.CANCEL, f"A seat was released on {route}"

        logger.debug(f"No notification for event {event_name}")
        return None, None

    @staticmethod
    def _user_name(db: Session, user_id: Optional[int]) -> Optional[str]:
        if user_id is None:
            return None
        user = db.get(User, user_id)
        return user.name if user else None

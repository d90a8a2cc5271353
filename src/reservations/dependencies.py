from fastapi import Depends
from sqlalchemy.orm import Session

from src.database import get_db
from src.monitoring.dependencies import get_connection_manager, get_session_factory
from src.monitoring.websocket import ConnectionManager, WebSocketEventSink
from src.notifications.sink import NotificationEventSink
from src.reservations.allocator import ReservationAllocator
from src.reservations.events import CompositeEventSink, EventSink

def get_event_sink(
    session_factory = Depends(get_session_factory),
    manager: ConnectionManager = Depends(get_connection_manager)
) -> EventSink:
    """Notifications table plus live admin dashboards"""
    return CompositeEventSink([
        NotificationEventSink(session_factory),
        WebSocketEventSink(manager)
    ])

def get_allocator(
    db: Session = Depends(get_db),
    event_sink: EventSink = Depends(get_event_sink)
) -> ReservationAllocator:
    return ReservationAllocator(db, event_sink=event_sink)

from fastapi import APIRouter, Depends, Query, WebSocket
from sqlalchemy.orm import Session
from typing import Optional

from src.auth.dependencies import require_admin
from src.database import get_db
from src.monitoring.dependencies import get_presence_registry, get_connection_manager, get_session_factory
from src.monitoring.presence import AdminPresenceRegistry
from src.monitoring.schemas import MonitoringResponse
from src.monitoring.websocket import ConnectionManager, admin_session, monitoring_payload
from src.reservations.allocator import ReservationAllocator

router = APIRouter()
ws_router = APIRouter()

@router.get("", response_model=MonitoringResponse)
def get_monitoring(
    admin_user = Depends(require_admin),
    registry: AdminPresenceRegistry = Depends(get_presence_registry),
    db: Session = Depends(get_db)
):
    """Connected admins and the latest confirmed reservations"""
    return MonitoringResponse(
        **monitoring_payload(registry),
        recent_reservations=ReservationAllocator(db).recent_confirmed()
    )

@ws_router.websocket("/ws/admin")
async def admin_monitoring_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    session_factory = Depends(get_session_factory),
    manager: ConnectionManager = Depends(get_connection_manager),
    registry: AdminPresenceRegistry = Depends(get_presence_registry)
):
    """Live admin dashboard channel, authenticated by ``?token=``"""
    await admin_session(websocket, token, session_factory, manager, registry)

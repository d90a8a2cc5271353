"""
Admin Monitoring Module

Live view of who is administering the system and what is being booked:

- presence.py: lock-guarded registry of connected admins
- websocket.py: admin connection manager, websocket event sink and the
  admin channel protocol (admin_join / admin_ping)
- router.py: monitoring snapshot endpoint and the /ws/admin websocket
"""

from .router import router, ws_router
from .presence import AdminPresenceRegistry
from .websocket import ConnectionManager, WebSocketEventSink

__all__ = [
    "router",
    "ws_router",
    "AdminPresenceRegistry",
    "ConnectionManager",
    "WebSocketEventSink"
]

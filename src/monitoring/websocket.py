from fastapi import WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from typing import Callable, Dict, Optional
from datetime import datetime, timezone
from uuid import uuid4
import asyncio
import json

from sqlalchemy.orm import Session

from src.auth.utils import decode_access_token
from src.logger import logger
from src.models import User
from src.monitoring.presence import AdminPresenceRegistry


class ConnectionManager:
    """Admin websocket connections and JSON broadcasts.

    Frames are ``{"type": <name>, "data": {...}, "timestamp": <iso>}``.
    """

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def connect(self, websocket: WebSocket) -> str:
        """Accept a connection and return its id"""
        await websocket.accept()
        connection_id = uuid4().hex
        self.active_connections[connection_id] = websocket
        # Broadcasts from worker threads are scheduled onto this loop
        self._loop = asyncio.get_running_loop()
        return connection_id

    def disconnect(self, connection_id: str):
        self.active_connections.pop(connection_id, None)

    async def send_personal_message(self, websocket: WebSocket, message_type: str, data: Optional[dict] = None):
        await websocket.send_json(self._frame(message_type, data))

    async def broadcast(self, message_type: str, data: Optional[dict] = None):
        """Send a frame to every connection, dropping the ones that fail"""
        if not self.active_connections:
            return

        frame = self._frame(message_type, data)
        disconnected = []

        for connection_id, connection in list(self.active_connections.items()):
            try:
                await connection.send_json(frame)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"Dropping admin connection {connection_id}: {e}")
                disconnected.append(connection_id)

        for connection_id in disconnected:
            self.disconnect(connection_id)

    def broadcast_threadsafe(self, message_type: str, data: Optional[dict] = None) -> bool:
        """Schedule a broadcast from outside the event loop without waiting for it"""
        loop = self._loop
        if loop is None or loop.is_closed() or not self.active_connections:
            return False
        asyncio.run_coroutine_threadsafe(self.broadcast(message_type, data), loop)
        return True

    @staticmethod
    def _frame(message_type: str, data: Optional[dict]) -> dict:
        return {
            "type": message_type,
            "data": data or {},
            "timestamp": datetime.now(timezone.utc).isoformat()
        }


class WebSocketEventSink:
    """Forward reservation events to connected admin dashboards"""

    def __init__(self, manager: ConnectionManager):
        self.manager = manager

    def emit(self, event_name: str, payload: dict) -> None:
        if not self.manager.broadcast_threadsafe(event_name, payload):
            logger.debug(f"No admin connected, {event_name} not broadcast")


def monitoring_payload(registry: AdminPresenceRegistry) -> dict:
    admins = registry.snapshot()
    return {"admin_count": len(admins), "admins": admins}


def authenticate_admin(db: Session, token: Optional[str]) -> Optional[User]:
    """Resolve the websocket token to an admin user, or None"""
    if not token:
        return None
    payload = decode_access_token(token)
    if payload is None:
        return None
    user = db.get(User, payload["user_id"])
    if user is None or not user.is_admin:
        return None
    return user


def admin_email_for(session_factory: Callable[[], Session], token: Optional[str]) -> Optional[str]:
    """Look the admin up in a session that is closed before the socket opens"""
    db = session_factory()
    try:
        admin = authenticate_admin(db, token)
        return admin.email if admin else None
    finally:
        db.close()


async def admin_session(
    websocket: WebSocket,
    token: Optional[str],
    session_factory: Callable[[], Session],
    manager: ConnectionManager,
    registry: AdminPresenceRegistry
):
    """Run one admin monitoring connection until the client goes away"""
    email = await run_in_threadpool(admin_email_for, session_factory, token)
    if email is None:
        logger.warning("Rejected monitoring websocket: missing, invalid or non-admin token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    connection_id = await manager.connect(websocket)
    logger.info(f"Admin connected: {email}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            # Binary frames carry no "text" and are ignored like malformed JSON
            message_type = _message_type(message.get("text"))

            if message_type == "admin_join":
                registry.register(email, connection_id)
                await manager.broadcast("monitoring_update", monitoring_payload(registry))
            elif message_type == "admin_ping":
                registry.touch(email)
                await manager.send_personal_message(websocket, "pong")
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(connection_id)
        registry.unregister(connection_id)
        logger.info(f"Admin disconnected: {email}")
        await manager.broadcast("monitoring_update", monitoring_payload(registry))


def _message_type(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    try:
        message = json.loads(raw)
    except ValueError:
        return None
    return message.get("type") if isinstance(message, dict) else None

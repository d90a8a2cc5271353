import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional


@dataclass
class AdminPresence:
    email: str
    connection_id: str
    last_active: datetime


class AdminPresenceRegistry:
    """Which admins currently hold a monitoring connection.

    Keyed by email, so an admin reconnecting from a second tab replaces the
    earlier entry. Websocket handlers run on the event loop while HTTP
    handlers run in the threadpool; every access goes through the lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._admins: Dict[str, AdminPresence] = {}

    def register(self, email: str, connection_id: str) -> AdminPresence:
        presence = AdminPresence(email=email, connection_id=connection_id, last_active=_now())
        with self._lock:
            self._admins[email] = presence
        return presence

    def touch(self, email: str) -> Optional[AdminPresence]:
        with self._lock:
            presence = self._admins.get(email)
            if presence:
                presence.last_active = _now()
            return presence

    def unregister(self, connection_id: str) -> Optional[str]:
        """Drop the entry owned by ``connection_id``; returns the email removed"""
        with self._lock:
            for email, presence in self._admins.items():
                if presence.connection_id == connection_id:
                    del self._admins[email]
                    return email
        return None

    def snapshot(self) -> List[dict]:
        with self._lock:
            return [
                {"email": p.email, "last_active": p.last_active.isoformat()}
                for p in self._admins.values()
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._admins)


def _now() -> datetime:
    return datetime.now(timezone.utc)

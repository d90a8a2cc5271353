from .router import router
from .sink import NotificationEventSink

__all__ = ["router", "NotificationEventSink"]

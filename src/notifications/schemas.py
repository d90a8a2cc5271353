from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum

class NotificationType(str, Enum):
    RESERVATION = "reservation"
    CANCEL = "cancel"
    USER = "user"

class Notification(BaseModel):
    id: int
    type: NotificationType
    message: str
    user_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from enum import Enum

class ActivityType(str, Enum):
    LOGIN = "login"
    TRIP_UPDATE = "trajet_update"
    TRIP_DELETE = "trajet_delete"
    RESERVATION_CANCEL = "reservation_cancel"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SECURITY = "security"

class ActivityUser(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True

class ActivityLog(BaseModel):
    id: int
    type: ActivityType
    action: str
    details: str = ""
    user: Optional[ActivityUser] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ActivityLogListResponse(BaseModel):
    total: int
    data: List[ActivityLog]

class PurgeResponse(BaseModel):
    success: bool = True
    deleted: int
    message: str

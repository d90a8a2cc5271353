from pydantic import BaseModel
from typing import List
from datetime import datetime

from src.reservations.schemas import ReservationWithUser

class AdminPresence(BaseModel):
    email: str
    last_active: datetime

class MonitoringResponse(BaseModel):
    success: bool = True
    admin_count: int
    admins: List[AdminPresence]
    recent_reservations: List[ReservationWithUser]

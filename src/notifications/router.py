from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from src.config import settings
from src.database import get_db
from src.auth.dependencies import require_admin
from src.models import Notification as NotificationModel
from src.notifications.schemas import Notification

router = APIRouter()

@router.get("", response_model=List[Notification])
def list_notifications(
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Most recent notifications, newest first"""
    return db.query(NotificationModel).order_by(
        NotificationModel.created_at.desc(), NotificationModel.id.desc()
    ).limit(settings.NOTIFICATIONS_LIMIT).all()

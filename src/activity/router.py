from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from src.config import settings
from src.database import get_db
from src.auth.dependencies import require_admin
from src.activity.schemas import ActivityType, ActivityLogListResponse, PurgeResponse
from src.activity.service import ActivityLogService

router = APIRouter()

@router.get("", response_model=ActivityLogListResponse)
def list_activity(
    type_filter: Optional[ActivityType] = Query(None, alias="type"),
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Latest activity entries, newest first"""
    entries = ActivityLogService.list_recent(db, type_filter, limit=settings.ACTIVITY_LOG_LIMIT)
    return ActivityLogListResponse(total=len(entries), data=entries)

@router.delete("", response_model=PurgeResponse)
def purge_activity(admin_user = Depends(require_admin), db: Session = Depends(get_db)):
    deleted = ActivityLogService.purge(db, admin_user)
    return PurgeResponse(deleted=deleted, message="Activity log cleared; the purge itself was kept")

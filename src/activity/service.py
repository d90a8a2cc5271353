from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from src.activity.schemas import ActivityType
from src.logger import logger
from src.models import ActivityLog, User


class ActivityLogService:
    """Audit trail of admin and account activity"""

    @staticmethod
    def record(
        db: Session,
        activity_type: ActivityType,
        action: str,
        details: str = "",
        user: Optional[User] = None
    ) -> Optional[ActivityLog]:
        """Append an entry after the audited change has been committed.

        A failed write is logged and the audited request still succeeds.
        """
        entry = ActivityLog(
            user_id=user.id if user else None,
            type=activity_type.value,
            action=action,
            details=details.strip()
        )
        try:
            db.add(entry)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Could not record activity '{action}'")
            return None
        return entry

    @staticmethod
    def list_recent(db: Session, activity_type: Optional[ActivityType] = None, limit: int = 100) -> List[ActivityLog]:
        query = db.query(ActivityLog).options(joinedload(ActivityLog.user))
        if activity_type:
            query = query.filter(ActivityLog.type == activity_type.value)
        return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()

    @staticmethod
    def purge(db: Session, admin: User) -> int:
        """Delete every entry but a trace of the purge itself"""
        trace = ActivityLog(
            user_id=admin.id,
            type=ActivityType.SECURITY.value,
            action="Activity log purged",
            details=f"{admin.name} cleared the activity log"
        )
        db.add(trace)
        db.flush()
        deleted = db.query(ActivityLog).filter(ActivityLog.id != trace.id).delete(synchronize_session=False)
        db.commit()
        logger.warning(f"Activity log purged by {admin.email} ({deleted} entries)")
        return deleted
